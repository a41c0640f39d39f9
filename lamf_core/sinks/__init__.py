"""Output sinks for lifecycle events."""

from lamf_core.config import LamfConfig
from lamf_core.sinks.console import ConsoleSink
from lamf_core.sinks.json_file import JsonLinesSink
from lamf_core.sinks.kafka import KafkaSink

__all__ = ["ConsoleSink", "JsonLinesSink", "KafkaSink", "create_sink"]


def create_sink(config: LamfConfig) -> ConsoleSink | JsonLinesSink | KafkaSink | None:
    """Build the sink named by ``config.events.sink`` (``None`` for "none")."""
    sink_type = config.events.sink
    if sink_type == "console":
        return ConsoleSink()
    if sink_type == "jsonl":
        return JsonLinesSink(config.events.output_dir)
    if sink_type == "kafka":
        return KafkaSink(config.kafka)
    return None
