"""Console sink for debugging and development."""

from typing import Any

from lamf_core.sinks.serialization import to_json


class ConsoleSink:
    """Print lifecycle events to stdout."""

    def __init__(self, pretty: bool = True) -> None:
        """Initialize console sink.

        Parameters
        ----------
        pretty : bool
            Pretty-print JSON output.
        """
        self.pretty = pretty
        self._counts: dict[str, int] = {}

    def send(self, topic: str, record: Any, key: str | None = None) -> None:
        """Print one record under its topic."""
        header = f"[{topic}]" if key is None else f"[{topic}] {key}"
        print(header)
        print(to_json(record, pretty=self.pretty))
        self._counts[topic] = self._counts.get(topic, 0) + 1

    def flush(self) -> None:
        """Nothing is buffered."""

    def close(self) -> None:
        """Print summary and close."""
        print(f"\n{'='*60}")
        print("Console Sink Summary")
        print("=" * 60)
        for topic, count in self._counts.items():
            print(f"  {topic}: {count} events")
