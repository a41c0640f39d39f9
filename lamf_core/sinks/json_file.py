"""JSON Lines sink for writing lifecycle events to files."""

import logging
from pathlib import Path
from typing import IO, Any

from lamf_core.exceptions import SinkError
from lamf_core.sinks.serialization import to_json

logger = logging.getLogger(__name__)


class JsonLinesSink:
    """Append events to one ``.jsonl`` file per topic."""

    def __init__(self, output_dir: str | Path) -> None:
        """Initialize JSON Lines sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write files into; created if missing.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._files: dict[str, IO[str]] = {}
        self._counts: dict[str, int] = {}

    def path_for(self, topic: str) -> Path:
        """File a topic is written to (dots become underscores)."""
        return self.output_dir / (topic.replace(".", "_") + ".jsonl")

    def send(self, topic: str, record: Any, key: str | None = None) -> None:
        """Append one record as a JSON line."""
        try:
            handle = self._files.get(topic)
            if handle is None:
                handle = open(self.path_for(topic), "a", encoding="utf-8")
                self._files[topic] = handle
            handle.write(to_json(record) + "\n")
        except OSError as exc:
            raise SinkError(f"Cannot write {topic} event: {exc}") from exc
        self._counts[topic] = self._counts.get(topic, 0) + 1

    def flush(self) -> None:
        for handle in self._files.values():
            handle.flush()

    def close(self) -> None:
        """Close open files and log a summary."""
        for handle in self._files.values():
            handle.close()
        self._files.clear()
        logger.info("JSON Lines written to: %s", self.output_dir)
        for topic, count in self._counts.items():
            logger.info("  %s: %d events", topic, count)
