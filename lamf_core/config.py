"""Configuration management for lamf-core."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from lamf_core.exceptions import ConfigurationError

EVENT_SINK_TYPES = ("none", "console", "jsonl", "kafka")


@dataclass
class KafkaConfig:
    """Kafka producer configuration."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "batch.size": self.batch_size,
            "linger.ms": self.linger_ms,
            "compression.type": self.compression,
            "retries": self.retries,
        }


@dataclass
class EventConfig:
    """Lifecycle event publishing configuration."""

    sink: str = "none"
    topic_prefix: str = "lamf"
    output_dir: Path = field(default_factory=lambda: Path("output"))

    def __post_init__(self) -> None:
        if self.sink not in EVENT_SINK_TYPES:
            raise ConfigurationError(
                f"Unknown event sink '{self.sink}', expected one of {', '.join(EVENT_SINK_TYPES)}"
            )


@dataclass
class NumberingConfig:
    """Prefixes for generated application and loan numbers."""

    application_prefix: str = "LAMF"
    loan_prefix: str = "LN"
    sequence_width: int = 6


@dataclass
class LamfConfig:
    """Main configuration for lamf-core."""

    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    events: EventConfig = field(default_factory=EventConfig)
    numbering: NumberingConfig = field(default_factory=NumberingConfig)
    log_level: str = "INFO"
    log_format: str = "standard"

    @classmethod
    def from_env(cls) -> "LamfConfig":
        """Create config from environment variables."""
        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
        )

        events = EventConfig(
            sink=os.getenv("LAMF_EVENT_SINK", "none").lower(),
            topic_prefix=os.getenv("LAMF_TOPIC_PREFIX", "lamf"),
            output_dir=Path(os.getenv("LAMF_EVENT_DIR", "output")),
        )

        numbering = NumberingConfig(
            application_prefix=os.getenv("LAMF_APPLICATION_PREFIX", "LAMF"),
            loan_prefix=os.getenv("LAMF_LOAN_PREFIX", "LN"),
        )

        return cls(
            kafka=kafka,
            events=events,
            numbering=numbering,
            log_level=os.getenv("LAMF_LOG_LEVEL", "INFO"),
            log_format=os.getenv("LAMF_LOG_FORMAT", "standard"),
        )
