"""Tests for event sinks and serialization."""

import json
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from confluent_kafka import KafkaException

from lamf_core.config import EventConfig, KafkaConfig, LamfConfig
from lamf_core.exceptions import SinkError
from lamf_core.models import Event, InstallmentStatus, LienStatus
from lamf_core.sinks import ConsoleSink, JsonLinesSink, KafkaSink, create_sink
from lamf_core.sinks.kafka import ProducerStats
from lamf_core.sinks.serialization import serialize_value, to_dict, to_json


@pytest.fixture
def event() -> Event:
    """Sample disbursal event."""
    return Event(
        event_id="evt-001",
        event_type="loan.disbursed",
        event_time=datetime(2025, 1, 15, 10, 30),
        source="lamf-core",
        subject="LN2025000001",
        data={"disbursed_amount": Decimal("500000.00"), "first_due": date(2025, 2, 15)},
    )


class TestSerialization:
    """Tests for serialization helpers."""

    def test_serialize_scalars(self) -> None:
        """Test Decimal, Enum and date conversion."""
        assert serialize_value(Decimal("23536.74")) == "23536.74"
        assert serialize_value(LienStatus.MARKED) == "marked"
        assert serialize_value(date(2025, 2, 15)) == "2025-02-15"
        assert serialize_value(datetime(2025, 1, 15, 10, 30)) == "2025-01-15T10:30:00"

    def test_serialize_nested(self) -> None:
        """Test nested containers are walked."""
        value = {"emis": [(1, InstallmentStatus.PAID)], "amount": Decimal("1.50")}

        assert serialize_value(value) == {"emis": [[1, "paid"]], "amount": "1.50"}

    def test_to_dict_event(self, event: Event) -> None:
        """Test dataclass conversion keeps money scale."""
        result = to_dict(event)

        assert result["event_time"] == "2025-01-15T10:30:00"
        assert result["data"]["disbursed_amount"] == "500000.00"
        assert result["data"]["first_due"] == "2025-02-15"

    def test_to_dict_fallback(self) -> None:
        """Test non-dataclass, non-dict values are wrapped."""
        assert to_dict(42) == {"value": "42"}

    def test_to_json(self, event: Event) -> None:
        """Test compact and pretty output."""
        compact = to_json(event)
        pretty = to_json(event, pretty=True)

        assert "\n" not in compact
        assert "\n" in pretty
        assert json.loads(compact) == json.loads(pretty)


class TestConsoleSink:
    """Tests for ConsoleSink."""

    def test_send(self, event: Event, capsys: pytest.CaptureFixture) -> None:
        """Test an event is printed under its topic and key."""
        sink = ConsoleSink(pretty=False)

        sink.send("lamf.loan", event, key=event.subject)
        captured = capsys.readouterr()

        assert "[lamf.loan] LN2025000001" in captured.out
        assert '"event_type": "loan.disbursed"' in captured.out
        assert sink._counts == {"lamf.loan": 1}

    def test_close_prints_summary(self, event: Event, capsys: pytest.CaptureFixture) -> None:
        """Test the summary lists per-topic counts."""
        sink = ConsoleSink()
        sink.send("lamf.loan", event)
        sink.send("lamf.loan", event)
        sink.flush()

        sink.close()
        captured = capsys.readouterr()

        assert "Console Sink Summary" in captured.out
        assert "lamf.loan: 2 events" in captured.out


class TestJsonLinesSink:
    """Tests for JsonLinesSink."""

    def test_creates_output_dir(self, tmp_path: Path) -> None:
        """Test the output directory is created."""
        target = tmp_path / "nested" / "events"

        JsonLinesSink(target)

        assert target.is_dir()

    def test_path_for(self, tmp_path: Path) -> None:
        """Test topic to file mapping."""
        sink = JsonLinesSink(tmp_path)

        assert sink.path_for("lamf.collateral") == tmp_path / "lamf_collateral.jsonl"

    def test_send_appends_lines(self, tmp_path: Path, event: Event) -> None:
        """Test each event is one JSON line."""
        sink = JsonLinesSink(tmp_path)

        sink.send("lamf.loan", event)
        sink.send("lamf.loan", event)
        sink.close()

        lines = (tmp_path / "lamf_loan.jsonl").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["subject"] == "LN2025000001"

    def test_reopen_appends(self, tmp_path: Path, event: Event) -> None:
        """Test a second sink appends to existing files."""
        for _ in range(2):
            sink = JsonLinesSink(tmp_path)
            sink.send("lamf.loan", event)
            sink.close()

        assert len((tmp_path / "lamf_loan.jsonl").read_text(encoding="utf-8").splitlines()) == 2

    def test_write_failure_raises_sink_error(self, tmp_path: Path, event: Event) -> None:
        """Test OS errors surface as SinkError."""
        sink = JsonLinesSink(tmp_path)
        sink.path_for("lamf.loan").mkdir()

        with pytest.raises(SinkError):
            sink.send("lamf.loan", event)


class TestKafkaSinkMocked:
    """Tests for KafkaSink using mocks (no actual Kafka connection)."""

    def test_producer_stats(self) -> None:
        """Test success rate and throughput."""
        stats = ProducerStats(sent=10, delivered=9, failed=1, start_time=0.0, end_time=2.0)

        assert stats.success_rate == 0.9
        assert stats.throughput == 5.0
        assert ProducerStats().success_rate == 0.0
        assert ProducerStats(sent=3).throughput == 0.0

    @patch("lamf_core.sinks.kafka.Producer")
    def test_init_with_string(self, mock_producer_class: MagicMock) -> None:
        """Test KafkaSink initialization with bootstrap servers."""
        sink = KafkaSink("kafka:9092")

        assert sink.config.bootstrap_servers == "kafka:9092"
        config_dict = mock_producer_class.call_args[0][0]
        assert config_dict["bootstrap.servers"] == "kafka:9092"
        assert config_dict["acks"] == "all"

    @patch("lamf_core.sinks.kafka.Producer")
    def test_init_with_config(self, mock_producer_class: MagicMock) -> None:
        """Test KafkaSink initialization with KafkaConfig."""
        config = KafkaConfig(bootstrap_servers="kafka:9092", acks="1")

        sink = KafkaSink(config)

        assert sink.config is config
        assert mock_producer_class.call_args[0][0]["acks"] == "1"

    @patch("lamf_core.sinks.kafka.Producer")
    def test_send(self, mock_producer_class: MagicMock, event: Event) -> None:
        """Test an event is produced as keyed JSON."""
        mock_producer = mock_producer_class.return_value
        sink = KafkaSink("localhost:9092")

        sink.send("lamf.loan", event, key="LN2025000001")

        kwargs = mock_producer.produce.call_args.kwargs
        assert kwargs["topic"] == "lamf.loan"
        assert kwargs["key"] == b"LN2025000001"
        assert json.loads(kwargs["value"])["event_type"] == "loan.disbursed"
        mock_producer.poll.assert_called_once_with(0)
        assert sink.stats.sent == 1

    @patch("lamf_core.sinks.kafka.Producer")
    def test_send_key_defaults_to_subject(self, mock_producer_class: MagicMock, event: Event) -> None:
        """Test the event subject is used as key when none is given."""
        sink = KafkaSink("localhost:9092")

        sink.send("lamf.loan", event)

        assert mock_producer_class.return_value.produce.call_args.kwargs["key"] == b"LN2025000001"

    @patch("lamf_core.sinks.kafka.Producer")
    def test_send_without_key(self, mock_producer_class: MagicMock) -> None:
        """Test records without a subject are sent unkeyed."""
        sink = KafkaSink("localhost:9092")

        sink.send("lamf.misc", {"id": 1})

        assert mock_producer_class.return_value.produce.call_args.kwargs["key"] is None

    @pytest.mark.parametrize("error", [BufferError("queue full"), KafkaException("broker down")])
    @patch("lamf_core.sinks.kafka.Producer")
    def test_send_failure(self, mock_producer_class: MagicMock, error: Exception, event: Event) -> None:
        """Test producer errors surface as SinkError."""
        mock_producer_class.return_value.produce.side_effect = error
        sink = KafkaSink("localhost:9092")

        with pytest.raises(SinkError):
            sink.send("lamf.loan", event)
        assert sink.stats.failed == 1
        assert sink.stats.sent == 0

    @patch("lamf_core.sinks.kafka.Producer")
    def test_delivery_callback(self, mock_producer_class: MagicMock) -> None:
        """Test delivery reports update stats."""
        sink = KafkaSink("localhost:9092")
        msg = MagicMock()
        msg.topic.return_value = "lamf.loan"
        msg.partition.return_value = 0
        msg.offset.return_value = 7

        sink._delivery_callback(None, msg)
        sink._delivery_callback("Connection error", None)

        assert sink.stats.delivered == 1
        assert sink.stats.failed == 1

    @patch("lamf_core.sinks.kafka.Producer")
    def test_flush(self, mock_producer_class: MagicMock) -> None:
        """Test flush passes the timeout through."""
        mock_producer_class.return_value.flush.return_value = 0
        sink = KafkaSink("localhost:9092")

        sink.flush(timeout=10.0)

        mock_producer_class.return_value.flush.assert_called_once_with(10.0)

    @patch("lamf_core.sinks.kafka.Producer")
    def test_close(self, mock_producer_class: MagicMock) -> None:
        """Test close flushes and records the end time."""
        mock_producer_class.return_value.flush.return_value = 0
        sink = KafkaSink("localhost:9092")

        sink.close()

        mock_producer_class.return_value.flush.assert_called_once()
        assert sink.stats.end_time is not None


class TestCreateSink:
    """Tests for create_sink."""

    def test_none(self) -> None:
        """Test no sink is built by default."""
        assert create_sink(LamfConfig()) is None

    def test_console(self) -> None:
        """Test console sink selection."""
        assert isinstance(create_sink(LamfConfig(events=EventConfig(sink="console"))), ConsoleSink)

    def test_jsonl(self, tmp_path: Path) -> None:
        """Test JSON Lines sink uses the configured directory."""
        sink = create_sink(LamfConfig(events=EventConfig(sink="jsonl", output_dir=tmp_path)))

        assert isinstance(sink, JsonLinesSink)
        assert sink.output_dir == tmp_path

    @patch("lamf_core.sinks.kafka.Producer")
    def test_kafka(self, mock_producer_class: MagicMock) -> None:
        """Test Kafka sink uses the configured brokers."""
        config = LamfConfig(
            events=EventConfig(sink="kafka"), kafka=KafkaConfig(bootstrap_servers="kafka:9092")
        )

        sink = create_sink(config)

        assert isinstance(sink, KafkaSink)
        assert sink.config.bootstrap_servers == "kafka:9092"
