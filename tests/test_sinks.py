"""Tests for output sinks and the change feed."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from brokerage.config import KafkaConfig
from brokerage.exceptions import SinkError
from brokerage.models import Event
from brokerage.sinks.console import ConsoleSink
from brokerage.sinks.json_file import JsonFileSink
from brokerage.store import PropertyStore


def make_event(event_type: str = "property.created", subject: str = "p1") -> Event:
    return Event(
        event_id="evt-1",
        event_type=event_type,
        event_time=datetime(2024, 6, 1, 12, 0),
        source="brokerage-engine",
        subject=subject,
        data={"price": "450000"},
    )


class TestConsoleSink:
    """Tests for ConsoleSink."""

    def test_write_batch_entities(
        self, capsys: pytest.CaptureFixture, property_payload: dict[str, Any]
    ) -> None:
        store = PropertyStore()
        prop = store.create(property_payload)
        sink = ConsoleSink(pretty=False)

        sink.write_batch("property", [prop])
        captured = capsys.readouterr()

        assert "Entity: property (1 records)" in captured.out
        assert prop.property_id in captured.out
        assert '"price": "450000"' in captured.out

    def test_max_records(self, capsys: pytest.CaptureFixture) -> None:
        sink = ConsoleSink(pretty=False, max_records=2)
        sink.write_batch("client", [{"id": i} for i in range(5)])
        captured = capsys.readouterr()

        assert "... and 3 more records" in captured.out
        assert sink._counts["client"] == 5

    def test_publish_counts_by_event_type(self, capsys: pytest.CaptureFixture) -> None:
        sink = ConsoleSink()
        sink.publish(make_event())
        sink.publish(make_event())
        sink.close()
        captured = capsys.readouterr()

        assert "property.created: 2 records" in captured.out


class TestJsonFileSink:
    """Tests for JsonFileSink."""

    def test_write_batch(self, tmp_path: Path, property_payload: dict[str, Any]) -> None:
        store = PropertyStore()
        prop = store.create(property_payload)
        sink = JsonFileSink(tmp_path)

        sink.write_batch("property", [prop])

        data = json.loads((tmp_path / "property.json").read_text())
        assert data[0]["property_id"] == prop.property_id
        assert data[0]["address"]["city"] == "Austin"
        assert data[0]["status"] == "active"

    def test_creates_directory(self, tmp_path: Path) -> None:
        JsonFileSink(tmp_path / "nested" / "out")
        assert (tmp_path / "nested" / "out").is_dir()

    def test_publish_appends_jsonl(self, tmp_path: Path) -> None:
        sink = JsonFileSink(tmp_path)
        sink.publish(make_event(subject="p1"))
        sink.publish(make_event("property.updated", subject="p1"))
        sink.close()

        lines = (tmp_path / "events.jsonl").read_text().splitlines()
        assert [json.loads(line)["event_type"] for line in lines] == [
            "property.created",
            "property.updated",
        ]

    def test_store_change_feed(self, tmp_path: Path, property_payload: dict[str, Any]) -> None:
        """A store wired to the sink logs every mutation."""
        sink = JsonFileSink(tmp_path)
        store = PropertyStore(sink=sink)
        prop = store.create(property_payload)
        store.remove(prop.property_id)
        sink.close()

        events = [json.loads(line) for line in (tmp_path / "events.jsonl").read_text().splitlines()]
        assert [e["event_type"] for e in events] == ["property.created", "property.deleted"]
        assert {e["subject"] for e in events} == {prop.property_id}

    def test_write_failure(self, tmp_path: Path) -> None:
        sink = JsonFileSink(tmp_path)
        (tmp_path / "property.json").mkdir()
        with pytest.raises(SinkError):
            sink.write_batch("property", [{"id": 1}])


class TestKafkaSink:
    """Tests for KafkaSink with a mocked producer."""

    @patch("brokerage.sinks.kafka.Producer")
    def test_init_with_string(self, mock_producer_class: MagicMock) -> None:
        from brokerage.sinks.kafka import KafkaSink

        sink = KafkaSink("kafka:9092")

        assert sink.config.bootstrap_servers == "kafka:9092"
        config = mock_producer_class.call_args[0][0]
        assert config["bootstrap.servers"] == "kafka:9092"

    @patch("brokerage.sinks.kafka.Producer")
    def test_publish_topic_and_key(self, mock_producer_class: MagicMock) -> None:
        from brokerage.sinks.kafka import KafkaSink

        producer = mock_producer_class.return_value
        sink = KafkaSink(KafkaConfig(topic_prefix="dev.brokerage"))

        sink.publish(make_event("transaction.status_changed", subject="t1"))

        kwargs = producer.produce.call_args.kwargs
        assert kwargs["topic"] == "dev.brokerage.transaction"
        assert kwargs["key"] == b"t1"
        assert json.loads(kwargs["value"])["event_type"] == "transaction.status_changed"
        assert sink.stats.sent == 1
        producer.poll.assert_called_with(0)

    @patch("brokerage.sinks.kafka.Producer")
    def test_write_batch_keys_by_identity(
        self, mock_producer_class: MagicMock, property_payload: dict[str, Any]
    ) -> None:
        from brokerage.sinks.kafka import KafkaSink

        producer = mock_producer_class.return_value
        producer.flush.return_value = 0
        prop = PropertyStore().create(property_payload)
        sink = KafkaSink("localhost:9092")

        sink.write_batch("property", [prop])

        kwargs = producer.produce.call_args.kwargs
        assert kwargs["topic"] == "dev.brokerage.property"
        assert kwargs["key"] == prop.property_id.encode("utf-8")
        producer.flush.assert_called_once()

    @patch("brokerage.sinks.kafka.Producer")
    def test_buffer_error_raises_sink_error(self, mock_producer_class: MagicMock) -> None:
        from brokerage.sinks.kafka import KafkaSink

        mock_producer_class.return_value.produce.side_effect = BufferError("queue full")
        sink = KafkaSink("localhost:9092")

        with pytest.raises(SinkError):
            sink.publish(make_event())
        assert sink.stats.sent == 0

    @patch("brokerage.sinks.kafka.Producer")
    def test_delivery_callback(self, mock_producer_class: MagicMock) -> None:
        from brokerage.sinks.kafka import KafkaSink

        sink = KafkaSink("localhost:9092")
        msg = MagicMock()
        msg.topic.return_value = "dev.brokerage.client"
        msg.partition.return_value = 0
        msg.offset.return_value = 7

        sink._delivery_callback(None, msg)
        sink._delivery_callback("broker down", msg)

        assert sink.stats.delivered == 1
        assert sink.stats.failed == 1
        assert sink.stats.success_rate == 0.5

    @patch("brokerage.sinks.kafka.Producer")
    def test_flush_warns_on_remaining(
        self, mock_producer_class: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        from brokerage.sinks.kafka import KafkaSink

        mock_producer_class.return_value.flush.return_value = 3
        sink = KafkaSink("localhost:9092")
        sink.close()

        assert "3 messages still queued" in caplog.text
