"""Kafka sink publishing the entity change feed."""

import json
import logging
from dataclasses import dataclass
from typing import Any

from confluent_kafka import KafkaException, Producer

from brokerage.config import KafkaConfig
from brokerage.exceptions import SinkError
from brokerage.models import Event
from brokerage.sinks.serialization import entity_topic, to_dict

logger = logging.getLogger(__name__)


@dataclass
class ProducerStats:
    """Track producer delivery statistics."""

    sent: int = 0
    delivered: int = 0
    failed: int = 0

    @property
    def success_rate(self) -> float:
        total = self.delivered + self.failed
        return self.delivered / total if total > 0 else 0.0


class KafkaSink:
    """Publish change events to ``<topic_prefix>.<entity>`` topics.

    Messages are keyed by the event subject (the entity identity), so every
    change of one entity lands on the same partition in order.
    """

    # Topic suffix to key field for snapshot batches
    KEY_FIELDS = {
        "property": "property_id",
        "client": "client_id",
        "transaction": "transaction_id",
    }

    def __init__(self, config: KafkaConfig | str) -> None:
        """Initialize Kafka sink.

        Parameters
        ----------
        config : KafkaConfig | str
            Producer configuration or bootstrap servers string.
        """
        if isinstance(config, str):
            config = KafkaConfig(bootstrap_servers=config)

        self.config = config
        self.producer = Producer(config.to_dict())
        self.stats = ProducerStats()

    def _delivery_callback(self, err: Any, msg: Any) -> None:
        """Handle delivery reports."""
        if err:
            self.stats.failed += 1
            logger.error("Delivery failed: %s", err)
        else:
            self.stats.delivered += 1
            logger.debug("Delivered to %s[%d]@%d", msg.topic(), msg.partition(), msg.offset())

    def send(self, topic: str, data: dict, key: str | None = None) -> None:
        """Send a single JSON message to ``topic``."""
        value = json.dumps(data, ensure_ascii=False).encode("utf-8")
        try:
            self.producer.produce(
                topic=topic,
                key=key.encode("utf-8") if key else None,
                value=value,
                callback=self._delivery_callback,
            )
        except (BufferError, KafkaException) as exc:
            raise SinkError(f"Failed to produce to {topic}: {exc}") from exc
        self.stats.sent += 1
        self.producer.poll(0)

    def publish(self, event: Event) -> None:
        """Publish one change event keyed by its subject."""
        topic = entity_topic(self.config.topic_prefix, event.event_type)
        self.send(topic, to_dict(event), key=event.subject)

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write entity snapshots to ``<topic_prefix>.<entity_type>``."""
        topic = f"{self.config.topic_prefix}.{entity_type}"
        key_field = self.KEY_FIELDS.get(entity_type)
        logger.info("Writing batch to %s: %d records", topic, len(records))

        for record in records:
            data = to_dict(record)
            self.send(topic, data, key=data.get(key_field) if key_field else None)

        self.flush()
        logger.info(
            "Batch complete: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )

    def flush(self, timeout: float = 30.0) -> None:
        """Flush pending messages."""
        remaining = self.producer.flush(timeout)
        if remaining:
            logger.warning("%d messages still queued after flush", remaining)

    def close(self) -> None:
        """Flush and close the producer."""
        self.flush()
        logger.info(
            "Kafka sink closed: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )
