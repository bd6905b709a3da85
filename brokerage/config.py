"""Configuration management for the brokerage engine."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from brokerage.exceptions import ConfigurationError


@dataclass
class KafkaConfig:
    """Kafka producer configuration for the change feed."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3
    topic_prefix: str = "dev.brokerage"

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
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class EngineConfig:
    """Defaults applied by stores and the service facade."""

    default_commission_rate: Decimal = Decimal("3")
    deadline_window_days: int = 7
    page_limit: int = 10
    source: str = "brokerage-engine"  # Event source name


@dataclass
class BrokerageConfig:
    """Main configuration for the brokerage engine."""

    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    seed: int | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "BrokerageConfig":
        """Create config from environment variables."""
        import os

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
            topic_prefix=os.getenv("TOPIC_PREFIX", "dev.brokerage"),
        )

        output = OutputConfig(
            json_output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
        )

        try:
            rate = Decimal(os.getenv("DEFAULT_COMMISSION_RATE", "3"))
        except InvalidOperation as exc:
            raise ConfigurationError("DEFAULT_COMMISSION_RATE must be a number") from exc

        engine = EngineConfig(
            default_commission_rate=rate,
            deadline_window_days=_int_env("DEADLINE_WINDOW_DAYS", "7"),
            page_limit=_int_env("PAGE_LIMIT", "10"),
            source=os.getenv("EVENT_SOURCE", "brokerage-engine"),
        )

        if engine.page_limit <= 0:
            raise ConfigurationError("PAGE_LIMIT must be positive")

        seed = os.getenv("SEED")

        return cls(
            kafka=kafka,
            output=output,
            engine=engine,
            seed=_int_env("SEED", seed) if seed else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


def _int_env(name: str, default: str) -> int:
    """Read an integer environment variable."""
    import os

    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
