"""Logging setup for the brokerage engine.

Stores and the service attach entity context to their records with
``extra=log_context(...)``. Both formatters render it: the standard one
appends ``[entity operation id]`` to the message, the JSON one adds the
fields as top-level keys.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

CONTEXT_FIELDS = ("entity", "operation", "entity_id", "event_type")

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s%(context)s"


def log_context(
    entity: str,
    operation: str | None = None,
    entity_id: str | None = None,
    event_type: str | None = None,
) -> dict[str, str]:
    """Build the ``extra`` mapping for a log call about one entity."""
    values = {
        "entity": entity,
        "operation": operation,
        "entity_id": entity_id,
        "event_type": event_type,
    }
    return {key: value for key, value in values.items() if value is not None}


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}


class ContextFormatter(logging.Formatter):
    """Plain-text formatter with a trailing entity context block."""

    def __init__(self) -> None:
        super().__init__(fmt=STANDARD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        context = _context(record)
        record.context = f" [{' '.join(str(v) for v in context.values())}]" if context else ""
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(_context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Free-form fields passed as extra={"extra": {...}}
        if isinstance(getattr(record, "extra", None), dict):
            log_data.update(record.extra)

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    stream: TextIO | None = None,
) -> None:
    """Configure logging for the brokerage engine.

    Parameters
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Unknown names
        fall back to INFO.
    format_type : str
        "standard" or "json".
    stream : TextIO | None
        Destination (default stdout).
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = JsonFormatter() if format_type == "json" else ContextFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.getLogger("brokerage").setLevel(log_level)

    # Reduce noise from external libraries
    logging.getLogger("confluent_kafka").setLevel(logging.WARNING)
    logging.getLogger("faker").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (usually ``__name__``)."""
    return logging.getLogger(name)
