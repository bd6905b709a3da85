"""Shared serialization utilities for sinks and the change feed."""

import json
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


def to_dict(obj: Any) -> dict:
    """Convert an entity, event or mapping to a JSON-ready dictionary."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: serialize_value(getattr(obj, f.name)) for f in fields(obj)}
    elif isinstance(obj, dict):
        return {k: serialize_value(v) for k, v in obj.items()}
    else:
        return {"value": str(obj)}


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output.

    Money stays exact: ``Decimal`` is written as its string form.
    """
    if is_dataclass(value) and not isinstance(value, type):
        return to_dict(value)
    elif isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple, set, frozenset)):
        return [serialize_value(v) for v in value]
    return value


def to_json(obj: Any, pretty: bool = False) -> str:
    """Serialize ``obj`` to a JSON string."""
    return json.dumps(to_dict(obj), indent=2 if pretty else None, ensure_ascii=False)


def entity_topic(prefix: str, event_type: str) -> str:
    """Topic for an event: ``<prefix>.<entity>`` (e.g. dev.brokerage.transaction)."""
    entity = event_type.split(".", 1)[0]
    return f"{prefix}.{entity}"
