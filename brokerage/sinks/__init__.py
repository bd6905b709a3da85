"""Output sinks for entity snapshots and the change feed."""

from brokerage.sinks.console import ConsoleSink
from brokerage.sinks.json_file import JsonFileSink
from brokerage.sinks.kafka import KafkaSink
from brokerage.sinks.serialization import serialize_value, to_dict, to_json

__all__ = ["ConsoleSink", "JsonFileSink", "KafkaSink", "serialize_value", "to_dict", "to_json"]
