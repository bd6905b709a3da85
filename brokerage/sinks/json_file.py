"""JSON file sink for exporting entities and change events."""

import json
import logging
from pathlib import Path
from typing import Any, TextIO

from brokerage.exceptions import SinkError
from brokerage.models import Event
from brokerage.sinks.serialization import to_dict

logger = logging.getLogger(__name__)


class JsonFileSink:
    """Output entity snapshots to JSON files and events to a JSON Lines log."""

    def __init__(self, output_dir: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write JSON files.
        pretty : bool
            Pretty-print JSON output.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.pretty = pretty
        self._counts: dict[str, int] = {}
        self._events: TextIO | None = None

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write a batch of records to ``<entity_type>.json``."""
        file_path = self.output_dir / f"{entity_type}.json"
        data = [to_dict(record) for record in records]

        try:
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2 if self.pretty else None, ensure_ascii=False)
        except OSError as exc:
            raise SinkError(f"Failed to write {file_path}: {exc}") from exc

        self._counts[entity_type] = len(records)
        logger.debug("Wrote %d %s records to %s", len(records), entity_type, file_path)

    def publish(self, event: Event) -> None:
        """Append one event to ``events.jsonl``."""
        try:
            if self._events is None:
                self._events = open(self.output_dir / "events.jsonl", "a", encoding="utf-8")
            self._events.write(json.dumps(to_dict(event), ensure_ascii=False) + "\n")
            self._events.flush()
        except OSError as exc:
            raise SinkError(f"Failed to append event {event.event_id}: {exc}") from exc
        self._counts["events"] = self._counts.get("events", 0) + 1

    def close(self) -> None:
        """Close the event log and print a summary."""
        if self._events is not None:
            self._events.close()
            self._events = None
        print(f"JSON files written to: {self.output_dir}")
        for entity_type, count in self._counts.items():
            print(f"  {entity_type}: {count} records")
