"""Client store."""

from dataclasses import replace
from datetime import datetime
from typing import Any

from brokerage.engine.aggregation import CLIENT_STATS
from brokerage.models import Client, ClientNoteType
from brokerage.store.base import CollectionStore
from brokerage.validation import (
    apply_client_changes,
    build_client,
    build_note,
    datetime_value,
)


class ClientStore(CollectionStore[Client]):
    """Clients keyed by ``client_id``.

    Notes, follow-ups, property interests and linked transactions have their
    own operations; property interests and transaction links behave as sets.
    """

    entity_name = "client"
    id_field = "client_id"
    stats_spec = CLIENT_STATS

    def _build(self, data: dict[str, Any], entity_id: str, now: datetime) -> Client:
        return build_client(data, client_id=entity_id, now=now)

    def _apply(self, entity: Client, changes: dict[str, Any], now: datetime) -> Client:
        return apply_client_changes(entity, changes, now)

    def remove(self, client_id: str) -> Client:
        return self._remove(client_id)

    def _change(self, client_id: str, action: str, **values: Any) -> Client:
        updated = replace(self.get(client_id), updated_at=self.clock(), **values)
        self._put(updated, action, pending=False)
        return updated

    def add_note(
        self,
        client_id: str,
        content: str,
        author_id: str,
        note_type: ClientNoteType | str = ClientNoteType.GENERAL,
        is_private: bool = False,
    ) -> Client:
        """Append a note; existing notes are never touched.

        Raises
        ------
        EntityNotFoundError
            If the client does not exist.
        ValidationError
            If the content or author is blank, or the note type is unknown.
        """
        client = self.get(client_id)
        note = build_note(
            {
                "content": content,
                "author_id": author_id,
                "note_type": note_type,
                "is_private": is_private,
            },
            ClientNoteType,
            self.clock(),
        )
        return self._change(client_id, "note_added", notes=[*client.notes, note])

    def schedule_follow_up(self, client_id: str, when: datetime | str) -> Client:
        self.get(client_id)
        follow_up = datetime_value(when, "next_follow_up_date", required=True)
        return self._change(client_id, "follow_up_scheduled", next_follow_up_date=follow_up)

    def record_contact(self, client_id: str, when: datetime | None = None) -> Client:
        """Stamp the last contact date (default: now)."""
        self.get(client_id)
        return self._change(client_id, "contacted", last_contact_date=when or self.clock())

    def add_property_interest(self, client_id: str, property_id: str) -> Client:
        """Record interest in a property; a repeated interest is a no-op."""
        client = self.get(client_id)
        if property_id in client.property_interests:
            return client
        return self._change(
            client_id,
            "interest_added",
            property_interests=[*client.property_interests, property_id],
        )

    def remove_property_interest(self, client_id: str, property_id: str) -> Client:
        client = self.get(client_id)
        if property_id not in client.property_interests:
            return client
        return self._change(
            client_id,
            "interest_removed",
            property_interests=[p for p in client.property_interests if p != property_id],
        )

    def link_transaction(self, client_id: str, transaction_id: str) -> Client:
        client = self.get(client_id)
        if transaction_id in client.transaction_ids:
            return client
        return self._change(
            client_id,
            "transaction_linked",
            transaction_ids=[*client.transaction_ids, transaction_id],
        )

    def needing_follow_up(self, now: datetime | None = None) -> list[Client]:
        """Clients whose follow-up date is on or before ``now``, earliest first."""
        now = now or self.clock()
        due = [
            c
            for c in self._entities.values()
            if c.next_follow_up_date is not None and c.next_follow_up_date <= now
        ]
        return sorted(due, key=lambda c: c.next_follow_up_date)
