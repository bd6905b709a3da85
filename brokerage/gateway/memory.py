"""In-memory gateways backed by collection stores.

These play the remote backend in tests and sample scripts. Each wraps its
own store, so the "server" state stays separate from the local store the
service mutates optimistically.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime
from typing import Any, Generic, TypeVar

from brokerage.engine import milestones
from brokerage.engine.milestones import MilestoneSpec
from brokerage.engine.predicates import FilterSpec
from brokerage.exceptions import TransportError
from brokerage.gateway.base import ClientGateway, EntityGateway, Page, TransactionGateway
from brokerage.models import Client, Note, Property, Transaction
from brokerage.store import ClientStore, CollectionStore, PropertyStore, TransactionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InMemoryGateway(EntityGateway[T], Generic[T]):
    """Reference gateway over a ``CollectionStore``.

    Parameters
    ----------
    store : CollectionStore
        Backend state.
    fail_on : set[str] | None
        Operation names (``list``, ``get``, ``create``, ``update``,
        ``delete`` and the type-specific ones) that raise ``TransportError``.
    """

    def __init__(self, store: CollectionStore, fail_on: set[str] | None = None) -> None:
        self.store = store
        self.fail_on: set[str] = set(fail_on or ())
        self.calls: list[str] = []

    def fail(self, *operations: str) -> None:
        """Make ``operations`` fail until ``recover`` is called."""
        self.fail_on.update(operations)

    def recover(self, *operations: str) -> None:
        """Stop failing ``operations`` (all of them when none are named)."""
        if operations:
            self.fail_on.difference_update(operations)
        else:
            self.fail_on.clear()

    def _call(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            logger.debug("Injected failure for %s.%s", self.store.entity_name, operation)
            raise TransportError(
                f"{self.store.entity_name} {operation} failed: backend unavailable",
                operation=operation,
            )

    def list(self, filter_spec: FilterSpec | None = None, page: int = 1, limit: int | None = 10) -> Page[T]:
        self._call("list")
        if page < 1:
            raise ValueError("page must be >= 1")
        items = self.store.list(filter_spec or {})
        total = len(items)
        if limit is None:
            return Page(items=items, total=total, page=1, total_pages=1 if total else 0)
        if limit <= 0:
            raise ValueError("limit must be positive")
        start = (page - 1) * limit
        return Page(
            items=items[start : start + limit],
            total=total,
            page=page,
            total_pages=math.ceil(total / limit),
        )

    def get(self, entity_id: str) -> T:
        self._call("get")
        return self.store.get(entity_id)

    def create(self, entity: T) -> T:
        self._call("create")
        return self.store.load(entity)

    def update(self, entity_id: str, changes: dict[str, Any]) -> T:
        self._call("update")
        return self.store.update(entity_id, changes)

    def delete(self, entity_id: str) -> None:
        self._call("delete")
        self.store.remove(entity_id)


class InMemoryPropertyGateway(InMemoryGateway[Property]):
    def __init__(self, store: PropertyStore | None = None, fail_on: set[str] | None = None) -> None:
        super().__init__(store or PropertyStore(), fail_on)


class InMemoryClientGateway(InMemoryGateway[Client], ClientGateway):
    def __init__(self, store: ClientStore | None = None, fail_on: set[str] | None = None) -> None:
        super().__init__(store or ClientStore(), fail_on)

    def add_note(self, client_id: str, note: Note) -> Client:
        self._call("add_note")
        client = self.store.get(client_id)
        return self.store.load(replace(client, notes=[*client.notes, note]))


class InMemoryTransactionGateway(InMemoryGateway[Transaction], TransactionGateway):
    """Transactions are closed or cancelled, never deleted; ``delete`` always fails."""

    def __init__(self, store: TransactionStore | None = None, fail_on: set[str] | None = None) -> None:
        super().__init__(store or TransactionStore(), fail_on)

    def delete(self, entity_id: str) -> None:
        self._call("delete")
        raise TransportError("transactions cannot be deleted", operation="delete")

    def update_status(self, transaction_id: str, status: str) -> Transaction:
        self._call("update_status")
        return self.store.update_status(transaction_id, status)

    def add_milestone(self, transaction_id: str, spec: MilestoneSpec) -> Transaction:
        self._call("add_milestone")
        return self.store.add_milestone(transaction_id, spec)

    def complete_milestone(
        self, transaction_id: str, milestone_id: str, completed_at: datetime | None = None
    ) -> Transaction:
        self._call("complete_milestone")
        updated = milestones.complete_milestone(
            self.store.get(transaction_id), milestone_id, completed_at or self.store.clock()
        )
        return self.store.load(updated)

    def add_note(self, transaction_id: str, note: Note) -> Transaction:
        self._call("add_note")
        transaction = self.store.get(transaction_id)
        return self.store.load(replace(transaction, notes=[*transaction.notes, note]))
