"""Request/response boundary between the engine and a remote backend."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from brokerage.engine.milestones import MilestoneSpec
from brokerage.engine.predicates import FilterSpec
from brokerage.models import Client, Note, Transaction

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a list result."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = 0


class EntityGateway(ABC, Generic[T]):
    """Remote CRUD operations for one entity type.

    Implementations raise ``TransportError`` for any failure of the remote
    call itself, and ``EntityNotFoundError`` when the backend has no such
    entity.
    """

    @abstractmethod
    def list(self, filter_spec: FilterSpec | None = None, page: int = 1, limit: int | None = 10) -> Page[T]:
        """Fetch one page of entities matching ``filter_spec``."""

    @abstractmethod
    def get(self, entity_id: str) -> T:
        """Fetch one entity."""

    @abstractmethod
    def create(self, entity: T) -> T:
        """Persist a new entity; returns the stored copy."""

    @abstractmethod
    def update(self, entity_id: str, changes: dict[str, Any]) -> T:
        """Apply a partial update; returns the stored copy."""

    @abstractmethod
    def delete(self, entity_id: str) -> None:
        """Delete an entity."""


class ClientGateway(EntityGateway[Client]):
    """Client operations with an append-only note log."""

    @abstractmethod
    def add_note(self, client_id: str, note: Note) -> Client:
        """Append a note to a client."""


class TransactionGateway(EntityGateway[Transaction]):
    """Transaction operations that go beyond plain partial updates."""

    @abstractmethod
    def update_status(self, transaction_id: str, status: str) -> Transaction:
        """Move a transaction to ``status``."""

    @abstractmethod
    def add_milestone(self, transaction_id: str, spec: MilestoneSpec) -> Transaction:
        """Attach a milestone."""

    @abstractmethod
    def complete_milestone(
        self, transaction_id: str, milestone_id: str, completed_at: datetime | None = None
    ) -> Transaction:
        """Complete a milestone."""

    @abstractmethod
    def add_note(self, transaction_id: str, note: Note) -> Transaction:
        """Append a note to a transaction."""
