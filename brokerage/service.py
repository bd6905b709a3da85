"""Service facade pairing the local stores with a remote gateway.

Creates and updates are applied to the local store first, marked pending,
and confirmed with the backend's copy once the gateway call succeeds. When
the call fails the local change is kept as is: the failure is recorded in
the error slot for that operation kind and handed to ``on_failure`` so the
caller can reconcile. Nothing is rolled back or retried here.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, TypeVar

from brokerage.config import EngineConfig
from brokerage.engine.aggregation import TransactionAnalytics
from brokerage.engine.milestones import Deadline, MilestoneSpec, find_milestone
from brokerage.engine.predicates import FilterSpec
from brokerage.exceptions import TransportError
from brokerage.gateway import (
    ClientGateway,
    EntityGateway,
    InMemoryClientGateway,
    InMemoryPropertyGateway,
    InMemoryTransactionGateway,
    Page,
    TransactionGateway,
)
from brokerage.logging import log_context
from brokerage.models import (
    Client,
    ClientNoteType,
    Property,
    Transaction,
    TransactionNoteType,
)
from brokerage.store import ClientStore, PropertyStore, TransactionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

OPERATION_KINDS = ("fetch", "get", "create", "update", "delete")
ENTITY_NAMES = ("property", "client", "transaction")


@dataclass
class Failure:
    """A failed remote call, as passed to ``on_failure``."""

    entity: str  # property, client or transaction
    kind: str  # fetch, get, create, update or delete
    entity_id: str | None
    error: TransportError


def _as_spec(filter_spec: Any) -> FilterSpec | None:
    """Accept a raw filter mapping or a typed filter with ``to_spec()``."""
    if filter_spec is not None and hasattr(filter_spec, "to_spec"):
        return filter_spec.to_spec()
    return filter_spec


class BrokerageService:
    """Operations on properties, clients and transactions.

    Parameters
    ----------
    property_gateway : EntityGateway[Property]
        Remote boundary for listings.
    client_gateway : ClientGateway
        Remote boundary for clients.
    transaction_gateway : TransactionGateway
        Remote boundary for transactions.
    config : EngineConfig | None
        Commission rate, page size and deadline window defaults.
    sink : Any | None
        Change-feed sink shared by the local stores.
    clock : Callable[[], datetime] | None
        Source of "now" for the local stores.
    on_failure : Callable[[Failure], None] | None
        Called after a remote call fails, before the error is re-raised.
    """

    def __init__(
        self,
        property_gateway: EntityGateway[Property],
        client_gateway: ClientGateway,
        transaction_gateway: TransactionGateway,
        config: EngineConfig | None = None,
        sink: Any | None = None,
        clock: Callable[[], datetime] | None = None,
        on_failure: Callable[[Failure], None] | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.property_gateway = property_gateway
        self.client_gateway = client_gateway
        self.transaction_gateway = transaction_gateway
        self.on_failure = on_failure

        store_args = {"sink": sink, "clock": clock, "source": self.config.source}
        self.properties = PropertyStore(**store_args)
        self.clients = ClientStore(**store_args)
        self.transactions = TransactionStore(
            default_rate=self.config.default_commission_rate, **store_args
        )

        self.errors: dict[str, dict[str, TransportError | None]] = {
            entity: {kind: None for kind in OPERATION_KINDS} for entity in ENTITY_NAMES
        }

    @classmethod
    def in_memory(
        cls,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        **kwargs: Any,
    ) -> "BrokerageService":
        """Build a service over fresh in-memory gateways sharing ``clock``."""
        config = config or EngineConfig()
        return cls(
            InMemoryPropertyGateway(PropertyStore(clock=clock)),
            InMemoryClientGateway(ClientStore(clock=clock)),
            InMemoryTransactionGateway(
                TransactionStore(default_rate=config.default_commission_rate, clock=clock)
            ),
            config=config,
            clock=clock,
            **kwargs,
        )

    def error(self, entity: str, kind: str) -> TransportError | None:
        """Last unresolved transport error for ``entity`` and operation ``kind``."""
        return self.errors[entity][kind]

    def _remote(
        self,
        entity: str,
        kind: str,
        entity_id: str | None,
        call: Callable[[], T],
    ) -> T:
        try:
            result = call()
        except TransportError as exc:
            self.errors[entity][kind] = exc
            logger.warning(
                "Remote %s %s failed for %s: %s",
                entity,
                kind,
                entity_id or "collection",
                exc,
                extra=log_context(entity, kind, entity_id),
            )
            if self.on_failure is not None:
                self.on_failure(Failure(entity, kind, entity_id, exc))
            raise
        self.errors[entity][kind] = None
        return result

    # Properties

    def list_properties(
        self, filter_spec: Any = None, page: int = 1, limit: int | None = None
    ) -> Page[Property]:
        """Fetch a page of listings and make it the local collection."""
        result = self._remote(
            "property",
            "fetch",
            None,
            lambda: self.property_gateway.list(
                _as_spec(filter_spec), page, limit or self.config.page_limit
            ),
        )
        self.properties.hydrate(result.items)
        return result

    def get_property(self, property_id: str) -> Property:
        prop = self._remote(
            "property", "get", property_id, lambda: self.property_gateway.get(property_id)
        )
        return self.properties.load(prop)

    def create_property(self, data: dict[str, Any]) -> Property:
        local = self.properties.create(data, pending=True)
        remote = self._remote(
            "property", "create", local.property_id, lambda: self.property_gateway.create(local)
        )
        return self.properties.confirm(local.property_id, remote)

    def update_property(self, property_id: str, changes: dict[str, Any]) -> Property:
        self.properties.update(property_id, changes, pending=True)
        remote = self._remote(
            "property",
            "update",
            property_id,
            lambda: self.property_gateway.update(property_id, changes),
        )
        return self.properties.confirm(property_id, remote)

    def delete_property(self, property_id: str) -> None:
        """Delete remotely, then drop the local copy if there is one."""
        self._remote(
            "property", "delete", property_id, lambda: self.property_gateway.delete(property_id)
        )
        if property_id in self.properties:
            self.properties.remove(property_id)

    # Clients

    def list_clients(
        self, filter_spec: Any = None, page: int = 1, limit: int | None = None
    ) -> Page[Client]:
        result = self._remote(
            "client",
            "fetch",
            None,
            lambda: self.client_gateway.list(
                _as_spec(filter_spec), page, limit or self.config.page_limit
            ),
        )
        self.clients.hydrate(result.items)
        return result

    def get_client(self, client_id: str) -> Client:
        client = self._remote(
            "client", "get", client_id, lambda: self.client_gateway.get(client_id)
        )
        return self.clients.load(client)

    def create_client(self, data: dict[str, Any]) -> Client:
        local = self.clients.create(data, pending=True)
        remote = self._remote(
            "client", "create", local.client_id, lambda: self.client_gateway.create(local)
        )
        return self.clients.confirm(local.client_id, remote)

    def update_client(self, client_id: str, changes: dict[str, Any]) -> Client:
        self.clients.update(client_id, changes, pending=True)
        remote = self._remote(
            "client",
            "update",
            client_id,
            lambda: self.client_gateway.update(client_id, changes),
        )
        return self.clients.confirm(client_id, remote)

    def delete_client(self, client_id: str) -> None:
        self._remote(
            "client", "delete", client_id, lambda: self.client_gateway.delete(client_id)
        )
        if client_id in self.clients:
            self.clients.remove(client_id)

    def add_client_note(
        self,
        client_id: str,
        content: str,
        author_id: str,
        note_type: ClientNoteType | str = ClientNoteType.GENERAL,
        is_private: bool = False,
    ) -> Client:
        local = self.clients.add_note(client_id, content, author_id, note_type, is_private)
        self.clients.mark_pending(client_id)
        note = local.notes[-1]
        remote = self._remote(
            "client",
            "update",
            client_id,
            lambda: self.client_gateway.add_note(client_id, note),
        )
        return self.clients.confirm(client_id, remote)

    def schedule_follow_up(self, client_id: str, when: datetime | str) -> Client:
        local = self.clients.schedule_follow_up(client_id, when)
        self.clients.mark_pending(client_id)
        remote = self._remote(
            "client",
            "update",
            client_id,
            lambda: self.client_gateway.update(
                client_id, {"next_follow_up_date": local.next_follow_up_date}
            ),
        )
        return self.clients.confirm(client_id, remote)

    # Transactions

    def list_transactions(self, filter_spec: Any = None) -> list[Transaction]:
        """Fetch every matching transaction and make them the local collection."""
        result = self._remote(
            "transaction",
            "fetch",
            None,
            lambda: self.transaction_gateway.list(_as_spec(filter_spec), 1, None),
        )
        self.transactions.hydrate(result.items)
        return result.items

    def get_transaction(self, transaction_id: str) -> Transaction:
        transaction = self._remote(
            "transaction",
            "get",
            transaction_id,
            lambda: self.transaction_gateway.get(transaction_id),
        )
        return self.transactions.load(transaction)

    def create_transaction(self, data: dict[str, Any]) -> Transaction:
        local = self.transactions.create(data, pending=True)
        remote = self._remote(
            "transaction",
            "create",
            local.transaction_id,
            lambda: self.transaction_gateway.create(local),
        )
        return self.transactions.confirm(local.transaction_id, remote)

    def update_transaction_status(self, transaction_id: str, status: Any) -> Transaction:
        """Move a transaction along its lifecycle.

        An illegal move raises ``IllegalTransitionError`` before any remote
        call is made.
        """
        local = self.transactions.update_status(transaction_id, status, pending=True)
        remote = self._remote(
            "transaction",
            "update",
            transaction_id,
            lambda: self.transaction_gateway.update_status(transaction_id, local.status.value),
        )
        return self.transactions.confirm(transaction_id, remote)

    def add_milestone(
        self, transaction_id: str, spec: MilestoneSpec | dict[str, Any]
    ) -> Transaction:
        if isinstance(spec, dict):
            spec = MilestoneSpec(**spec)
        self.transactions.add_milestone(transaction_id, spec)
        self.transactions.mark_pending(transaction_id)
        remote = self._remote(
            "transaction",
            "update",
            transaction_id,
            lambda: self.transaction_gateway.add_milestone(transaction_id, spec),
        )
        return self.transactions.confirm(transaction_id, remote)

    def complete_milestone(self, transaction_id: str, milestone_id: str) -> Transaction:
        local = self.transactions.complete_milestone(transaction_id, milestone_id)
        self.transactions.mark_pending(transaction_id)
        completed_at = find_milestone(local, milestone_id).completed_date
        remote = self._remote(
            "transaction",
            "update",
            transaction_id,
            lambda: self.transaction_gateway.complete_milestone(
                transaction_id, milestone_id, completed_at
            ),
        )
        return self.transactions.confirm(transaction_id, remote)

    def add_transaction_note(
        self,
        transaction_id: str,
        content: str,
        author_id: str,
        note_type: TransactionNoteType | str = TransactionNoteType.GENERAL,
    ) -> Transaction:
        local = self.transactions.add_note(transaction_id, content, author_id, note_type)
        self.transactions.mark_pending(transaction_id)
        note = local.notes[-1]
        remote = self._remote(
            "transaction",
            "update",
            transaction_id,
            lambda: self.transaction_gateway.add_note(transaction_id, note),
        )
        return self.transactions.confirm(transaction_id, remote)

    def get_analytics(
        self,
        agent_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> TransactionAnalytics:
        """Performance summary over the locally held transactions."""
        return self.transactions.analytics(agent_id, start, end)

    def get_upcoming_deadlines(
        self, agent_id: str | None = None, days: int | None = None
    ) -> list[Deadline]:
        return self.transactions.upcoming_deadlines(
            days if days is not None else self.config.deadline_window_days, agent_id
        )
