"""Common machinery for entity collection stores."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Generic, Iterable, Iterator, Mapping, TypeVar

from brokerage.engine.aggregation import AggregationSpec, Statistics, aggregate
from brokerage.engine.lifecycle import transition
from brokerage.engine.predicates import FilterSpec, filter_entities
from brokerage.exceptions import EntityNotFoundError
from brokerage.logging import log_context
from brokerage.models import Event, SyncState
from brokerage.sinks.serialization import to_dict
from brokerage.validation import new_id

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[["CollectionStore"], None]


class CollectionStore(Generic[T]):
    """In-memory store owning every entity of one type, keyed by identity.

    Each mutation re-derives the filtered view and its statistics before
    returning, then notifies subscribers and publishes an ``Event`` to the
    optional change-feed sink. Callers therefore never see a view computed
    against a stale set.

    Parameters
    ----------
    entities : Iterable[T]
        Initial entities, treated as confirmed.
    filter_spec : FilterSpec | None
        Active filter for ``view`` and ``statistics``.
    sink : Any | None
        Object with a ``publish(event)`` method (see ``brokerage.sinks``).
    clock : Callable[[], datetime] | None
        Source of "now" (default ``datetime.now``).
    source : str
        Event source name.
    """

    entity_name = "entity"
    id_field = "id"
    stats_spec = AggregationSpec()

    def __init__(
        self,
        entities: Iterable[T] = (),
        filter_spec: FilterSpec | None = None,
        sink: Any | None = None,
        clock: Callable[[], datetime] | None = None,
        source: str = "brokerage-engine",
    ) -> None:
        self._entities: dict[str, T] = {}
        self._sync: dict[str, SyncState] = {}
        self._selected: set[str] = set()
        self._filter: dict[str, Any] = dict(filter_spec or {})
        self._listeners: list[Listener] = []
        self._view: list[T] = []
        self._stats = Statistics()
        self.sink = sink
        self.clock = clock or datetime.now
        self.source = source

        for entity in entities:
            entity_id = self._id(entity)
            self._entities[entity_id] = entity
            self._sync[entity_id] = SyncState.CONFIRMED
        self._refresh()

    # Builders supplied by subclasses

    def _build(self, data: dict[str, Any], entity_id: str, now: datetime) -> T:
        raise NotImplementedError

    def _apply(self, entity: T, changes: dict[str, Any], now: datetime) -> T:
        raise NotImplementedError

    # Read access

    def _id(self, entity: T) -> str:
        return getattr(entity, self.id_field)

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._entities.values()))

    def get(self, entity_id: str) -> T:
        """Get an entity by identity."""
        try:
            return self._entities[entity_id]
        except KeyError:
            raise EntityNotFoundError(
                f"{self.entity_name.capitalize()} {entity_id} not found"
            ) from None

    @property
    def entities(self) -> list[T]:
        return list(self._entities.values())

    @property
    def filter_spec(self) -> dict[str, Any]:
        return dict(self._filter)

    @property
    def view(self) -> list[T]:
        """Entities matching the active filter, as of the last mutation."""
        return list(self._view)

    @property
    def statistics(self) -> Statistics:
        """Statistics of ``view``, as of the last mutation."""
        return self._stats

    def list(self, filter_spec: FilterSpec | None = None) -> list[T]:
        """Entities matching ``filter_spec``, or the current view when omitted."""
        if filter_spec is None:
            return self.view
        return filter_entities(self._entities.values(), filter_spec)

    def stats(self, filter_spec: FilterSpec | None = None, now: datetime | None = None) -> Statistics:
        """Recompute statistics for ``filter_spec`` (default: active filter)."""
        return self._aggregate(self.list(filter_spec), now or self.clock())

    def set_filter(self, filter_spec: FilterSpec | None) -> list[T]:
        """Replace the active filter and return the new view.

        A filter that cannot be evaluated leaves the previous one active.
        """
        previous = self._filter
        self._filter = dict(filter_spec or {})
        try:
            self._refresh()
        except Exception:
            self._filter = previous
            self._refresh()
            raise
        self._notify()
        return self.view

    def clear_filter(self) -> list[T]:
        return self.set_filter(None)

    # Mutations

    def create(self, data: Mapping[str, Any], *, pending: bool = False) -> T:
        """Validate ``data`` and add a new entity with a fresh identity.

        Parameters
        ----------
        data : Mapping[str, Any]
            Creation payload.
        pending : bool
            Mark the entity as awaiting remote confirmation.

        Returns
        -------
        T
            The stored entity.
        """
        entity = self._build(dict(data), new_id(), self.clock())
        self._put(entity, "created", pending=pending)
        return entity

    def update(self, entity_id: str, changes: Mapping[str, Any], *, pending: bool = False) -> T:
        """Apply a partial update, keeping the entity's identity."""
        current = self.get(entity_id)
        updated = self._apply(current, dict(changes), self.clock())
        self._put(updated, "updated", pending=pending)
        return updated

    def update_status(self, entity_id: str, status: Any, *, pending: bool = False) -> T:
        """Move an entity to ``status`` through the lifecycle engine."""
        current = self.get(entity_id)
        updated = transition(current, status, self.clock())
        self._put(updated, "status_changed", pending=pending)
        return updated

    def load(self, entity: T) -> T:
        """Insert or replace a fully built entity (e.g. a server copy) as confirmed."""
        self._put(entity, "loaded", pending=False)
        return entity

    def hydrate(self, entities: Iterable[T]) -> None:
        """Replace the whole collection, e.g. after an initial fetch."""
        self._entities = {self._id(e): e for e in entities}
        self._sync = {entity_id: SyncState.CONFIRMED for entity_id in self._entities}
        for entity_id in self._tracked_ids() - self._entities.keys():
            self._forget(entity_id)
        logger.debug("Hydrated %s store with %d entities", self.entity_name, len(self._entities))
        self._refresh()
        self._notify()

    def _remove(self, entity_id: str) -> T:
        entity = self.get(entity_id)
        del self._entities[entity_id]
        self._sync.pop(entity_id, None)
        self._forget(entity_id)
        logger.debug(
            "Removed %s %s",
            self.entity_name,
            entity_id,
            extra=log_context(self.entity_name, "deleted", entity_id),
        )
        self._refresh()
        self._notify()
        self._publish("deleted", entity_id, {})
        return entity

    def _put(self, entity: T, action: str, *, pending: bool) -> None:
        entity_id = self._id(entity)
        self._replace(entity_id, entity, SyncState.PENDING if pending else SyncState.CONFIRMED)
        logger.debug(
            "%s %s %s",
            self.entity_name.capitalize(),
            entity_id,
            action,
            extra=log_context(self.entity_name, action, entity_id),
        )
        self._notify()
        self._publish(action, entity_id, to_dict(entity))

    def _replace(self, entity_id: str, entity: T, state: SyncState) -> None:
        """Store one entity and re-derive, restoring the old entry on failure."""
        previous = self._entities.get(entity_id)
        previous_state = self._sync.get(entity_id)
        self._entities[entity_id] = entity
        self._sync[entity_id] = state
        try:
            self._refresh()
        except Exception:
            if previous is None:
                del self._entities[entity_id]
                del self._sync[entity_id]
            else:
                self._entities[entity_id] = previous
                self._sync[entity_id] = previous_state
            self._refresh()
            raise

    def _tracked_ids(self) -> set[str]:
        """Identities referenced by state kept outside the entity mapping."""
        return set(self._selected)

    def _forget(self, entity_id: str) -> None:
        self._selected.discard(entity_id)

    # Derived state

    def _refresh(self) -> None:
        self._view = filter_entities(self._entities.values(), self._filter)
        self._stats = self._aggregate(self._view, self.clock())

    def _aggregate(self, entities: list[T], now: datetime) -> Statistics:
        return aggregate(entities, self.stats_spec, now)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(store)`` after every change; returns an unsubscriber."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _publish(self, action: str, entity_id: str, data: dict) -> None:
        if self.sink is None:
            return
        self.sink.publish(
            Event(
                event_id=new_id(),
                event_type=f"{self.entity_name}.{action}",
                event_time=self.clock(),
                source=self.source,
                subject=entity_id,
                data=data,
            )
        )

    # Selection

    @property
    def selected(self) -> frozenset[str]:
        return frozenset(self._selected)

    def toggle_selection(self, entity_id: str) -> bool:
        """Flip selection of one entity; returns whether it is now selected."""
        self.get(entity_id)
        if entity_id in self._selected:
            self._selected.discard(entity_id)
            return False
        self._selected.add(entity_id)
        return True

    def select(self, entity_ids: Iterable[str]) -> None:
        ids = list(entity_ids)
        for entity_id in ids:
            self.get(entity_id)
        self._selected.update(ids)

    def select_all(self) -> None:
        """Select every entity in the current view."""
        self._selected = {self._id(e) for e in self._view}

    def clear_selection(self) -> None:
        self._selected.clear()

    # Remote sync state

    def sync_state(self, entity_id: str) -> SyncState:
        self.get(entity_id)
        return self._sync[entity_id]

    def mark_pending(self, entity_id: str) -> None:
        """Flag a locally changed entity as awaiting remote confirmation."""
        self.get(entity_id)
        self._sync[entity_id] = SyncState.PENDING

    @property
    def pending_ids(self) -> frozenset[str]:
        return frozenset(i for i, state in self._sync.items() if state == SyncState.PENDING)

    def confirm(self, entity_id: str, entity: T | None = None) -> T:
        """Mark a pending entity confirmed, optionally adopting the server copy.

        The server copy must carry the same identity as the local one.
        """
        current = self.get(entity_id)
        if entity is not None and self._id(entity) != entity_id:
            raise ValueError(f"Confirmed entity has identity {self._id(entity)}, expected {entity_id}")
        self._replace(entity_id, current if entity is None else entity, SyncState.CONFIRMED)
        self._notify()
        return self._entities[entity_id]
