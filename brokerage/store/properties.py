"""Property listing store."""

from datetime import datetime
from typing import Any

from brokerage.engine.aggregation import PROPERTY_STATS, Statistics
from brokerage.models import Property
from brokerage.store.base import CollectionStore
from brokerage.validation import apply_property_changes, build_property


class PropertyStore(CollectionStore[Property]):
    """Listings keyed by ``property_id``, with a favorites set."""

    entity_name = "property"
    id_field = "property_id"
    stats_spec = PROPERTY_STATS

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._favorites: set[str] = set()
        super().__init__(*args, **kwargs)

    def _build(self, data: dict[str, Any], entity_id: str, now: datetime) -> Property:
        return build_property(data, property_id=entity_id, now=now)

    def _apply(self, entity: Property, changes: dict[str, Any], now: datetime) -> Property:
        return apply_property_changes(entity, changes, now)

    def remove(self, property_id: str) -> Property:
        """Delete a listing; also drops it from favorites and the selection."""
        return self._remove(property_id)

    def _tracked_ids(self) -> set[str]:
        return super()._tracked_ids() | self._favorites

    def _forget(self, entity_id: str) -> None:
        super()._forget(entity_id)
        self._favorites.discard(entity_id)

    def _aggregate(self, entities: list[Property], now: datetime) -> Statistics:
        stats = super()._aggregate(entities, now)
        # Favorites are counted across the whole collection, not just the view
        stats.counts["favorites"] = len(self._favorites)
        return stats

    @property
    def favorites(self) -> frozenset[str]:
        return frozenset(self._favorites)

    def toggle_favorite(self, property_id: str) -> bool:
        """Flip favorite status; returns whether the listing is now a favorite."""
        self.get(property_id)
        if property_id in self._favorites:
            self._favorites.discard(property_id)
        else:
            self._favorites.add(property_id)
        self._refresh()
        self._notify()
        return property_id in self._favorites
