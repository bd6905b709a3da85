"""Typed filter shapes for each entity collection.

Each filter is a thin convenience over the generic predicate engine: its
``to_spec()`` produces the field-keyed constraint mapping that
``brokerage.engine.predicates.matches`` evaluates.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from brokerage.engine.predicates import AnyOf, Contains, DateRange, Range, sort_entities
from brokerage.models import (
    ClientSource,
    ClientStatus,
    ClientType,
    ClientUrgency,
    PropertyStatus,
    PropertyType,
    TransactionStatus,
    TransactionType,
)

PROPERTY_SORT_KEYS = {
    "price": "price",
    "date": "listing_date",
    "sqft": "sqft",
    "bedrooms": "bedrooms",
}


def _range(low: Any, high: Any) -> Range | None:
    if low is None and high is None:
        return None
    return Range(min=low, max=high)


def _any_of(values: list[Any]) -> AnyOf | None:
    return AnyOf(values) if values else None


def _text(query: str | None) -> Contains | None:
    return Contains(query) if query and query.strip() else None


def _compact(spec: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in spec.items() if value is not None}


@dataclass
class PropertyFilter:
    """Listing search criteria."""

    statuses: list[PropertyStatus] = field(default_factory=list)
    types: list[PropertyType] = field(default_factory=list)
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    min_bedrooms: int | None = None
    max_bedrooms: int | None = None
    min_bathrooms: float | None = None
    max_bathrooms: float | None = None
    min_sqft: float | None = None
    max_sqft: float | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    agent_id: str | None = None
    features: list[str] = field(default_factory=list)
    query: str | None = None
    sort_by: str | None = None  # price, date, sqft or bedrooms
    sort_order: str = "asc"

    def to_spec(self) -> dict[str, Any]:
        return _compact(
            {
                "status": _any_of(self.statuses),
                "type": _any_of(self.types),
                "price": _range(self.min_price, self.max_price),
                "bedrooms": _range(self.min_bedrooms, self.max_bedrooms),
                "bathrooms": _range(self.min_bathrooms, self.max_bathrooms),
                "sqft": _range(self.min_sqft, self.max_sqft),
                "city": _text(self.city),
                "state": _text(self.state),
                "zip_code": _text(self.zip_code),
                "agent_id": AnyOf([self.agent_id]) if self.agent_id else None,
                "features": _any_of(self.features),
                "search": _text(self.query),
            }
        )

    def sort(self, properties: list) -> list:
        """Apply ``sort_by``/``sort_order``; unsorted when no key is set."""
        if not self.sort_by:
            return list(properties)
        key = PROPERTY_SORT_KEYS.get(self.sort_by)
        if key is None:
            raise ValueError(f"Unknown sort key: {self.sort_by}")
        return sort_entities(properties, key, descending=self.sort_order == "desc")


@dataclass
class ClientFilter:
    """Client list criteria.

    ``min_budget`` is compared with the lower end of a client's budget and
    ``max_budget`` with the upper end, so a client matches only when the
    whole budget sits inside the requested bounds.
    """

    types: list[ClientType] = field(default_factory=list)
    statuses: list[ClientStatus] = field(default_factory=list)
    sources: list[ClientSource] = field(default_factory=list)
    timeline: list[ClientUrgency] = field(default_factory=list)
    agent_id: str | None = None
    search: str | None = None
    min_budget: Decimal | None = None
    max_budget: Decimal | None = None

    def to_spec(self) -> dict[str, Any]:
        return _compact(
            {
                "type": _any_of(self.types),
                "status": _any_of(self.statuses),
                "source": _any_of(self.sources),
                "urgency": _any_of(self.timeline),
                "agent_id": AnyOf([self.agent_id]) if self.agent_id else None,
                "search": _text(self.search),
                "budget_min": _range(self.min_budget, None),
                "budget_max": _range(None, self.max_budget),
            }
        )


@dataclass
class TransactionFilter:
    """Transaction list criteria; the date window applies to ``created_at``."""

    statuses: list[TransactionStatus] = field(default_factory=list)
    types: list[TransactionType] = field(default_factory=list)
    agent_id: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None

    def to_spec(self) -> dict[str, Any]:
        window = None
        if self.start is not None or self.end is not None:
            window = DateRange(start=self.start, end=self.end)
        return _compact(
            {
                "status": _any_of(self.statuses),
                "type": _any_of(self.types),
                "agent_id": AnyOf([self.agent_id]) if self.agent_id else None,
                "created_at": window,
                "sale_price": _range(self.min_amount, self.max_amount),
            }
        )
