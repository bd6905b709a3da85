"""Declarative filter specifications evaluated against single entities.

A filter spec maps a field name to a constraint::

    spec = {
        "status": AnyOf(["active", "pending"]),
        "price": Range(max=750_000),
        "location": Contains("austin"),
    }
    matches(prop, spec)

Every active constraint must hold (logical AND). Field names are resolved
through a per-entity accessor table first, so composite fields such as a
client's free-text ``"search"`` can fan out over several attributes, and
otherwise as dotted attribute paths (``"details.bedrooms"``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, TypeVar

from brokerage.models import Client, Property, Transaction

T = TypeVar("T")


def normalize_text(value: Any) -> str:
    """Lowercase, trimmed string form used for text matching."""
    if isinstance(value, Enum):
        value = value.value
    return str(value).strip().lower()


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


def _is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


class Constraint:
    """Base class for filter constraints."""

    @property
    def is_active(self) -> bool:
        """Inactive constraints (no values, no bounds) match everything."""
        return True

    def test(self, value: Any) -> bool:
        raise NotImplementedError


@dataclass(frozen=True, init=False)
class AnyOf(Constraint):
    """Exact set membership.

    A scalar field matches when it is one of ``values``; a list field
    matches when it shares at least one element with ``values``.
    """

    values: frozenset

    def __init__(self, values: Iterable[Any] = ()) -> None:
        object.__setattr__(self, "values", frozenset(_plain(v) for v in values))

    @property
    def is_active(self) -> bool:
        return bool(self.values)

    def test(self, value: Any) -> bool:
        if value is None:
            return False
        if _is_collection(value):
            return any(_plain(item) in self.values for item in value)
        return _plain(value) in self.values


@dataclass(frozen=True)
class Range(Constraint):
    """Inclusive numeric range; either bound may be omitted.

    Entities without a value never satisfy an active range.
    """

    min: Any = None
    max: Any = None

    @property
    def is_active(self) -> bool:
        return self.min is not None or self.max is not None

    def test(self, value: Any) -> bool:
        if value is None:
            return False
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


@dataclass(frozen=True)
class Contains(Constraint):
    """Case-insensitive substring match.

    When the field resolves to several strings the constraint holds if
    any one of them contains the query.
    """

    query: str = ""

    @property
    def is_active(self) -> bool:
        return bool(normalize_text(self.query))

    def test(self, value: Any) -> bool:
        if value is None:
            return False
        needle = normalize_text(self.query)
        candidates = value if _is_collection(value) else [value]
        return any(
            needle in normalize_text(candidate)
            for candidate in candidates
            if candidate is not None
        )


@dataclass(frozen=True)
class DateRange(Constraint):
    """Inclusive date window; either end may be omitted."""

    start: date | datetime | None = None
    end: date | datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.start is not None or self.end is not None

    def test(self, value: Any) -> bool:
        if value is None:
            return False
        moment = _as_datetime(value)
        if self.start is not None and moment < _as_datetime(self.start):
            return False
        if self.end is not None and moment > _as_datetime(self.end):
            return False
        return True


@dataclass(frozen=True, init=False)
class AllOf(Constraint):
    """Several constraints on one field, all of which must hold."""

    parts: tuple

    def __init__(self, *parts: Constraint) -> None:
        flat: list[Constraint] = []
        for part in parts:
            flat.extend(part.parts if isinstance(part, AllOf) else [part])
        object.__setattr__(self, "parts", tuple(p for p in flat if p.is_active))

    @property
    def is_active(self) -> bool:
        return bool(self.parts)

    def test(self, value: Any) -> bool:
        return all(part.test(value) for part in self.parts)


FilterSpec = Mapping[str, Any]


def _address_text(address: Any) -> list[str]:
    if address is None:
        return []
    return [address.street, address.city, address.state, address.zip_code]


# Composite and derived fields per entity type
FIELD_ACCESSORS: dict[type, dict[str, Callable[[Any], Any]]] = {
    Property: {
        "type": lambda p: p.property_type,
        "city": lambda p: p.address.city,
        "state": lambda p: p.address.state,
        "zip_code": lambda p: p.address.zip_code,
        "bedrooms": lambda p: p.details.bedrooms,
        "bathrooms": lambda p: p.details.bathrooms,
        "sqft": lambda p: p.details.sqft,
        "location": lambda p: _address_text(p.address),
        "search": lambda p: [p.title, p.description, *_address_text(p.address), *p.features],
    },
    Client: {
        "type": lambda c: c.client_type,
        "urgency": lambda c: c.timeline.urgency if c.timeline else None,
        "budget_min": lambda c: c.budget.min if c.budget else None,
        "budget_max": lambda c: c.budget.max if c.budget else None,
        "search": lambda c: [
            c.first_name,
            c.last_name,
            c.full_name,
            c.email,
            c.phone,
            *c.tags,
        ],
    },
    Transaction: {
        "type": lambda t: t.transaction_type,
        "sale_price": lambda t: t.financial.sale_price,
        "commission": lambda t: t.financial.commission.amount,
    },
}


def resolve(entity: Any, field_name: str) -> Any:
    """Resolve a filter field against an entity; missing paths yield None."""
    accessor = FIELD_ACCESSORS.get(type(entity), {}).get(field_name)
    if accessor is not None:
        return accessor(entity)
    value = entity
    for part in field_name.split("."):
        value = getattr(value, part, None)
        if value is None:
            return None
    return value


def as_constraint(value: Any) -> Constraint:
    """Coerce shorthand filter values; collections and scalars become AnyOf."""
    if isinstance(value, Constraint):
        return value
    if _is_collection(value):
        return AnyOf(value)
    return AnyOf([value])


def matches(entity: Any, spec: FilterSpec | None) -> bool:
    """Evaluate a filter spec against one entity.

    Parameters
    ----------
    entity : Any
        Property, Client or Transaction (or any object with the fields).
    spec : FilterSpec | None
        Field name to constraint. ``None`` or ``{}`` matches everything.

    Returns
    -------
    bool
        True when every active constraint holds.
    """
    if not spec:
        return True
    for field_name, raw in spec.items():
        if raw is None:
            continue
        constraint = as_constraint(raw)
        if not constraint.is_active:
            continue
        if not constraint.test(resolve(entity, field_name)):
            return False
    return True


def filter_entities(entities: Iterable[T], spec: FilterSpec | None) -> list[T]:
    """Entities matching ``spec``, in their original order."""
    return [entity for entity in entities if matches(entity, spec)]


def merge_specs(*specs: FilterSpec | None) -> dict[str, Constraint]:
    """Combine specs into one.

    Filtering by the merge gives the same result as applying each spec in
    turn. A field constrained by several specs gets an ``AllOf`` of them.
    """
    merged: dict[str, Constraint] = {}
    for spec in specs:
        for field_name, raw in (spec or {}).items():
            if raw is None:
                continue
            constraint = as_constraint(raw)
            if field_name in merged:
                constraint = AllOf(merged[field_name], constraint)
            merged[field_name] = constraint
    return merged


def sort_entities(
    entities: Iterable[T],
    key: str,
    descending: bool = False,
) -> list[T]:
    """Sort by a resolvable field, entities without a value last."""
    items = list(entities)
    present = [e for e in items if resolve(e, key) is not None]
    missing = [e for e in items if resolve(e, key) is None]
    present.sort(key=lambda e: _plain(resolve(e, key)), reverse=descending)
    return present + missing
