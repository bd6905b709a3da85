"""Statistics derived from entity collections.

Aggregation is always total: every call recomputes from the collection it is
given, so results never depend on the order of earlier mutations.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Callable, Iterable

from brokerage.engine.milestones import next_due_date
from brokerage.models import Client, Property, Transaction, TransactionStatus

Accessor = Callable[[Any], Any]

_CENTS = Decimal("0.01")


def percentage(count: int, total: int) -> float:
    """Share of ``count`` in ``total``; 0 when the total is 0."""
    if total <= 0:
        return 0.0
    return count / total


def _key(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def group_counts(entities: Iterable[Any], accessor: Accessor) -> dict[str, int]:
    """Count entities per category; entities without a category are skipped."""
    counts: Counter[str] = Counter()
    for entity in entities:
        value = accessor(entity)
        if value is not None:
            counts[_key(value)] += 1
    return dict(counts)


@dataclass(frozen=True)
class AggregationSpec:
    """What to aggregate for one entity type.

    Attributes
    ----------
    value : Accessor | None
        Numeric field summed and averaged; ``None`` results are ignored.
    groups : dict[str, Accessor]
        Categorical fields counted into ``Statistics.groups``.
    due : Accessor | None
        Date an entity needs attention by; counted when on or before now.
    sums : dict[str, Accessor]
        Extra named numeric totals.
    """

    value: Accessor | None = None
    groups: dict[str, Accessor] = field(default_factory=dict)
    due: Accessor | None = None
    sums: dict[str, Accessor] = field(default_factory=dict)


@dataclass
class Statistics:
    """Derived figures for a collection."""

    total: int = 0
    value_sum: Decimal = Decimal("0")
    value_mean: Decimal = Decimal("0")
    valued_count: int = 0  # Entities that carried a value
    groups: dict[str, dict[str, int]] = field(default_factory=dict)
    needs_attention: int = 0
    sums: dict[str, Decimal] = field(default_factory=dict)
    counts: dict[str, int] = field(default_factory=dict)  # Store-specific tallies

    @property
    def by_status(self) -> dict[str, int]:
        return self.groups.get("status", {})

    @property
    def by_type(self) -> dict[str, int]:
        return self.groups.get("type", {})

    def distribution(self, group: str) -> dict[str, float]:
        """Share of the total per category of ``group``."""
        return {
            category: percentage(count, self.total)
            for category, count in self.groups.get(group, {}).items()
        }


def aggregate(
    entities: Iterable[Any],
    spec: AggregationSpec,
    now: datetime | None = None,
) -> Statistics:
    """Compute statistics over a collection.

    Parameters
    ----------
    entities : Iterable[Any]
        Collection to aggregate (typically a filtered view).
    spec : AggregationSpec
        Fields to sum, group and check for due dates.
    now : datetime | None
        Reference time for ``needs_attention`` (default: now).

    Returns
    -------
    Statistics
        Freshly computed statistics.
    """
    items = list(entities)
    now = now or datetime.now()

    values = []
    if spec.value is not None:
        values = [v for v in (spec.value(e) for e in items) if v is not None]
    value_sum = sum((Decimal(v) for v in values), Decimal("0"))
    value_mean = (value_sum / len(values)).quantize(_CENTS, ROUND_HALF_UP) if values else Decimal("0")

    needs_attention = 0
    if spec.due is not None:
        for entity in items:
            due = spec.due(entity)
            if due is not None and due <= now:
                needs_attention += 1

    return Statistics(
        total=len(items),
        value_sum=value_sum,
        value_mean=value_mean,
        valued_count=len(values),
        groups={name: group_counts(items, accessor) for name, accessor in spec.groups.items()},
        needs_attention=needs_attention,
        sums={
            name: sum(
                (Decimal(v) for v in (accessor(e) for e in items) if v is not None),
                Decimal("0"),
            )
            for name, accessor in spec.sums.items()
        },
    )


PROPERTY_STATS = AggregationSpec(
    value=lambda p: p.price,
    groups={"status": lambda p: p.status, "type": lambda p: p.property_type},
)

CLIENT_STATS = AggregationSpec(
    value=lambda c: c.budget.max if c.budget else None,
    groups={
        "status": lambda c: c.status,
        "type": lambda c: c.client_type,
        "source": lambda c: c.source,
    },
    due=lambda c: c.next_follow_up_date,
)

TRANSACTION_STATS = AggregationSpec(
    value=lambda t: t.financial.sale_price,
    groups={"status": lambda t: t.status, "type": lambda t: t.transaction_type},
    due=next_due_date,
    sums={"commission": lambda t: t.financial.commission.amount},
)

STATS_BY_TYPE: dict[type, AggregationSpec] = {
    Property: PROPERTY_STATS,
    Client: CLIENT_STATS,
    Transaction: TRANSACTION_STATS,
}


@dataclass
class MonthlyTrend:
    month: str  # YYYY-MM
    volume: Decimal
    count: int


@dataclass
class TransactionAnalytics:
    """Agent performance summary over a date window."""

    total_transactions: int
    total_volume: Decimal
    average_price: Decimal
    commission_earned: Decimal
    status_breakdown: dict[str, int]
    monthly_trends: list[MonthlyTrend]


def transaction_analytics(
    transactions: Iterable[Transaction],
    agent_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> TransactionAnalytics:
    """Summarize transactions for an agent, optionally within a date window.

    Commission counts as earned only once a transaction is closed. Monthly
    trends are keyed by the month the transaction was created in.
    """
    selected = [
        t
        for t in transactions
        if (agent_id is None or t.agent_id == agent_id)
        and (start is None or t.created_at >= start)
        and (end is None or t.created_at <= end)
    ]
    stats = aggregate(selected, TRANSACTION_STATS)

    volume_by_month: dict[str, Decimal] = {}
    count_by_month: Counter[str] = Counter()
    for t in selected:
        month = t.created_at.strftime("%Y-%m")
        volume_by_month[month] = volume_by_month.get(month, Decimal("0")) + t.financial.sale_price
        count_by_month[month] += 1

    return TransactionAnalytics(
        total_transactions=stats.total,
        total_volume=stats.value_sum,
        average_price=stats.value_mean,
        commission_earned=sum(
            (
                t.financial.commission.amount
                for t in selected
                if t.status == TransactionStatus.CLOSED
            ),
            Decimal("0"),
        ),
        status_breakdown=stats.by_status,
        monthly_trends=[
            MonthlyTrend(month=month, volume=volume_by_month[month], count=count_by_month[month])
            for month in sorted(volume_by_month)
        ],
    )
