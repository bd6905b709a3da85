"""Predicate, aggregation, lifecycle and milestone engines."""

from brokerage.engine.aggregation import (
    CLIENT_STATS,
    PROPERTY_STATS,
    TRANSACTION_STATS,
    AggregationSpec,
    MonthlyTrend,
    Statistics,
    TransactionAnalytics,
    aggregate,
    percentage,
    transaction_analytics,
)
from brokerage.engine.filters import ClientFilter, PropertyFilter, TransactionFilter
from brokerage.engine.lifecycle import (
    TERMINAL_STATUSES,
    TRANSACTION_TRANSITIONS,
    allowed_transitions,
    can_transition,
    is_terminal,
    transition,
)
from brokerage.engine.milestones import (
    Deadline,
    MilestoneSpec,
    add_milestone,
    complete_milestone,
    milestone_state,
    progress,
    upcoming_deadlines,
)
from brokerage.engine.predicates import (
    AllOf,
    AnyOf,
    Contains,
    DateRange,
    Range,
    filter_entities,
    matches,
    merge_specs,
)

__all__ = [
    "AggregationSpec",
    "AllOf",
    "AnyOf",
    "CLIENT_STATS",
    "ClientFilter",
    "Contains",
    "DateRange",
    "Deadline",
    "MilestoneSpec",
    "MonthlyTrend",
    "PROPERTY_STATS",
    "PropertyFilter",
    "Range",
    "Statistics",
    "TERMINAL_STATUSES",
    "TRANSACTION_STATS",
    "TRANSACTION_TRANSITIONS",
    "TransactionAnalytics",
    "TransactionFilter",
    "add_milestone",
    "aggregate",
    "allowed_transitions",
    "can_transition",
    "complete_milestone",
    "filter_entities",
    "is_terminal",
    "matches",
    "merge_specs",
    "milestone_state",
    "percentage",
    "progress",
    "transaction_analytics",
    "transition",
    "upcoming_deadlines",
]
