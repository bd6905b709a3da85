"""Status lifecycles and guarded transitions.

Transactions follow a fixed adjacency table: each status lists the statuses
directly reachable from it, and closed, cancelled and expired are terminal.
Properties and clients have no table; any member of their status enum can
be set directly.
"""

import logging
from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from brokerage.exceptions import IllegalTransitionError
from brokerage.logging import log_context
from brokerage.models import (
    Client,
    ClientStatus,
    Property,
    PropertyStatus,
    Transaction,
    TransactionStatus,
)
from brokerage.validation import enum_value

logger = logging.getLogger(__name__)

Entity = TypeVar("Entity", Property, Client, Transaction)

TS = TransactionStatus

TRANSACTION_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TS.PENDING: frozenset({TS.UNDER_CONTRACT, TS.CANCELLED}),
    TS.UNDER_CONTRACT: frozenset({TS.INSPECTION, TS.CANCELLED}),
    TS.INSPECTION: frozenset({TS.APPRAISAL, TS.CANCELLED}),
    TS.APPRAISAL: frozenset({TS.FINANCING, TS.CANCELLED}),
    TS.FINANCING: frozenset({TS.FINAL_WALKTHROUGH, TS.CANCELLED}),
    TS.FINAL_WALKTHROUGH: frozenset({TS.CLOSING, TS.CANCELLED}),
    TS.CLOSING: frozenset({TS.CLOSED, TS.CANCELLED}),
    TS.CLOSED: frozenset(),
    TS.CANCELLED: frozenset(),
    TS.EXPIRED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, nxt in TRANSACTION_TRANSITIONS.items() if not nxt)

# Entity type -> (status enum, adjacency table or None when unguarded)
STATUS_RULES: dict[type, tuple[type[Enum], dict | None]] = {
    Transaction: (TransactionStatus, TRANSACTION_TRANSITIONS),
    Property: (PropertyStatus, None),
    Client: (ClientStatus, None),
}


def _rules(entity: Any) -> tuple[type[Enum], dict | None]:
    try:
        return STATUS_RULES[type(entity)]
    except KeyError:
        raise TypeError(f"No status lifecycle for {type(entity).__name__}") from None


def is_terminal(status: TransactionStatus | str) -> bool:
    """Whether no transition can leave ``status``."""
    return enum_value(TransactionStatus, status, "status") in TERMINAL_STATUSES


def allowed_transitions(entity: Any) -> frozenset:
    """Statuses an entity may move to next.

    Unguarded entity types may move to any other member of their enum.
    """
    status_enum, table = _rules(entity)
    if table is None:
        return frozenset(s for s in status_enum if s != entity.status)
    return table[entity.status]


def can_transition(current: TransactionStatus | str, target: TransactionStatus | str) -> bool:
    """Check a transaction status change against the adjacency table."""
    current = enum_value(TransactionStatus, current, "status")
    target = enum_value(TransactionStatus, target, "status")
    return target in TRANSACTION_TRANSITIONS[current]


def transition(entity: Entity, target: Enum | str, now: datetime | None = None) -> Entity:
    """Move an entity to ``target`` status.

    Parameters
    ----------
    entity : Property | Client | Transaction
        Entity to transition; it is never modified.
    target : Enum | str
        Desired status (enum member or its string value).
    now : datetime | None
        Timestamp written to ``updated_at`` (default: now).

    Returns
    -------
    Property | Client | Transaction
        Copy of the entity with the new status.

    Raises
    ------
    ValidationError
        If ``target`` is not a status of this entity type.
    IllegalTransitionError
        If the table does not allow ``entity.status -> target``.
    """
    status_enum, table = _rules(entity)
    target = enum_value(status_enum, target, "status")

    if table is not None and target not in table[entity.status]:
        # Only transactions have a table
        logger.info(
            "Rejected transaction transition %s -> %s",
            entity.status.value,
            target.value,
            extra=log_context("transaction", "status_changed", entity.transaction_id),
        )
        raise IllegalTransitionError(entity.status.value, target.value)

    return replace(entity, status=target, updated_at=now or datetime.now())
