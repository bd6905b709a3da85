"""Milestone tracking for transactions.

Milestones are stored as pending or completed. Whether a pending milestone is
overdue is derived from its due date and a reference "now" each time it is
read, never written back.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Iterable

from brokerage.engine.lifecycle import TERMINAL_STATUSES
from brokerage.exceptions import AlreadyCompletedError, EntityNotFoundError
from brokerage.models import Milestone, MilestoneStatus, Transaction
from brokerage.validation import build_milestone, new_id

logger = logging.getLogger(__name__)


@dataclass
class MilestoneSpec:
    """Payload for a new milestone."""

    name: str
    due_date: datetime
    responsible: str = "Agent"
    description: str | None = None


@dataclass
class Deadline:
    """An open milestone together with the transaction it belongs to."""

    transaction_id: str
    agent_id: str
    milestone: Milestone
    state: MilestoneStatus


def add_milestone(
    transaction: Transaction,
    spec: MilestoneSpec,
    now: datetime | None = None,
) -> Transaction:
    """Append a pending milestone.

    Raises
    ------
    ValidationError
        If the name is blank or the due date is missing.
    """
    milestone = build_milestone(
        {
            "milestone_id": new_id(),
            "name": spec.name,
            "due_date": spec.due_date,
            "responsible": spec.responsible,
            "description": spec.description,
        }
    )
    return replace(
        transaction,
        milestones=[*transaction.milestones, milestone],
        updated_at=now or datetime.now(),
    )


def find_milestone(transaction: Transaction, milestone_id: str) -> Milestone:
    for milestone in transaction.milestones:
        if milestone.milestone_id == milestone_id:
            return milestone
    raise EntityNotFoundError(
        f"Milestone {milestone_id} not found in transaction {transaction.transaction_id}"
    )


def complete_milestone(
    transaction: Transaction,
    milestone_id: str,
    now: datetime | None = None,
) -> Transaction:
    """Mark a milestone completed, stamping its completed date once.

    Raises
    ------
    EntityNotFoundError
        If the transaction has no such milestone.
    AlreadyCompletedError
        If the milestone was completed before; its date is left as is.
    """
    target = find_milestone(transaction, milestone_id)
    if target.status == MilestoneStatus.COMPLETED:
        raise AlreadyCompletedError(milestone_id)

    now = now or datetime.now()
    done = replace(target, status=MilestoneStatus.COMPLETED, completed_date=now)
    logger.debug("Completed milestone %s on %s", milestone_id, transaction.transaction_id)
    return replace(
        transaction,
        milestones=[done if m is target else m for m in transaction.milestones],
        updated_at=now,
    )


def progress(transaction: Transaction) -> float:
    """Fraction of milestones completed; 0 when there are none."""
    total = len(transaction.milestones)
    if total == 0:
        return 0.0
    completed = sum(1 for m in transaction.milestones if m.status == MilestoneStatus.COMPLETED)
    return completed / total


def is_overdue(milestone: Milestone, now: datetime) -> bool:
    """An open milestone whose due date is on or before ``now``."""
    return milestone.status != MilestoneStatus.COMPLETED and milestone.due_date <= now


def milestone_state(milestone: Milestone, now: datetime) -> MilestoneStatus:
    """Display state of a milestone at ``now``."""
    if milestone.status == MilestoneStatus.COMPLETED:
        return MilestoneStatus.COMPLETED
    if is_overdue(milestone, now):
        return MilestoneStatus.OVERDUE
    return MilestoneStatus.PENDING


def overdue_milestones(transaction: Transaction, now: datetime) -> list[Milestone]:
    return [m for m in transaction.milestones if is_overdue(m, now)]


def next_due_date(transaction: Transaction) -> datetime | None:
    """Earliest due date among open milestones; None once the deal has ended."""
    if transaction.status in TERMINAL_STATUSES:
        return None
    open_dates = [
        m.due_date for m in transaction.milestones if m.status != MilestoneStatus.COMPLETED
    ]
    return min(open_dates) if open_dates else None


def upcoming_deadlines(
    transactions: Iterable[Transaction],
    now: datetime,
    days: int = 7,
    agent_id: str | None = None,
) -> list[Deadline]:
    """Open milestones due between ``now`` and ``now + days``, soonest first.

    Milestones already past due are included too, flagged overdue. Closed,
    cancelled and expired transactions are skipped.
    """
    horizon = now + timedelta(days=days)
    deadlines = [
        Deadline(
            transaction_id=t.transaction_id,
            agent_id=t.agent_id,
            milestone=m,
            state=milestone_state(m, now),
        )
        for t in transactions
        if (agent_id is None or t.agent_id == agent_id) and t.status not in TERMINAL_STATUSES
        for m in t.milestones
        if m.status != MilestoneStatus.COMPLETED and m.due_date <= horizon
    ]
    deadlines.sort(key=lambda d: d.milestone.due_date)
    return deadlines
