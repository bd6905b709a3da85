"""Transaction store with milestone tracking and analytics."""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any

from brokerage.engine import milestones
from brokerage.engine.aggregation import (
    TRANSACTION_STATS,
    TransactionAnalytics,
    transaction_analytics,
)
from brokerage.engine.milestones import Deadline, MilestoneSpec
from brokerage.models import Transaction, TransactionNoteType
from brokerage.store.base import CollectionStore
from brokerage.validation import apply_transaction_changes, build_note, build_transaction


class TransactionStore(CollectionStore[Transaction]):
    """Transactions keyed by ``transaction_id``.

    Transactions are never deleted; they end in a terminal status instead.
    Status changes go through the lifecycle table (``update_status``).

    Parameters
    ----------
    default_rate : Decimal
        Commission rate (percent) applied when a payload names none.
    """

    entity_name = "transaction"
    id_field = "transaction_id"
    stats_spec = TRANSACTION_STATS

    def __init__(self, *args: Any, default_rate: Decimal = Decimal("3"), **kwargs: Any) -> None:
        self.default_rate = default_rate
        super().__init__(*args, **kwargs)

    def _build(self, data: dict[str, Any], entity_id: str, now: datetime) -> Transaction:
        return build_transaction(
            data, transaction_id=entity_id, now=now, default_rate=self.default_rate
        )

    def _apply(self, entity: Transaction, changes: dict[str, Any], now: datetime) -> Transaction:
        return apply_transaction_changes(entity, changes, now, self.default_rate)

    def add_milestone(
        self, transaction_id: str, spec: MilestoneSpec | dict[str, Any]
    ) -> Transaction:
        """Attach a pending milestone to a transaction."""
        if isinstance(spec, dict):
            spec = MilestoneSpec(**spec)
        updated = milestones.add_milestone(self.get(transaction_id), spec, self.clock())
        self._put(updated, "milestone_added", pending=False)
        return updated

    def complete_milestone(self, transaction_id: str, milestone_id: str) -> Transaction:
        """Complete a milestone.

        Raises
        ------
        EntityNotFoundError
            If the transaction or milestone does not exist.
        AlreadyCompletedError
            If the milestone is already completed; nothing changes.
        """
        updated = milestones.complete_milestone(
            self.get(transaction_id), milestone_id, self.clock()
        )
        self._put(updated, "milestone_completed", pending=False)
        return updated

    def add_note(
        self,
        transaction_id: str,
        content: str,
        author_id: str,
        note_type: TransactionNoteType | str = TransactionNoteType.GENERAL,
    ) -> Transaction:
        transaction = self.get(transaction_id)
        now = self.clock()
        note = build_note(
            {"content": content, "author_id": author_id, "note_type": note_type},
            TransactionNoteType,
            now,
        )
        updated = replace(transaction, notes=[*transaction.notes, note], updated_at=now)
        self._put(updated, "note_added", pending=False)
        return updated

    def progress(self, transaction_id: str) -> float:
        return milestones.progress(self.get(transaction_id))

    def upcoming_deadlines(
        self,
        days: int = 7,
        agent_id: str | None = None,
        now: datetime | None = None,
    ) -> list[Deadline]:
        return milestones.upcoming_deadlines(
            self._entities.values(), now or self.clock(), days=days, agent_id=agent_id
        )

    def analytics(
        self,
        agent_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> TransactionAnalytics:
        return transaction_analytics(self._entities.values(), agent_id, start, end)
