"""Tests for status lifecycles."""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from itertools import product

import pytest

from brokerage.engine.lifecycle import (
    TERMINAL_STATUSES,
    TRANSACTION_TRANSITIONS,
    allowed_transitions,
    can_transition,
    is_terminal,
    transition,
)
from brokerage.exceptions import IllegalTransitionError, ValidationError
from brokerage.models import PropertyStatus, Transaction, TransactionStatus
from brokerage.validation import build_property, build_transaction

NOW = datetime(2024, 6, 1)
LATER = datetime(2024, 6, 2)


def make_transaction(status: TransactionStatus) -> Transaction:
    tx = build_transaction(
        {
            "property_id": "p",
            "client_id": "c",
            "agent_id": "agent-1",
            "transaction_type": "purchase",
            "financial": {"sale_price": 3500000},
        },
        transaction_id="t1",
        now=NOW,
        default_rate=Decimal("3"),
    )
    return replace(tx, status=status)


class TestTransactionTable:
    """Tests for the transaction adjacency table."""

    def test_every_status_has_a_row(self) -> None:
        assert set(TRANSACTION_TRANSITIONS) == set(TransactionStatus)

    def test_terminal_statuses(self) -> None:
        assert TERMINAL_STATUSES == {
            TransactionStatus.CLOSED,
            TransactionStatus.CANCELLED,
            TransactionStatus.EXPIRED,
        }
        for status in TERMINAL_STATUSES:
            assert TRANSACTION_TRANSITIONS[status] == frozenset()
            assert is_terminal(status)
        assert not is_terminal("pending")

    def test_cancel_from_every_open_status(self) -> None:
        for status, targets in TRANSACTION_TRANSITIONS.items():
            if status not in TERMINAL_STATUSES:
                assert TransactionStatus.CANCELLED in targets

    @pytest.mark.parametrize(
        "current,target", list(product(TransactionStatus, TransactionStatus))
    )
    def test_transition_iff_adjacent(
        self, current: TransactionStatus, target: TransactionStatus
    ) -> None:
        """A transition succeeds exactly when the table lists it."""
        tx = make_transaction(current)
        if target in TRANSACTION_TRANSITIONS[current]:
            moved = transition(tx, target, LATER)
            assert moved.status == target
            assert moved.updated_at == LATER
            assert can_transition(current, target)
        else:
            with pytest.raises(IllegalTransitionError):
                transition(tx, target, LATER)
            assert not can_transition(current, target)


class TestTransition:
    def test_closed_to_under_contract_rejected(self) -> None:
        """A closed deal cannot reopen; the entity is left untouched."""
        tx = make_transaction(TransactionStatus.CLOSED)

        with pytest.raises(IllegalTransitionError) as exc_info:
            transition(tx, "under-contract", LATER)

        assert exc_info.value.current == "closed"
        assert exc_info.value.target == "under-contract"
        assert tx.status == TransactionStatus.CLOSED
        assert tx.updated_at == NOW

    def test_accepts_string_target(self) -> None:
        moved = transition(make_transaction(TransactionStatus.PENDING), "under-contract", LATER)
        assert moved.status is TransactionStatus.UNDER_CONTRACT

    def test_unknown_status(self) -> None:
        with pytest.raises(ValidationError):
            transition(make_transaction(TransactionStatus.PENDING), "escrow", LATER)

    def test_original_not_modified(self) -> None:
        tx = make_transaction(TransactionStatus.PENDING)
        transition(tx, TransactionStatus.UNDER_CONTRACT, LATER)
        assert tx.status == TransactionStatus.PENDING

    def test_allowed_transitions(self) -> None:
        tx = make_transaction(TransactionStatus.INSPECTION)
        assert allowed_transitions(tx) == {
            TransactionStatus.APPRAISAL,
            TransactionStatus.CANCELLED,
        }


class TestPropertyLifecycle:
    """Properties have no transition table."""

    def test_any_status_reachable(self) -> None:
        prop = build_property(
            {
                "title": "Lot",
                "price": 1000,
                "property_type": "land",
                "address": {"street": "1 A St", "city": "Waco", "state": "TX", "zip_code": "76701"},
                "agent_id": "agent-1",
                "status": "sold",
            },
            property_id="p1",
            now=NOW,
        )
        assert transition(prop, "active", LATER).status == PropertyStatus.ACTIVE
        assert PropertyStatus.SOLD not in allowed_transitions(prop)
        assert len(allowed_transitions(prop)) == len(PropertyStatus) - 1

    def test_unsupported_entity(self) -> None:
        with pytest.raises(TypeError):
            transition(object(), "active")
