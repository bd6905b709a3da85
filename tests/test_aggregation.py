"""Tests for the aggregation engine."""

from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest

from brokerage.engine.aggregation import (
    CLIENT_STATS,
    PROPERTY_STATS,
    TRANSACTION_STATS,
    AggregationSpec,
    aggregate,
    group_counts,
    percentage,
    transaction_analytics,
)
from brokerage.models import TransactionStatus
from brokerage.validation import build_client, build_property, build_transaction

NOW = datetime(2024, 6, 1, 12, 0)


def make_transaction(transaction_id: str, price: int, **overrides: Any) -> Any:
    payload = {
        "property_id": "p",
        "client_id": "c",
        "agent_id": "agent-1",
        "transaction_type": "sale",
        "financial": {"sale_price": price, "commission": {"rate": 3}},
    }
    payload.update(overrides)
    return build_transaction(
        payload, transaction_id=transaction_id, now=NOW, default_rate=Decimal("3")
    )


@pytest.fixture
def listings() -> list:
    base = {
        "title": "Listing",
        "address": {"street": "1 Main St", "city": "Austin", "state": "TX", "zip_code": "78701"},
        "agent_id": "agent-1",
    }
    rows = [
        ("p1", 100000, "house", "active"),
        ("p2", 200000, "house", "sold"),
        ("p3", 300000, "condo", "active"),
        ("p4", 450000, "land", "pending"),
    ]
    return [
        build_property(
            {**base, "price": price, "property_type": kind, "status": status},
            property_id=pid,
            now=NOW,
        )
        for pid, price, kind, status in rows
    ]


class TestHelpers:
    def test_percentage_zero_total(self) -> None:
        assert percentage(0, 0) == 0.0
        assert percentage(3, 4) == 0.75

    def test_group_counts_skips_missing(self) -> None:
        values = [{"k": "a"}, {"k": "b"}, {"k": "a"}, {"k": None}]
        assert group_counts(values, lambda v: v["k"]) == {"a": 2, "b": 1}


class TestAggregate:
    """Tests for generic statistics."""

    def test_property_totals(self, listings: list) -> None:
        stats = aggregate(listings, PROPERTY_STATS, NOW)

        assert stats.total == 4
        assert stats.value_sum == Decimal("1050000")
        assert stats.value_mean == Decimal("262500.00")
        assert stats.by_status == {"active": 2, "sold": 1, "pending": 1}
        assert stats.by_type == {"house": 2, "condo": 1, "land": 1}

    def test_group_counts_sum_to_total(self, listings: list) -> None:
        stats = aggregate(listings, PROPERTY_STATS, NOW)
        for group in stats.groups.values():
            assert sum(group.values()) == stats.total

    def test_distribution(self, listings: list) -> None:
        stats = aggregate(listings, PROPERTY_STATS, NOW)
        assert stats.distribution("status") == {"active": 0.5, "sold": 0.25, "pending": 0.25}

    def test_empty_collection(self) -> None:
        stats = aggregate([], PROPERTY_STATS, NOW)
        assert stats.total == 0
        assert stats.value_mean == Decimal("0")
        assert stats.distribution("status") == {}

    def test_mean_ignores_missing_values(self) -> None:
        """Entities without a value count in total but not in the mean."""
        spec = AggregationSpec(value=lambda row: row["v"])
        stats = aggregate([{"v": 10}, {"v": None}, {"v": 20}], spec, NOW)

        assert stats.total == 3
        assert stats.valued_count == 2
        assert stats.value_mean == Decimal("15.00")

    def test_recomputation_is_order_independent(self, listings: list) -> None:
        forward = aggregate(listings, PROPERTY_STATS, NOW)
        backward = aggregate(list(reversed(listings)), PROPERTY_STATS, NOW)
        assert forward.groups == backward.groups
        assert forward.value_sum == backward.value_sum


class TestClientStats:
    def test_follow_up_boundary(self) -> None:
        """A follow-up due exactly now needs attention; one due later does not."""
        base = {
            "first_name": "A",
            "last_name": "B",
            "email": "a@b.com",
            "client_type": "buyer",
            "agent_id": "agent-1",
        }
        clients = [
            build_client({**base, "next_follow_up_date": NOW}, client_id="c1", now=NOW),
            build_client(
                {**base, "next_follow_up_date": NOW + timedelta(minutes=1)}, client_id="c2", now=NOW
            ),
            build_client({**base}, client_id="c3", now=NOW),
        ]
        stats = aggregate(clients, CLIENT_STATS, NOW)
        assert stats.needs_attention == 1
        assert stats.valued_count == 0


class TestTransactionStats:
    def test_commission_sum_and_overdue(self) -> None:
        overdue = {"name": "Inspection", "due_date": NOW - timedelta(days=1)}
        txs = [
            make_transaction("t1", 1000000, milestones=[overdue]),
            make_transaction("t2", 500000),
        ]
        stats = aggregate(txs, TRANSACTION_STATS, NOW)

        assert stats.sums["commission"] == Decimal("45000")
        assert stats.needs_attention == 1

    def test_ended_deals_need_no_attention(self) -> None:
        overdue = {"name": "Inspection", "due_date": NOW - timedelta(days=1)}
        txs = [
            make_transaction("t1", 1000000, milestones=[overdue], status="cancelled"),
            make_transaction("t2", 500000, milestones=[overdue], status="expired"),
            make_transaction("t3", 500000, milestones=[overdue]),
        ]
        assert aggregate(txs, TRANSACTION_STATS, NOW).needs_attention == 1


class TestTransactionAnalytics:
    """Tests for agent performance summaries."""

    def test_commission_earned_counts_closed_only(self) -> None:
        txs = [
            replace(make_transaction("t1", 1000000), status=TransactionStatus.CLOSED),
            make_transaction("t2", 500000),
        ]
        analytics = transaction_analytics(txs)

        assert analytics.total_transactions == 2
        assert analytics.total_volume == Decimal("1500000")
        assert analytics.average_price == Decimal("750000.00")
        assert analytics.commission_earned == Decimal("30000")
        assert analytics.status_breakdown == {"closed": 1, "pending": 1}

    def test_agent_and_window(self) -> None:
        txs = [
            make_transaction("t1", 100000, created_at=datetime(2024, 1, 5)),
            make_transaction("t2", 200000, created_at=datetime(2024, 1, 20)),
            make_transaction("t3", 300000, created_at=datetime(2024, 3, 2)),
            make_transaction("t4", 400000, created_at=datetime(2024, 3, 3), agent_id="agent-2"),
        ]
        analytics = transaction_analytics(
            txs, agent_id="agent-1", start=datetime(2024, 1, 1), end=datetime(2024, 12, 31)
        )

        assert analytics.total_transactions == 3
        assert [(m.month, m.count, m.volume) for m in analytics.monthly_trends] == [
            ("2024-01", 2, Decimal("300000")),
            ("2024-03", 1, Decimal("300000")),
        ]

    def test_empty(self) -> None:
        analytics = transaction_analytics([])
        assert analytics.total_transactions == 0
        assert analytics.commission_earned == Decimal("0")
        assert analytics.monthly_trends == []
