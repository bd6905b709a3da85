"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest

from brokerage.store import ClientStore, PropertyStore, TransactionStore

NOW = datetime(2024, 6, 1, 12, 0)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingSink:
    """Sink that keeps published events in memory."""

    def __init__(self) -> None:
        self.events: list = []

    def publish(self, event: Any) -> None:
        self.events.append(event)

    @property
    def event_types(self) -> list[str]:
        return [e.event_type for e in self.events]


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def now() -> datetime:
    """Reference time shared by clock-dependent tests."""
    return NOW


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def property_payload() -> dict[str, Any]:
    """Valid property creation payload."""
    return {
        "title": "Craftsman bungalow",
        "description": "Three bedroom home near Zilker Park",
        "price": Decimal("450000"),
        "property_type": "house",
        "address": {
            "street": "12 Oak St",
            "city": "Austin",
            "state": "TX",
            "zip_code": "78704",
        },
        "agent_id": "agent-1",
        "details": {"bedrooms": 3, "bathrooms": 2, "sqft": 1800},
        "features": ["garage", "garden"],
    }


@pytest.fixture
def client_payload() -> dict[str, Any]:
    """Valid client creation payload."""
    return {
        "first_name": "Maria",
        "last_name": "Lopez",
        "email": "maria.lopez@example.com",
        "phone": "512-555-0100",
        "client_type": "buyer",
        "source": "referral",
        "agent_id": "agent-1",
        "budget": {"min": Decimal("500000"), "max": Decimal("800000")},
        "timeline": {"urgency": "within-3-months"},
        "tags": ["first-time"],
    }


@pytest.fixture
def transaction_payload() -> dict[str, Any]:
    """Valid transaction creation payload (3.5M at 3%)."""
    return {
        "property_id": "prop-1",
        "client_id": "client-1",
        "agent_id": "agent-1",
        "transaction_type": "purchase",
        "financial": {
            "sale_price": Decimal("3500000"),
            "commission": {"rate": Decimal("3")},
        },
    }


@pytest.fixture
def property_store(clock: FrozenClock, sink: RecordingSink) -> PropertyStore:
    return PropertyStore(clock=clock, sink=sink)


@pytest.fixture
def client_store(clock: FrozenClock, sink: RecordingSink) -> ClientStore:
    return ClientStore(clock=clock, sink=sink)


@pytest.fixture
def transaction_store(clock: FrozenClock, sink: RecordingSink) -> TransactionStore:
    return TransactionStore(clock=clock, sink=sink)
