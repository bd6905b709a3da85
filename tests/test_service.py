"""Tests for the service facade over in-memory gateways."""

from datetime import timedelta
from decimal import Decimal
from typing import Any

import pytest

from brokerage.config import EngineConfig
from brokerage.engine.filters import PropertyFilter
from brokerage.exceptions import (
    AlreadyCompletedError,
    IllegalTransitionError,
    TransportError,
)
from brokerage.models import PropertyStatus, SyncState, TransactionStatus
from brokerage.service import BrokerageService, Failure


@pytest.fixture
def failures() -> list[Failure]:
    return []


@pytest.fixture
def service(clock: Any, sink: Any, failures: list[Failure]) -> BrokerageService:
    return BrokerageService.in_memory(clock=clock, sink=sink, on_failure=failures.append)


class TestCreateAndConfirm:
    """Local changes are confirmed by the backend copy."""

    def test_create_property_confirmed(
        self, service: BrokerageService, property_payload: dict[str, Any]
    ) -> None:
        prop = service.create_property(property_payload)

        assert service.properties.sync_state(prop.property_id) == SyncState.CONFIRMED
        assert service.property_gateway.get(prop.property_id) == prop
        assert service.error("property", "create") is None

    def test_create_failure_keeps_pending(
        self,
        service: BrokerageService,
        property_payload: dict[str, Any],
        failures: list[Failure],
    ) -> None:
        service.property_gateway.fail("create")

        with pytest.raises(TransportError):
            service.create_property(property_payload)

        (local,) = service.properties.entities
        assert service.properties.sync_state(local.property_id) == SyncState.PENDING
        assert isinstance(service.error("property", "create"), TransportError)
        assert service.error("property", "update") is None
        assert service.error("client", "create") is None
        assert [(f.entity, f.kind, f.entity_id) for f in failures] == [
            ("property", "create", local.property_id)
        ]

    def test_failure_logged(
        self,
        service: BrokerageService,
        client_payload: dict[str, Any],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        service.client_gateway.fail("create")
        with pytest.raises(TransportError):
            service.create_client(client_payload)
        assert "Remote client create failed" in caplog.text
        assert caplog.records[-1].entity == "client"
        assert caplog.records[-1].operation == "create"

    def test_recovery_clears_error_slot(
        self, service: BrokerageService, property_payload: dict[str, Any]
    ) -> None:
        service.property_gateway.fail("create")
        with pytest.raises(TransportError):
            service.create_property(property_payload)

        service.property_gateway.recover()
        service.create_property(property_payload)

        assert service.error("property", "create") is None

    def test_update_property(
        self, service: BrokerageService, property_payload: dict[str, Any]
    ) -> None:
        prop = service.create_property(property_payload)
        updated = service.update_property(prop.property_id, {"price": Decimal("475000")})

        assert updated.price == Decimal("475000")
        assert service.property_gateway.get(prop.property_id).price == Decimal("475000")

    def test_update_failure_keeps_local_change(
        self, service: BrokerageService, property_payload: dict[str, Any]
    ) -> None:
        prop = service.create_property(property_payload)
        service.property_gateway.fail("update")

        with pytest.raises(TransportError):
            service.update_property(prop.property_id, {"status": PropertyStatus.SOLD})

        assert service.properties.get(prop.property_id).status == PropertyStatus.SOLD
        assert service.properties.pending_ids == {prop.property_id}
        assert service.property_gateway.get(prop.property_id).status == PropertyStatus.ACTIVE


class TestFetch:
    def test_pagination(
        self, service: BrokerageService, property_payload: dict[str, Any]
    ) -> None:
        for _ in range(5):
            service.create_property(property_payload)

        page = service.list_properties(page=2, limit=2)

        assert page.total == 5
        assert page.total_pages == 3
        assert len(page.items) == 2
        assert service.properties.entities == page.items

    def test_last_page_may_be_short(
        self, service: BrokerageService, property_payload: dict[str, Any]
    ) -> None:
        for _ in range(5):
            service.create_property(property_payload)
        assert len(service.list_properties(page=3, limit=2).items) == 1

    def test_typed_filter(
        self, service: BrokerageService, property_payload: dict[str, Any]
    ) -> None:
        service.create_property(property_payload)
        service.create_property({**property_payload, "price": Decimal("2000000")})

        page = service.list_properties(PropertyFilter(min_price=Decimal("1000000")))

        assert [p.price for p in page.items] == [Decimal("2000000")]

    def test_fetch_failure(self, service: BrokerageService) -> None:
        service.transaction_gateway.fail("list")
        with pytest.raises(TransportError):
            service.list_transactions()
        assert service.error("transaction", "fetch") is not None

    def test_get_loads_local_copy(
        self, service: BrokerageService, client_payload: dict[str, Any]
    ) -> None:
        client = service.create_client(client_payload)
        service.clients.hydrate([])

        assert service.get_client(client.client_id) == client
        assert client.client_id in service.clients


class TestDelete:
    def test_delete_property(
        self, service: BrokerageService, property_payload: dict[str, Any], sink: Any
    ) -> None:
        prop = service.create_property(property_payload)
        service.delete_property(prop.property_id)

        assert prop.property_id not in service.properties
        assert "property.deleted" in sink.event_types

    def test_delete_failure_keeps_local(
        self, service: BrokerageService, client_payload: dict[str, Any]
    ) -> None:
        client = service.create_client(client_payload)
        service.client_gateway.fail("delete")

        with pytest.raises(TransportError):
            service.delete_client(client.client_id)

        assert client.client_id in service.clients

    def test_transactions_cannot_be_deleted(self, service: BrokerageService) -> None:
        assert not hasattr(service, "delete_transaction")
        with pytest.raises(TransportError):
            service.transaction_gateway.delete("anything")


class TestClients:
    def test_add_note_reaches_backend(
        self, service: BrokerageService, client_payload: dict[str, Any]
    ) -> None:
        client = service.create_client(client_payload)
        updated = service.add_client_note(client.client_id, "Toured 12 Oak St", "agent-1", "showing")

        assert updated.notes[-1].content == "Toured 12 Oak St"
        assert service.client_gateway.get(client.client_id).notes == updated.notes

    def test_schedule_follow_up(
        self, service: BrokerageService, client_payload: dict[str, Any], clock: Any
    ) -> None:
        client = service.create_client(client_payload)
        when = clock.now + timedelta(days=2)

        service.schedule_follow_up(client.client_id, when)

        assert service.client_gateway.get(client.client_id).next_follow_up_date == when
        assert service.clients.sync_state(client.client_id) == SyncState.CONFIRMED


class TestTransactions:
    """Transaction operations through the service."""

    def test_commission_derived(
        self, service: BrokerageService, transaction_payload: dict[str, Any]
    ) -> None:
        tx = service.create_transaction(transaction_payload)
        assert tx.financial.commission.amount == Decimal("105000")

    def test_config_default_rate(self, clock: Any, transaction_payload: dict[str, Any]) -> None:
        service = BrokerageService.in_memory(
            config=EngineConfig(default_commission_rate=Decimal("2")), clock=clock
        )
        tx = service.create_transaction(
            {**transaction_payload, "financial": {"sale_price": Decimal("500000")}}
        )
        assert tx.financial.commission.amount == Decimal("10000")

    def test_illegal_status_never_reaches_backend(
        self, service: BrokerageService, transaction_payload: dict[str, Any]
    ) -> None:
        tx = service.create_transaction(transaction_payload)
        calls_before = list(service.transaction_gateway.calls)

        with pytest.raises(IllegalTransitionError):
            service.update_transaction_status(tx.transaction_id, TransactionStatus.CLOSED)

        assert service.transaction_gateway.calls == calls_before
        assert service.transactions.get(tx.transaction_id).status == TransactionStatus.PENDING

    def test_status_change(
        self, service: BrokerageService, transaction_payload: dict[str, Any]
    ) -> None:
        tx = service.create_transaction(transaction_payload)
        moved = service.update_transaction_status(tx.transaction_id, "under-contract")

        assert moved.status == TransactionStatus.UNDER_CONTRACT
        assert service.transaction_gateway.calls[-1] == "update_status"

    def test_milestone_round_trip(
        self, service: BrokerageService, transaction_payload: dict[str, Any], clock: Any
    ) -> None:
        tx = service.create_transaction(transaction_payload)
        tx = service.add_milestone(
            tx.transaction_id, {"name": "Inspection", "due_date": clock.now + timedelta(days=3)}
        )
        milestone_id = tx.milestones[0].milestone_id

        done = service.complete_milestone(tx.transaction_id, milestone_id)

        assert done.milestones[0].completed_date == clock.now
        with pytest.raises(AlreadyCompletedError):
            service.complete_milestone(tx.transaction_id, milestone_id)

    def test_note(self, service: BrokerageService, transaction_payload: dict[str, Any]) -> None:
        tx = service.create_transaction(transaction_payload)
        tx = service.add_transaction_note(tx.transaction_id, "Appraisal came in low", "agent-1", "issue")
        assert service.transaction_gateway.get(tx.transaction_id).notes == tx.notes

    def test_deadlines_use_config_window(
        self, service: BrokerageService, transaction_payload: dict[str, Any], clock: Any
    ) -> None:
        tx = service.create_transaction(transaction_payload)
        service.add_milestone(tx.transaction_id, {"name": "Appraisal", "due_date": clock.now + timedelta(days=5)})
        service.add_milestone(tx.transaction_id, {"name": "Closing", "due_date": clock.now + timedelta(days=20)})

        assert [d.milestone.name for d in service.get_upcoming_deadlines()] == ["Appraisal"]
        assert len(service.get_upcoming_deadlines(days=30)) == 2
        assert service.get_upcoming_deadlines(agent_id="agent-9") == []

    def test_analytics(
        self, service: BrokerageService, transaction_payload: dict[str, Any]
    ) -> None:
        service.create_transaction(transaction_payload)
        service.create_transaction({**transaction_payload, "agent_id": "agent-2"})

        analytics = service.get_analytics(agent_id="agent-1")

        assert analytics.total_transactions == 1
        assert analytics.total_volume == Decimal("3500000")
        assert analytics.commission_earned == Decimal("0")
