"""Tests for sample payload generators."""

from decimal import ROUND_HALF_UP, Decimal

from brokerage.generators import ClientGenerator, PropertyGenerator, TransactionGenerator
from brokerage.generators.transaction import CLOSING_MILESTONES
from brokerage.models import ClientType, PropertyType
from brokerage.store import ClientStore, PropertyStore, TransactionStore


class TestPropertyGenerator:
    """Tests for PropertyGenerator."""

    def test_payloads_pass_validation(self, seed: int) -> None:
        store = PropertyStore()
        for payload in PropertyGenerator(seed=seed).generate_batch(25):
            store.create(payload)

        assert len(store) == 25
        assert all(p.price > 0 for p in store)

    def test_reproducible(self, seed: int) -> None:
        first = PropertyGenerator(seed=seed).generate()
        second = PropertyGenerator(seed=seed).generate()

        assert first["title"] == second["title"]
        assert first["price"] == second["price"]

    def test_land_has_no_bedrooms(self, seed: int) -> None:
        gen = PropertyGenerator(seed=seed)
        land = [p for p in gen.generate_batch(200) if p["property_type"] == PropertyType.LAND]

        assert land
        assert all("bedrooms" not in p["details"] for p in land)

    def test_overrides(self, seed: int) -> None:
        payload = PropertyGenerator(seed=seed, agent_ids=["agent-7"]).generate(status="sold")
        assert payload["status"] == "sold"
        assert payload["agent_id"] == "agent-7"


class TestClientGenerator:
    def test_payloads_pass_validation(self, seed: int) -> None:
        store = ClientStore()
        for payload in ClientGenerator(seed=seed).generate_batch(25):
            store.create(payload)
        assert len(store) == 25

    def test_budget_ordered(self, seed: int) -> None:
        for payload in ClientGenerator(seed=seed).generate_batch(50):
            budget = payload["budget"]
            assert budget["min"] <= budget["max"]

    def test_only_buyers_pre_approved(self, seed: int) -> None:
        for payload in ClientGenerator(seed=seed).generate_batch(50):
            if payload["budget"]["pre_approved"]:
                assert payload["client_type"] == ClientType.BUYER


class TestTransactionGenerator:
    """Tests for TransactionGenerator."""

    def test_commission_derived_on_create(self, seed: int) -> None:
        store = TransactionStore()
        gen = TransactionGenerator(seed=seed, commission_rates=[Decimal("3")])

        tx = store.create(gen.generate(property_id="p1", client_id="c1"))

        assert tx.property_id == "p1"
        assert tx.financial.commission.rate == Decimal("3")
        assert tx.financial.commission.amount == (
            tx.financial.sale_price * Decimal("3") / 100
        ).quantize(Decimal("1"), rounding=ROUND_HALF_UP)

    def test_closing_checklist(self, seed: int) -> None:
        store = TransactionStore()
        gen = TransactionGenerator(seed=seed)
        payload = gen.generate()
        tx = store.create(payload)

        for spec in gen.milestones(payload["timeline"]["contract_date"]):
            tx = store.add_milestone(tx.transaction_id, spec)

        assert [m.name for m in tx.milestones] == [name for name, _, _ in CLOSING_MILESTONES]
        assert tx.milestones == sorted(tx.milestones, key=lambda m: m.due_date)
