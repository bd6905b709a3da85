"""Transaction payload generator."""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from brokerage.generators.base import BaseGenerator
from brokerage.models import TransactionType

# Standard closing checklist: (name, days after contract, responsible)
CLOSING_MILESTONES = [
    ("Earnest money deposit", 3, "Buyer"),
    ("Home inspection", 10, "Inspector"),
    ("Appraisal", 21, "Lender"),
    ("Loan approval", 30, "Lender"),
    ("Final walkthrough", 40, "Agent"),
    ("Closing", 45, "Title company"),
]


class TransactionGenerator(BaseGenerator):
    """Generate transaction payloads linking existing properties and clients.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    commission_rates : list[Decimal] | None
        Rates (percent) to pick from; amounts are derived on create.
    """

    TRANSACTION_TYPES = list(TransactionType)
    TYPE_WEIGHTS = [0.45, 0.35, 0.10, 0.10]

    def __init__(
        self,
        seed: int | None = None,
        commission_rates: list[Decimal] | None = None,
    ) -> None:
        super().__init__(seed)
        self.commission_rates = commission_rates or [Decimal("2.5"), Decimal("3"), Decimal("3.5")]

    def generate(self, **overrides: Any) -> dict[str, Any]:
        """Generate one payload.

        ``property_id``, ``client_id`` and ``agent_id`` should be passed as
        overrides to reference real entities; placeholders are used otherwise.
        """
        list_price = Decimal(random.randint(150, 2500) * 1000)
        sale_price = (list_price * Decimal(str(random.uniform(0.92, 1.05)))).quantize(Decimal("100"))
        created_at = datetime.now() - timedelta(days=random.randint(0, 120))

        payload = {
            "property_id": self.fake.uuid4(),
            "client_id": self.fake.uuid4(),
            "agent_id": "agent-1",
            "transaction_type": random.choices(
                self.TRANSACTION_TYPES, weights=self.TYPE_WEIGHTS, k=1
            )[0],
            "financial": {
                "sale_price": sale_price,
                "list_price": list_price,
                "commission": {"rate": random.choice(self.commission_rates)},
                "earnest_money": (sale_price * Decimal("0.01")).quantize(Decimal("1")),
            },
            "created_at": created_at,
            "timeline": {"contract_date": created_at},
        }
        payload.update(overrides)
        return payload

    def milestones(self, contract_date: datetime) -> list[dict[str, Any]]:
        """Closing checklist milestone specs relative to ``contract_date``."""
        return [
            {
                "name": name,
                "due_date": contract_date + timedelta(days=days),
                "responsible": responsible,
            }
            for name, days, responsible in CLOSING_MILESTONES
        ]
