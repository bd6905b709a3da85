"""Client payload generator."""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from brokerage.generators.base import BaseGenerator
from brokerage.models import ClientSource, ClientStatus, ClientType, ClientUrgency


class ClientGenerator(BaseGenerator):
    """Generate buyer, seller, renter and landlord payloads."""

    CLIENT_TYPES = list(ClientType)
    TYPE_WEIGHTS = [0.45, 0.25, 0.20, 0.10]

    SOURCES = list(ClientSource)

    # Budget bounds (USD) by client type
    BUDGETS = {
        ClientType.BUYER: (150_000, 2_500_000),
        ClientType.SELLER: (200_000, 3_000_000),
        ClientType.RENTER: (12_000, 60_000),
        ClientType.LANDLORD: (12_000, 120_000),
    }

    TAGS = ["first-time", "investor", "relocating", "downsizing", "vip", "cash"]

    def __init__(self, seed: int | None = None, agent_ids: list[str] | None = None) -> None:
        super().__init__(seed)
        self.agent_ids = agent_ids or ["agent-1", "agent-2", "agent-3"]

    def generate(self, **overrides: Any) -> dict[str, Any]:
        client_type = random.choices(self.CLIENT_TYPES, weights=self.TYPE_WEIGHTS, k=1)[0]
        low, high = self.BUDGETS[client_type]
        budget_min = Decimal(random.randint(low, high)).quantize(Decimal("1000"))
        budget_max = (budget_min * Decimal(str(random.uniform(1.1, 1.6)))).quantize(Decimal("1000"))

        first_name = self.fake.first_name()
        last_name = self.fake.last_name()
        now = datetime.now()

        payload = {
            "first_name": first_name,
            "last_name": last_name,
            "email": f"{first_name}.{last_name}@{self.fake.free_email_domain()}".lower(),
            "phone": self.fake.phone_number(),
            "client_type": client_type,
            "status": random.choices(list(ClientStatus), weights=[0.75, 0.15, 0.10], k=1)[0],
            "source": random.choice(self.SOURCES),
            "agent_id": random.choice(self.agent_ids),
            "assigned_date": now - timedelta(days=random.randint(0, 180)),
            "budget": {
                "min": budget_min,
                "max": budget_max,
                "pre_approved": client_type == ClientType.BUYER and random.random() < 0.5,
            },
            "timeline": {"urgency": random.choice(list(ClientUrgency))},
            "address": self._address(),
            "next_follow_up_date": now + timedelta(days=random.randint(-7, 21)),
            "tags": random.sample(self.TAGS, k=random.randint(0, 2)),
        }
        payload.update(overrides)
        return payload
