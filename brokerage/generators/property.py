"""Property listing payload generator."""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from brokerage.generators.base import BaseGenerator
from brokerage.models import PropertyStatus, PropertyType


class PropertyGenerator(BaseGenerator):
    """Generate listing payloads with plausible prices and details."""

    PROPERTY_TYPES = list(PropertyType)
    TYPE_WEIGHTS = [0.40, 0.25, 0.15, 0.10, 0.05, 0.05]

    STATUSES = list(PropertyStatus)
    STATUS_WEIGHTS = [0.60, 0.15, 0.15, 0.05, 0.05]

    # Price per square foot range by type (USD)
    PRICE_PER_SQFT = {
        PropertyType.HOUSE: (150, 450),
        PropertyType.APARTMENT: (200, 700),
        PropertyType.CONDO: (250, 800),
        PropertyType.TOWNHOUSE: (180, 500),
        PropertyType.COMMERCIAL: (120, 400),
        PropertyType.LAND: (10, 60),
    }

    FEATURES = [
        "pool",
        "garage",
        "fireplace",
        "garden",
        "hardwood floors",
        "central air",
        "updated kitchen",
        "waterfront",
        "basement",
        "solar panels",
    ]

    def __init__(self, seed: int | None = None, agent_ids: list[str] | None = None) -> None:
        super().__init__(seed)
        self.agent_ids = agent_ids or ["agent-1", "agent-2", "agent-3"]

    def generate(self, **overrides: Any) -> dict[str, Any]:
        property_type = random.choices(self.PROPERTY_TYPES, weights=self.TYPE_WEIGHTS, k=1)[0]
        low, high = self.PRICE_PER_SQFT[property_type]

        if property_type == PropertyType.LAND:
            sqft = random.randint(5000, 200000)
            details: dict[str, Any] = {"lot_size": sqft}
        else:
            sqft = random.randint(600, 5000)
            details = {
                "bedrooms": max(1, sqft // 700),
                "bathrooms": random.choice([1, 1.5, 2, 2.5, 3, 3.5]),
                "sqft": sqft,
                "year_built": random.randint(1920, 2024),
                "garage": random.randint(0, 3),
                "stories": random.randint(1, 3),
            }

        price = Decimal(sqft * random.randint(low, high)).quantize(Decimal("1000"))
        price = max(price, Decimal("1000"))
        address = self._address()

        payload = {
            "title": f"{property_type.value.capitalize()} on {address['street']}",
            "description": self.fake.paragraph(nb_sentences=3),
            "price": price,
            "property_type": property_type,
            "status": random.choices(self.STATUSES, weights=self.STATUS_WEIGHTS, k=1)[0],
            "address": address,
            "agent_id": random.choice(self.agent_ids),
            "listing_date": datetime.now() - timedelta(days=random.randint(0, 365)),
            "details": details,
            "features": random.sample(self.FEATURES, k=random.randint(0, 4)),
            "mls": f"MLS{random.randint(100000, 999999)}",
            "latitude": float(self.fake.latitude()),
            "longitude": float(self.fake.longitude()),
        }
        payload.update(overrides)
        return payload
