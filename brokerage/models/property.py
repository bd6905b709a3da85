"""Property listing model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from brokerage.models.base import Address
from brokerage.models.enums import PropertyStatus, PropertyType


@dataclass
class PropertyDetails:
    """Optional physical characteristics of a listing."""

    bedrooms: int | None = None
    bathrooms: float | None = None
    sqft: float | None = None
    lot_size: float | None = None
    year_built: int | None = None
    garage: int | None = None
    stories: int | None = None


@dataclass
class Property:
    """Real estate listing managed by an agent."""

    property_id: str
    title: str
    description: str
    price: Decimal
    property_type: PropertyType
    status: PropertyStatus
    address: Address
    agent_id: str
    listing_date: datetime
    updated_at: datetime
    details: PropertyDetails = field(default_factory=PropertyDetails)
    features: list[str] = field(default_factory=list)
    photos: list[str] = field(default_factory=list)  # Photo references only
    client_id: str | None = None  # Owner/landlord client
    mls: str | None = None
    virtual_tour_url: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def price_per_sqft(self) -> Decimal | None:
        """Price per square foot, only when square footage is known."""
        sqft = self.details.sqft
        if sqft is None or sqft <= 0:
            return None
        return (self.price / Decimal(str(sqft))).quantize(Decimal("0.01"))
