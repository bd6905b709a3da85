"""Client relationship models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from brokerage.models.base import Address, Note
from brokerage.models.enums import ClientSource, ClientStatus, ClientType, ClientUrgency


@dataclass
class Budget:
    """Client budget; ``min`` never exceeds ``max``."""

    min: Decimal
    max: Decimal
    pre_approved: bool = False
    lender_info: str | None = None


@dataclass
class ClientTimeline:
    """How soon the client intends to move."""

    urgency: ClientUrgency
    move_in_date: datetime | None = None
    listing_date: datetime | None = None


@dataclass
class Client:
    """Buyer, seller, renter or landlord followed by an agent."""

    client_id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    client_type: ClientType
    status: ClientStatus
    source: ClientSource
    agent_id: str
    assigned_date: datetime
    updated_at: datetime
    budget: Budget | None = None
    timeline: ClientTimeline | None = None
    address: Address | None = None
    last_contact_date: datetime | None = None
    next_follow_up_date: datetime | None = None
    notes: list[Note] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    property_interests: list[str] = field(default_factory=list)  # Property IDs, no duplicates
    viewed_properties: list[str] = field(default_factory=list)
    transaction_ids: list[str] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
