"""Domain models for brokerage entities."""

from brokerage.models.base import Address, Event, Note
from brokerage.models.client import Budget, Client, ClientTimeline
from brokerage.models.enums import (
    ClientNoteType,
    ClientSource,
    ClientStatus,
    ClientType,
    ClientUrgency,
    MilestoneStatus,
    PropertyStatus,
    PropertyType,
    SyncState,
    TransactionNoteType,
    TransactionStatus,
    TransactionType,
)
from brokerage.models.property import Property, PropertyDetails
from brokerage.models.transaction import (
    Commission,
    Financials,
    Milestone,
    Transaction,
    TransactionTimeline,
    commission_amount,
)

__all__ = [
    "Address",
    "Budget",
    "Client",
    "ClientNoteType",
    "ClientSource",
    "ClientStatus",
    "ClientTimeline",
    "ClientType",
    "ClientUrgency",
    "Commission",
    "Event",
    "Financials",
    "Milestone",
    "MilestoneStatus",
    "Note",
    "Property",
    "PropertyDetails",
    "PropertyStatus",
    "PropertyType",
    "SyncState",
    "Transaction",
    "TransactionNoteType",
    "TransactionStatus",
    "TransactionTimeline",
    "TransactionType",
    "commission_amount",
]
