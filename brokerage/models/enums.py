"""Enumeration types for brokerage entities."""

from enum import Enum


class PropertyType(str, Enum):
    HOUSE = "house"
    APARTMENT = "apartment"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    COMMERCIAL = "commercial"
    LAND = "land"


class PropertyStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    SOLD = "sold"
    RENTED = "rented"
    OFF_MARKET = "off-market"


class ClientType(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    RENTER = "renter"
    LANDLORD = "landlord"


class ClientStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CLOSED = "closed"


class ClientSource(str, Enum):
    REFERRAL = "referral"
    WEBSITE = "website"
    SOCIAL_MEDIA = "social-media"
    OPEN_HOUSE = "open-house"
    COLD_CALL = "cold-call"
    ADVERTISEMENT = "advertisement"
    REPEAT_CLIENT = "repeat-client"
    OTHER = "other"


class ClientUrgency(str, Enum):
    IMMEDIATE = "immediate"
    WITHIN_MONTH = "within-month"
    WITHIN_3_MONTHS = "within-3-months"
    WITHIN_6_MONTHS = "within-6-months"
    NO_RUSH = "no-rush"


class ClientNoteType(str, Enum):
    GENERAL = "general"
    SHOWING = "showing"
    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    OFFER = "offer"


class TransactionType(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"
    LEASE = "lease"
    RENTAL = "rental"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    UNDER_CONTRACT = "under-contract"
    INSPECTION = "inspection"
    APPRAISAL = "appraisal"
    FINANCING = "financing"
    FINAL_WALKTHROUGH = "final-walkthrough"
    CLOSING = "closing"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class TransactionNoteType(str, Enum):
    GENERAL = "general"
    IMPORTANT = "important"
    ISSUE = "issue"
    REMINDER = "reminder"


class MilestoneStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class SyncState(str, Enum):
    """Whether a locally applied mutation has been confirmed remotely."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
