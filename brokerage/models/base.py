"""Base models shared across entity types."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Address:
    """Postal address of a property or client."""

    street: str
    city: str
    state: str
    zip_code: str
    country: str = "US"


@dataclass
class Note:
    """Timestamped note attached to a client or a transaction.

    Notes are append-only: once attached they are never edited or reordered.
    ``note_type`` holds a ``ClientNoteType`` or ``TransactionNoteType``
    depending on the owner.
    """

    note_id: str
    content: str
    note_type: str
    author_id: str  # Agent who wrote the note
    created_at: datetime
    is_private: bool = False


@dataclass
class Event:
    """Standard event envelope for the change feed."""

    event_id: str
    event_type: str  # entity.action (e.g., transaction.status_changed)
    event_time: datetime
    source: str  # Service/system that generated
    subject: str  # Entity ID affected
    data: dict
    metadata: dict = field(default_factory=dict)
