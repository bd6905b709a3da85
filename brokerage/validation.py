"""Construction and validation of entities from raw payloads.

Stores receive plain dictionaries (the shape a form or a remote service would
send) and turn them into model instances here. Every check runs before the
entity is built, so a ``ValidationError`` never leaves a store half-updated.

Nested values may be given either as dictionaries or as model instances, which
lets partial updates be merged onto an existing entity with ``merge_changes``
and then pushed through the same builder as a create.
"""

from __future__ import annotations

import uuid
from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, TypeVar

from brokerage.exceptions import ValidationError
from brokerage.models import (
    Address,
    Budget,
    Client,
    ClientNoteType,
    ClientSource,
    ClientStatus,
    ClientTimeline,
    ClientType,
    ClientUrgency,
    Commission,
    Financials,
    Milestone,
    MilestoneStatus,
    Note,
    Property,
    PropertyDetails,
    PropertyStatus,
    PropertyType,
    Transaction,
    TransactionNoteType,
    TransactionStatus,
    TransactionTimeline,
    TransactionType,
    commission_amount,
)

E = TypeVar("E", bound=Enum)

PROPERTY_FIELDS = {f.name for f in fields(Property)}
CLIENT_FIELDS = {f.name for f in fields(Client)}
TRANSACTION_FIELDS = {f.name for f in fields(Transaction)}

# Fields that only dedicated operations may change
_CLIENT_MANAGED = {"client_id", "notes"}
_TRANSACTION_MANAGED = {"transaction_id", "status", "milestones", "notes", "created_at"}


def new_id() -> str:
    """Generate a new entity identity."""
    return uuid.uuid4().hex


def shallow_dict(obj: Any) -> dict[str, Any]:
    """Top-level fields of a dataclass without copying nested values."""
    return {f.name: getattr(obj, f.name) for f in fields(obj)}


def merge_changes(current: Any, changes: dict[str, Any]) -> dict[str, Any]:
    """Merge a partial update onto an entity, recursing into nested models.

    Parameters
    ----------
    current : Any
        Existing dataclass instance.
    changes : dict[str, Any]
        Partial payload. A dict given for a nested model field only
        overrides the keys it names.

    Returns
    -------
    dict[str, Any]
        Full payload suitable for the entity builder.
    """
    merged = shallow_dict(current)
    for key, value in changes.items():
        existing = merged.get(key)
        if is_dataclass(existing) and isinstance(value, dict):
            value = merge_changes(existing, value)
        merged[key] = value
    return merged


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def enum_value(enum_cls: type[E], value: Any, field: str) -> E:
    """Coerce a raw value into a member of ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {field} {value!r}; expected one of: {allowed}", field
        ) from None


def decimal_value(
    value: Any,
    field: str,
    *,
    positive: bool = False,
    required: bool = True,
) -> Decimal | None:
    """Coerce a raw number into a ``Decimal``; negatives are always rejected."""
    if value is None:
        if required:
            raise ValidationError(f"{field} is required", field)
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number, got {value!r}", field) from None
    if not result.is_finite():
        raise ValidationError(f"{field} must be finite", field)
    if positive and result <= 0:
        raise ValidationError(f"{field} must be greater than zero", field)
    if result < 0:
        raise ValidationError(f"{field} must not be negative", field)
    return result


def number_value(value: Any, field: str) -> int | float | None:
    """Optional non-negative int or float."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number", field)
    if value < 0:
        raise ValidationError(f"{field} must not be negative", field)
    return value


def datetime_value(value: Any, field: str, *, required: bool = False) -> datetime | None:
    """Coerce a datetime, a date or an ISO-8601 string.

    Stored timestamps are naive local times, so values carrying a UTC
    offset are rejected rather than compared against them.
    """
    if value is None:
        if required:
            raise ValidationError(f"{field} is required", field)
        return None
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        return datetime.combine(value, time())
    elif isinstance(value, str):
        try:
            result = datetime.fromisoformat(value)
        except ValueError:
            raise ValidationError(f"{field} is not an ISO date: {value!r}", field) from None
    else:
        raise ValidationError(f"{field} must be a date", field)
    if result.tzinfo is not None:
        raise ValidationError(f"{field} must not carry a timezone offset: {value!r}", field)
    return result


def text_value(data: dict[str, Any], key: str, field: str | None = None) -> str:
    """Required non-blank string."""
    field = field or key
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", field)
    return value.strip()


def string_list(value: Any, field: str, *, unique: bool = False) -> list[str]:
    """Optional list of strings; ``unique`` drops repeats keeping first order."""
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
        raise ValidationError(f"{field} must be a list of strings", field)
    items = list(value)
    if not all(isinstance(item, str) for item in items):
        raise ValidationError(f"{field} must be a list of strings", field)
    if unique:
        items = list(dict.fromkeys(items))
    return items


def _mapping(value: Any, cls: type, field: str) -> dict[str, Any]:
    """Accept either a model instance or a dict for a nested model."""
    if isinstance(value, cls):
        return shallow_dict(value)
    if isinstance(value, dict):
        return value
    raise ValidationError(f"{field} must be an object", field)


def _reject_unknown(data: dict[str, Any], allowed: set[str], entity: str) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValidationError(
            f"Unknown {entity} field(s): {', '.join(unknown)}", unknown[0]
        )


def _reject_managed(changes: dict[str, Any], managed: set[str], entity: str) -> None:
    blocked = sorted(set(changes) & managed)
    if blocked:
        raise ValidationError(
            f"{entity} field '{blocked[0]}' cannot be changed by a plain update", blocked[0]
        )


# ---------------------------------------------------------------------------
# Nested models
# ---------------------------------------------------------------------------


def build_address(value: Any, field: str = "address") -> Address:
    data = _mapping(value, Address, field)
    return Address(
        street=text_value(data, "street", f"{field}.street"),
        city=text_value(data, "city", f"{field}.city"),
        state=text_value(data, "state", f"{field}.state"),
        zip_code=text_value(data, "zip_code", f"{field}.zip_code"),
        country=data.get("country") or "US",
    )


def build_details(value: Any) -> PropertyDetails:
    if value is None:
        return PropertyDetails()
    data = _mapping(value, PropertyDetails, "details")
    allowed = {f.name for f in fields(PropertyDetails)}
    _reject_unknown(data, allowed, "details")
    return PropertyDetails(**{key: number_value(data.get(key), f"details.{key}") for key in allowed})


def build_budget(value: Any) -> Budget | None:
    if value is None:
        return None
    data = _mapping(value, Budget, "budget")
    low = decimal_value(data.get("min"), "budget.min")
    high = decimal_value(data.get("max"), "budget.max")
    if low > high:
        raise ValidationError("budget.min must not exceed budget.max", "budget")
    return Budget(
        min=low,
        max=high,
        pre_approved=bool(data.get("pre_approved", False)),
        lender_info=data.get("lender_info"),
    )


def build_client_timeline(value: Any) -> ClientTimeline | None:
    if value is None:
        return None
    data = _mapping(value, ClientTimeline, "timeline")
    return ClientTimeline(
        urgency=enum_value(ClientUrgency, data.get("urgency"), "timeline.urgency"),
        move_in_date=datetime_value(data.get("move_in_date"), "timeline.move_in_date"),
        listing_date=datetime_value(data.get("listing_date"), "timeline.listing_date"),
    )


def build_note(
    value: Any,
    note_types: type[Enum],
    now: datetime,
) -> Note:
    """Build a note; a fresh one gets a new identity and ``now`` as timestamp."""
    data = _mapping(value, Note, "note")
    note_type = enum_value(note_types, data.get("note_type", "general"), "note.note_type")
    return Note(
        note_id=data.get("note_id") or new_id(),
        content=text_value(data, "content", "note.content"),
        note_type=note_type,
        author_id=text_value(data, "author_id", "note.author_id"),
        created_at=datetime_value(data.get("created_at"), "note.created_at") or now,
        is_private=bool(data.get("is_private", False)),
    )


def build_milestone(value: Any) -> Milestone:
    data = _mapping(value, Milestone, "milestone")
    status = enum_value(MilestoneStatus, data.get("status", "pending"), "milestone.status")
    completed_date = datetime_value(data.get("completed_date"), "milestone.completed_date")
    if (status == MilestoneStatus.COMPLETED) != (completed_date is not None):
        raise ValidationError(
            "milestone.completed_date must be set exactly when the milestone is completed",
            "milestone.completed_date",
        )
    return Milestone(
        milestone_id=data.get("milestone_id") or new_id(),
        name=text_value(data, "name", "milestone.name"),
        due_date=datetime_value(data.get("due_date"), "milestone.due_date", required=True),
        responsible=(data.get("responsible") or "").strip() or "Agent",
        status=status,
        completed_date=completed_date,
        description=(data.get("description") or "").strip() or None,
    )


def build_financials(value: Any, default_rate: Decimal, *, rederive: bool = False) -> Financials:
    """Build the financial block, deriving the commission amount when absent.

    Parameters
    ----------
    value : Any
        ``Financials`` or dict with ``sale_price`` and optional ``commission``.
    default_rate : Decimal
        Commission rate used when none is supplied.
    rederive : bool
        Recompute the amount even if one is present (an update changed the
        price or rate without naming an amount).
    """
    data = _mapping(value, Financials, "financial")
    sale_price = decimal_value(data.get("sale_price"), "financial.sale_price", positive=True)

    raw_commission = data.get("commission")
    commission_data = {} if raw_commission is None else _mapping(
        raw_commission, Commission, "financial.commission"
    )
    rate = decimal_value(
        commission_data.get("rate", default_rate), "financial.commission.rate"
    )
    amount = decimal_value(
        commission_data.get("amount"), "financial.commission.amount", required=False
    )
    if amount is None or rederive:
        amount = commission_amount(sale_price, rate)

    def optional(key: str) -> Decimal | None:
        return decimal_value(data.get(key), f"financial.{key}", required=False)

    return Financials(
        sale_price=sale_price,
        commission=Commission(
            rate=rate,
            amount=amount,
            split=decimal_value(
                commission_data.get("split"), "financial.commission.split", required=False
            ),
        ),
        list_price=optional("list_price"),
        down_payment=optional("down_payment"),
        loan_amount=optional("loan_amount"),
        earnest_money=optional("earnest_money"),
        closing_costs=optional("closing_costs"),
    )


def build_transaction_timeline(value: Any) -> TransactionTimeline:
    if value is None:
        return TransactionTimeline()
    data = _mapping(value, TransactionTimeline, "timeline")
    allowed = {f.name for f in fields(TransactionTimeline)}
    _reject_unknown(data, allowed, "timeline")
    return TransactionTimeline(
        **{key: datetime_value(data.get(key), f"timeline.{key}") for key in allowed}
    )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


def build_property(data: dict[str, Any], *, property_id: str, now: datetime) -> Property:
    """Build a property from a create payload (or a merged update payload)."""
    _reject_unknown(data, PROPERTY_FIELDS, "property")
    return Property(
        property_id=property_id,
        title=text_value(data, "title"),
        description=(data.get("description") or "").strip(),
        price=decimal_value(data.get("price"), "price", positive=True),
        property_type=enum_value(PropertyType, data.get("property_type"), "property_type"),
        status=enum_value(PropertyStatus, data.get("status", PropertyStatus.ACTIVE), "status"),
        address=build_address(data.get("address")),
        agent_id=text_value(data, "agent_id"),
        listing_date=datetime_value(data.get("listing_date"), "listing_date") or now,
        updated_at=now,
        details=build_details(data.get("details")),
        features=string_list(data.get("features"), "features"),
        photos=string_list(data.get("photos"), "photos"),
        client_id=data.get("client_id"),
        mls=data.get("mls"),
        virtual_tour_url=data.get("virtual_tour_url"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
    )


def build_client(data: dict[str, Any], *, client_id: str, now: datetime) -> Client:
    """Build a client from a create payload (or a merged update payload)."""
    _reject_unknown(data, CLIENT_FIELDS, "client")
    email = text_value(data, "email")
    if "@" not in email:
        raise ValidationError(f"email is not valid: {email!r}", "email")
    address = data.get("address")
    return Client(
        client_id=client_id,
        first_name=text_value(data, "first_name"),
        last_name=text_value(data, "last_name"),
        email=email,
        phone=(data.get("phone") or "").strip(),
        client_type=enum_value(ClientType, data.get("client_type"), "client_type"),
        status=enum_value(ClientStatus, data.get("status", ClientStatus.ACTIVE), "status"),
        source=enum_value(ClientSource, data.get("source", ClientSource.OTHER), "source"),
        agent_id=text_value(data, "agent_id"),
        assigned_date=datetime_value(data.get("assigned_date"), "assigned_date") or now,
        updated_at=now,
        budget=build_budget(data.get("budget")),
        timeline=build_client_timeline(data.get("timeline")),
        address=None if address is None else build_address(address),
        last_contact_date=datetime_value(data.get("last_contact_date"), "last_contact_date"),
        next_follow_up_date=datetime_value(data.get("next_follow_up_date"), "next_follow_up_date"),
        notes=[build_note(note, ClientNoteType, now) for note in data.get("notes") or []],
        tags=string_list(data.get("tags"), "tags"),
        property_interests=string_list(
            data.get("property_interests"), "property_interests", unique=True
        ),
        viewed_properties=string_list(data.get("viewed_properties"), "viewed_properties"),
        transaction_ids=string_list(data.get("transaction_ids"), "transaction_ids", unique=True),
    )


def build_transaction(
    data: dict[str, Any],
    *,
    transaction_id: str,
    now: datetime,
    default_rate: Decimal,
    rederive_commission: bool = False,
) -> Transaction:
    """Build a transaction from a create payload (or a merged update payload)."""
    _reject_unknown(data, TRANSACTION_FIELDS, "transaction")
    if data.get("financial") is None:
        raise ValidationError("financial is required", "financial")
    return Transaction(
        transaction_id=transaction_id,
        property_id=text_value(data, "property_id"),
        client_id=text_value(data, "client_id"),
        agent_id=text_value(data, "agent_id"),
        transaction_type=enum_value(
            TransactionType, data.get("transaction_type"), "transaction_type"
        ),
        status=enum_value(
            TransactionStatus, data.get("status", TransactionStatus.PENDING), "status"
        ),
        financial=build_financials(
            data["financial"], default_rate, rederive=rederive_commission
        ),
        created_at=datetime_value(data.get("created_at"), "created_at") or now,
        updated_at=now,
        timeline=build_transaction_timeline(data.get("timeline")),
        milestones=[build_milestone(m) for m in data.get("milestones") or []],
        notes=[build_note(note, TransactionNoteType, now) for note in data.get("notes") or []],
        documents=string_list(data.get("documents"), "documents"),
        commission_paid=bool(data.get("commission_paid", False)),
    )


def apply_property_changes(prop: Property, changes: dict[str, Any], now: datetime) -> Property:
    """Return a new property with ``changes`` applied; identity is preserved."""
    _reject_managed(changes, {"property_id"}, "Property")
    return build_property(merge_changes(prop, changes), property_id=prop.property_id, now=now)


def apply_client_changes(client: Client, changes: dict[str, Any], now: datetime) -> Client:
    """Return a new client with ``changes`` applied; notes stay append-only."""
    _reject_managed(changes, _CLIENT_MANAGED, "Client")
    return build_client(merge_changes(client, changes), client_id=client.client_id, now=now)


def apply_transaction_changes(
    transaction: Transaction,
    changes: dict[str, Any],
    now: datetime,
    default_rate: Decimal,
) -> Transaction:
    """Return a new transaction with ``changes`` applied.

    Status, milestones and notes have dedicated operations. When the sale
    price or commission rate changes without an explicit commission amount,
    the amount is derived again from the resulting price and rate. Other
    financial changes keep the stored amount.
    """
    _reject_managed(changes, _TRANSACTION_MANAGED, "Transaction")
    rederive = _changes_commission_basis(changes.get("financial"))
    return build_transaction(
        merge_changes(transaction, changes),
        transaction_id=transaction.transaction_id,
        now=now,
        default_rate=default_rate,
        rederive_commission=rederive,
    )


def _changes_commission_basis(financial: Any) -> bool:
    """Whether a financial change names a new price or rate but no amount."""
    if not isinstance(financial, dict):
        return False
    commission = financial.get("commission")
    if isinstance(commission, Commission):
        return False
    if isinstance(commission, dict):
        if commission.get("amount") is not None:
            return False
        if "rate" in commission:
            return True
    return "sale_price" in financial
