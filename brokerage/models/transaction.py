"""Sale and rental transaction models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from brokerage.models.base import Note
from brokerage.models.enums import MilestoneStatus, TransactionStatus, TransactionType


@dataclass
class Commission:
    """Agent commission; ``rate`` is a percentage (3 means 3%)."""

    rate: Decimal
    amount: Decimal
    split: Decimal | None = None  # Percentage kept by this agent


@dataclass
class Financials:
    """Money side of a transaction."""

    sale_price: Decimal
    commission: Commission
    list_price: Decimal | None = None
    down_payment: Decimal | None = None
    loan_amount: Decimal | None = None
    earnest_money: Decimal | None = None
    closing_costs: Decimal | None = None


@dataclass
class TransactionTimeline:
    """Key dates of a deal; all optional."""

    contract_date: datetime | None = None
    inspection_date: datetime | None = None
    inspection_deadline: datetime | None = None
    appraisal_date: datetime | None = None
    loan_approval_date: datetime | None = None
    final_walkthrough_date: datetime | None = None
    closing_date: datetime | None = None
    possession_date: datetime | None = None


@dataclass
class Milestone:
    """Dated sub-task of a transaction.

    ``completed_date`` is set exactly once, when the milestone is completed.
    Overdue is derived at read time and is not stored here.
    """

    milestone_id: str
    name: str
    due_date: datetime
    responsible: str
    status: MilestoneStatus = MilestoneStatus.PENDING
    completed_date: datetime | None = None
    description: str | None = None


@dataclass
class Transaction:
    """Deal linking a property, a client and an agent."""

    transaction_id: str
    property_id: str
    client_id: str
    agent_id: str
    transaction_type: TransactionType
    status: TransactionStatus
    financial: Financials
    created_at: datetime
    updated_at: datetime
    timeline: TransactionTimeline = field(default_factory=TransactionTimeline)
    milestones: list[Milestone] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    documents: list[str] = field(default_factory=list)  # Document IDs
    commission_paid: bool = False


def commission_amount(sale_price: Decimal, rate: Decimal) -> Decimal:
    """Commission in whole currency units, rounded half up.

    Examples
    --------
    >>> commission_amount(Decimal("3500000"), Decimal("3"))
    Decimal('105000')
    """
    return (sale_price * rate / Decimal(100)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
