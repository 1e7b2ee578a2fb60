"""
Core Data Models for Finance Tracker

These models define the strict schemas for every record the tracker keeps.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Amounts are stored as magnitudes (never negative).
The sign of a transaction is derived from is_income, so a single
boolean flip is enough to turn an income into an expense.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


NO_DESCRIPTION = "No Description"
NO_NAME = "No Name"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class DayOfWeek(str, Enum):
    """
    Day a transaction is scheduled for.

    Transactions are organised per week, not per calendar date.
    """
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @property
    def ordinal(self) -> int:
        """Position in the week, Monday = 0."""
        return list(DayOfWeek).index(self)

    @classmethod
    def today(cls) -> "DayOfWeek":
        """The weekday of today's date (default day for new entries)."""
        return list(cls)[date.today().weekday()]


class RecordKind(str, Enum):
    """Kinds of records held by the record store."""
    TRANSACTION = "transaction"
    PREDEFINED_TRANSACTION = "predefined_transaction"
    QUICK_ADD_TRANSACTION = "quick_add_transaction"
    CASH_FLOW_ITEM = "cash_flow_item"
    NET_INCOME = "net_income"


# =============================================================================
# WEEKLY TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense entry for a day of the current week.

    CRITICAL: Creating, deleting, or changing the amount/type of a
    Transaction must always go through the TransactionReconciler so the
    net income balance stays in step.
    """
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    description: str = Field(
        default="",
        max_length=200,
        description="What the money was for"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Magnitude of the transaction (sign comes from is_income)"
    )
    day_of_week: DayOfWeek = Field(
        ...,
        description="Day of the week the transaction belongs to"
    )
    is_income: bool = Field(
        ...,
        description="True for income, False for expense"
    )
    is_completed: bool = Field(
        default=False,
        description="Has the money actually moved?"
    )

    @property
    def signed_amount(self) -> Decimal:
        """Contribution of this transaction to net income."""
        return self.amount if self.is_income else -self.amount

    @property
    def display_description(self) -> str:
        return self.description or NO_DESCRIPTION


class PredefinedTransaction(BaseModel):
    """
    Weekly template used to seed a fresh week of transactions.

    Templates never contribute to net income themselves.
    """
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    description: str = Field(
        default="",
        max_length=200,
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount the seeded transaction will carry"
    )
    day_of_week: DayOfWeek
    is_income: bool

    @property
    def display_description(self) -> str:
        return self.description or NO_DESCRIPTION


class QuickAddTransaction(BaseModel):
    """One-tap template: prefills description, amount and type. No day."""
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    description: str = Field(
        default="",
        max_length=200,
    )
    amount: Decimal = Field(..., gt=0)
    is_income: bool

    @property
    def display_description(self) -> str:
        return self.description or NO_DESCRIPTION


# =============================================================================
# CASH FLOW (IOUs) - separate from net income
# =============================================================================

class CashFlowItem(BaseModel):
    """
    Informal IOU: money someone owes the user, or the user owes someone.

    DESIGN DECISION: Cash flow items are a separate ledger.
    They are NEVER included in the net income balance.
    """
    model_config = ConfigDict(str_strip_whitespace=True, validate_assignment=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique cash flow item ID"
    )
    name: str = Field(
        default="",
        max_length=200,
        description="Who owes (or is owed) the money"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount owed"
    )
    is_owed_to_me: bool = Field(
        default=True,
        description="True = owed to the user, False = the user owes"
    )

    @property
    def display_name(self) -> str:
        return self.name or NO_NAME


# =============================================================================
# NET INCOME - singleton balance record
# =============================================================================

class NetIncomeRecord(BaseModel):
    """The durable copy of the running net income balance."""

    id: UUID = Field(default_factory=uuid4)
    value: Decimal = Field(
        default=Decimal("0"),
        description="Running balance (may be negative)"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last time the balance was written"
    )


Record = Union[
    Transaction,
    PredefinedTransaction,
    QuickAddTransaction,
    CashFlowItem,
    NetIncomeRecord,
]

MODEL_BY_KIND: dict[RecordKind, type[BaseModel]] = {
    RecordKind.TRANSACTION: Transaction,
    RecordKind.PREDEFINED_TRANSACTION: PredefinedTransaction,
    RecordKind.QUICK_ADD_TRANSACTION: QuickAddTransaction,
    RecordKind.CASH_FLOW_ITEM: CashFlowItem,
    RecordKind.NET_INCOME: NetIncomeRecord,
}


def kind_of(record: BaseModel) -> RecordKind:
    """Look up the RecordKind of a model instance."""
    for kind, model in MODEL_BY_KIND.items():
        if type(record) is model:
            return kind
    raise TypeError(f"Not a stored record type: {type(record).__name__}")
