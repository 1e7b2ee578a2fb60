"""
Data Models Package

This package contains all Pydantic models used by the Finance Tracker.
All data flowing through the system must conform to these schemas.
"""

from fintrack.models.records import (
    MODEL_BY_KIND,
    NO_DESCRIPTION,
    NO_NAME,
    CashFlowItem,
    DayOfWeek,
    NetIncomeRecord,
    PredefinedTransaction,
    QuickAddTransaction,
    Record,
    RecordKind,
    Transaction,
    kind_of,
)
from fintrack.models.results import (
    InitializeWeekOutcome,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Records
    "MODEL_BY_KIND",
    "NO_DESCRIPTION",
    "NO_NAME",
    "CashFlowItem",
    "DayOfWeek",
    "NetIncomeRecord",
    "PredefinedTransaction",
    "QuickAddTransaction",
    "Record",
    "RecordKind",
    "Transaction",
    "kind_of",
    # Results
    "InitializeWeekOutcome",
    "ValidationIssue",
    "ValidationResult",
]
