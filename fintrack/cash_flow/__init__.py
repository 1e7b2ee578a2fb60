"""Cash flow (IOU) package."""

from fintrack.cash_flow.book import CashFlowBook
from fintrack.cash_flow.promotion import (
    CashFlowPromotion,
    clean_participant_names,
    split_evenly,
)

__all__ = [
    "CashFlowBook",
    "CashFlowPromotion",
    "clean_participant_names",
    "split_evenly",
]
