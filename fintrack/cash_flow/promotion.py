"""
Cash Flow Promotion

One-way conversion of a completed income transaction into IOUs
("who owes me"). Typical use: the user paid for a group and logged the
full amount as income to be collected; promoting it records what each
person owes.

DESIGN DECISION: Promotion NEVER touches the net income ledger. Cash
flow items are a separate, unreconciled ledger; the transaction keeps
counting toward net income exactly as before.

SPLIT POLICY: every participant gets total / n rounded down to the
cent, and the first participant also takes the remainder, so the
shares always add up to exactly the total (100 / 3 -> 33.34, 33.33,
33.33).
"""

from decimal import ROUND_DOWN, Decimal
from typing import Any, Iterable, Optional

from fintrack.models.records import (
    NO_DESCRIPTION,
    CashFlowItem,
    RecordKind,
    Transaction,
)
from fintrack.observability import get_logger
from fintrack.services.storage import PersistenceError, RecordStore
from fintrack.validation import InputValidator, to_decimal


CENT = Decimal("0.01")


def clean_participant_names(names: Iterable[Optional[str]]) -> list[str]:
    """Trim names and drop blank ones, keeping order."""
    return [name.strip() for name in names if name and name.strip()]


def split_evenly(total: Decimal, count: int) -> list[Decimal]:
    """
    Split total into count shares that sum to exactly total.

    The remainder of rounding down to cents goes to the first share.
    """
    if count < 1:
        raise ValueError("count must be at least 1")
    share = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    shares = [share] * count
    shares[0] = total - share * (count - 1)
    return shares


class CashFlowPromotion:
    """Turns completed income into 'owed to me' cash flow items."""

    def __init__(
        self,
        store: RecordStore,
        validator: Optional[InputValidator] = None,
    ):
        self._store = store
        self._validator = validator or InputValidator()
        self._logger = get_logger(__name__)

    async def promote(
        self,
        transaction: Transaction,
        extra_cost: Any = Decimal("0"),
        participant_names: Iterable[Optional[str]] = (),
    ) -> list[CashFlowItem]:
        """
        Create cash flow items for a completed income transaction.

        Args:
            transaction: Completed income transaction
            extra_cost: Surcharge added on top of the amount (>= 0)
            participant_names: People to split the total between.
                               Blank names are ignored.

        Returns:
            One item named after the transaction when there are no
            names, otherwise one item per name with an even share

        Raises:
            ValidationError: Not completed income, or negative extra cost
            PersistenceError: Commit failed. Items already created stay
                              staged; nothing is rolled back.
        """
        self._validator.require_valid(
            self._validator.validate_promotion(transaction, extra_cost)
        )
        total = transaction.amount + to_decimal(extra_cost)
        names = clean_participant_names(participant_names)

        if names:
            shares = list(zip(names, split_evenly(total, len(names))))
        else:
            shares = [(transaction.description or NO_DESCRIPTION, total)]

        items = []
        for name, amount in shares:
            items.append(await self._store.create(
                RecordKind.CASH_FLOW_ITEM,
                {"name": name, "amount": amount, "is_owed_to_me": True},
            ))

        try:
            await self._store.commit()
        except PersistenceError as e:
            self._logger.error(
                "cash_flow_promotion_persist_failed",
                error=str(e),
                transaction_id=str(transaction.id),
                item_count=len(items),
            )
            raise

        self._logger.info(
            "cash_flow_promoted",
            transaction_id=str(transaction.id),
            total=str(total),
            item_count=len(items),
        )
        return items
