"""
Cash Flow Book

Add, edit, delete and list IOUs entered by hand: money owed to the
user ("who owes me") and money the user owes ("who I owe").
None of this touches net income.
"""

from typing import Any, Optional

from fintrack.models.records import CashFlowItem, RecordKind
from fintrack.observability import get_logger
from fintrack.services.storage import NotFoundError, RecordStore
from fintrack.validation import InputValidator, to_decimal


class CashFlowBook:
    """CRUD over cash flow items."""

    def __init__(
        self,
        store: RecordStore,
        validator: Optional[InputValidator] = None,
    ):
        self._store = store
        self._validator = validator or InputValidator()
        self._logger = get_logger(__name__)

    async def add_item(
        self,
        name: str,
        amount: Any,
        is_owed_to_me: bool = True,
    ) -> CashFlowItem:
        """Record a new IOU."""
        self._validator.require_valid(
            self._validator.validate_cash_flow_item(name, amount)
        )
        item = await self._store.create(
            RecordKind.CASH_FLOW_ITEM,
            {"name": name, "amount": to_decimal(amount), "is_owed_to_me": is_owed_to_me},
        )
        await self._store.commit()
        self._logger.info(
            "cash_flow_item_added",
            item_id=str(item.id),
            is_owed_to_me=is_owed_to_me,
        )
        return item

    async def edit_item(
        self,
        item: CashFlowItem,
        name: str,
        amount: Any,
        is_owed_to_me: bool,
    ) -> None:
        """Change the name, amount or direction of an IOU."""
        self._validator.require_valid(
            self._validator.validate_cash_flow_item(name, amount)
        )
        item.name = name
        item.amount = to_decimal(amount)
        item.is_owed_to_me = is_owed_to_me
        await self._store.update(item)
        await self._store.commit()
        self._logger.info("cash_flow_item_edited", item_id=str(item.id))

    async def delete_item(self, item: CashFlowItem) -> None:
        """Remove an IOU (e.g. once it has been settled)."""
        await self._store.delete(item)
        await self._store.commit()
        self._logger.info("cash_flow_item_deleted", item_id=str(item.id))

    async def list_items(
        self,
        is_owed_to_me: Optional[bool] = None,
    ) -> list[CashFlowItem]:
        """IOUs ordered by name, optionally only one direction."""
        return await self._store.query(
            RecordKind.CASH_FLOW_ITEM,
            predicate=(
                None if is_owed_to_me is None
                else lambda item: item.is_owed_to_me == is_owed_to_me
            ),
            sort_key=lambda item: item.name.lower(),
        )

    async def get_item(self, item_id) -> CashFlowItem:
        matches = await self._store.query(
            RecordKind.CASH_FLOW_ITEM,
            predicate=lambda item: item.id == item_id,
        )
        if not matches:
            raise NotFoundError(f"cash flow item not found: {item_id}")
        return matches[0]
