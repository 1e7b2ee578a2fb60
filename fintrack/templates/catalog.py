"""
Template Catalog

Manages the two kinds of transaction templates:
- predefined transactions, which seed a new week (initialize_week)
- quick add transactions, one-tap presets on the add screen

Templates never contribute to net income, so nothing here calls the
ledger.
"""

from typing import Any, Optional

from fintrack.models.records import (
    DayOfWeek,
    PredefinedTransaction,
    QuickAddTransaction,
    RecordKind,
)
from fintrack.observability import get_logger
from fintrack.services.storage import RecordStore
from fintrack.validation import InputValidator, to_decimal


class TemplateCatalog:
    """CRUD over predefined and quick add templates."""

    def __init__(
        self,
        store: RecordStore,
        validator: Optional[InputValidator] = None,
    ):
        self._store = store
        self._validator = validator or InputValidator()
        self._logger = get_logger(__name__)

    # -------------------------------------------------------------------------
    # Predefined (weekly) templates
    # -------------------------------------------------------------------------

    async def add_predefined(
        self,
        description: str,
        amount: Any,
        day_of_week: Any,
        is_income: bool,
    ) -> PredefinedTransaction:
        self._validator.require_valid(
            self._validator.validate_transaction(
                description, amount, day_of_week, subject="predefined_transaction"
            )
        )
        template = await self._store.create(
            RecordKind.PREDEFINED_TRANSACTION,
            {
                "description": description,
                "amount": to_decimal(amount),
                "day_of_week": DayOfWeek(day_of_week),
                "is_income": is_income,
            },
        )
        await self._store.commit()
        self._logger.info("predefined_transaction_added", template_id=str(template.id))
        return template

    async def edit_predefined(
        self,
        template: PredefinedTransaction,
        description: str,
        amount: Any,
        day_of_week: Any,
        is_income: bool,
    ) -> None:
        self._validator.require_valid(
            self._validator.validate_transaction(
                description, amount, day_of_week, subject="predefined_transaction"
            )
        )
        template.description = description
        template.amount = to_decimal(amount)
        template.day_of_week = DayOfWeek(day_of_week)
        template.is_income = is_income
        await self._store.update(template)
        await self._store.commit()
        self._logger.info("predefined_transaction_edited", template_id=str(template.id))

    async def delete_predefined(self, template: PredefinedTransaction) -> None:
        await self._store.delete(template)
        await self._store.commit()
        self._logger.info("predefined_transaction_deleted", template_id=str(template.id))

    async def list_predefined(
        self,
        day: Optional[DayOfWeek] = None,
    ) -> list[PredefinedTransaction]:
        """Weekly templates, Monday first, optionally for one day."""
        return await self._store.query(
            RecordKind.PREDEFINED_TRANSACTION,
            predicate=(lambda t: t.day_of_week == DayOfWeek(day)) if day else None,
            sort_key=lambda t: t.day_of_week.ordinal,
        )

    # -------------------------------------------------------------------------
    # Quick add templates
    # -------------------------------------------------------------------------

    async def add_quick_add(
        self,
        description: str,
        amount: Any,
        is_income: bool,
    ) -> QuickAddTransaction:
        self._validator.require_valid(
            self._validator.validate_quick_add(description, amount)
        )
        template = await self._store.create(
            RecordKind.QUICK_ADD_TRANSACTION,
            {
                "description": description,
                "amount": to_decimal(amount),
                "is_income": is_income,
            },
        )
        await self._store.commit()
        self._logger.info("quick_add_transaction_added", template_id=str(template.id))
        return template

    async def edit_quick_add(
        self,
        template: QuickAddTransaction,
        description: str,
        amount: Any,
        is_income: bool,
    ) -> None:
        self._validator.require_valid(
            self._validator.validate_quick_add(description, amount)
        )
        template.description = description
        template.amount = to_decimal(amount)
        template.is_income = is_income
        await self._store.update(template)
        await self._store.commit()
        self._logger.info("quick_add_transaction_edited", template_id=str(template.id))

    async def delete_quick_add(self, template: QuickAddTransaction) -> None:
        await self._store.delete(template)
        await self._store.commit()
        self._logger.info("quick_add_transaction_deleted", template_id=str(template.id))

    async def list_quick_add(
        self,
        is_income: Optional[bool] = None,
    ) -> list[QuickAddTransaction]:
        """Quick add templates by description, optionally income or expense only."""
        return await self._store.query(
            RecordKind.QUICK_ADD_TRANSACTION,
            predicate=(
                None if is_income is None
                else lambda t: t.is_income == is_income
            ),
            sort_key=lambda t: t.description.lower(),
        )
