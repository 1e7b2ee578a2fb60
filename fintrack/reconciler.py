"""
Transaction Reconciler

Keeps the net income ledger and the stored transactions consistent.

INVARIANT: ledger balance == sum of signed amounts of the active
transactions, plus manual adjustments, since the last reset.

To hold it, every operation that creates or deletes a transaction, or
changes its amount or type, makes exactly one matching ledger call per
contribution:
- add:    adjust(new)
- delete: adjust(old, is_deletion=True)
- edit:   adjust(old, is_deletion=True) THEN adjust(new)

An edit is never applied as one net delta. Switching income to expense
flips the sign, so {100, income} -> {60, expense} moves the balance by
-160, not by -40.

FAILURE POSTURE: input is validated before anything changes. Once the
ledger has been adjusted, a failed commit is reported to the caller as
PersistenceError but the ledger is NOT rolled back; the staged records
are retried by the next commit.
"""

from decimal import Decimal
from typing import Any, Optional

from fintrack.ledger import NetIncomeLedger
from fintrack.models.records import (
    NO_DESCRIPTION,
    DayOfWeek,
    PredefinedTransaction,
    QuickAddTransaction,
    RecordKind,
    Transaction,
)
from fintrack.models.results import InitializeWeekOutcome
from fintrack.observability import get_logger
from fintrack.services.storage import NotFoundError, PersistenceError, RecordStore
from fintrack.validation import InputValidator, to_decimal


def _weekday_order(record) -> int:
    return record.day_of_week.ordinal


class TransactionReconciler:
    """
    Orchestrates every flow that changes the set of transactions.

    Flows:
    1. Add / quick add → create record, adjust ledger, commit
    2. Edit → reverse old contribution, apply new one, update, commit
    3. Delete → reverse contribution, delete, commit
    4. Toggle completed → update only (completion never moves money)
    5. Reset → delete every transaction, zero the ledger
    6. Initialize week → reset, then seed from the weekly templates
    """

    def __init__(
        self,
        store: RecordStore,
        ledger: NetIncomeLedger,
        validator: Optional[InputValidator] = None,
    ):
        self._store = store
        self._ledger = ledger
        self._validator = validator or InputValidator()
        self._logger = get_logger(__name__)

    @property
    def ledger(self) -> NetIncomeLedger:
        return self._ledger

    async def add_transaction(
        self,
        description: str,
        amount: Any,
        day_of_week: Any,
        is_income: bool,
    ) -> Transaction:
        """
        Record a new, not yet completed transaction.

        Raises:
            ValidationError: Blank description, non-positive amount or bad day
            PersistenceError: Commit failed (the ledger keeps the adjustment)
        """
        self._validator.require_valid(
            self._validator.validate_transaction(description, amount, day_of_week)
        )
        transaction = await self._store.create(
            RecordKind.TRANSACTION,
            {
                "description": description,
                "amount": to_decimal(amount),
                "day_of_week": DayOfWeek(day_of_week),
                "is_income": is_income,
                "is_completed": False,
            },
        )
        self._ledger.adjust(transaction.amount, transaction.is_income)

        await self._commit(
            "transaction_added",
            transaction_id=str(transaction.id),
            amount=str(transaction.amount),
            is_income=transaction.is_income,
        )
        return transaction

    async def edit_transaction(
        self,
        existing: Transaction,
        description: str,
        amount: Any,
        day_of_week: Any,
        is_income: bool,
    ) -> None:
        """
        Change any field of a transaction.

        The old contribution is reversed before the new one is applied.

        Raises:
            ValidationError: Invalid new values (nothing is changed)
            NotFoundError: The transaction is no longer stored
            PersistenceError: Commit failed (the ledger keeps both adjustments)
        """
        self._validator.require_valid(
            self._validator.validate_transaction(description, amount, day_of_week)
        )
        await self._require_stored(existing)

        new_amount = to_decimal(amount)
        old_amount, was_income = existing.amount, existing.is_income

        self._ledger.adjust(old_amount, was_income, is_deletion=True)
        self._ledger.adjust(new_amount, is_income, is_deletion=False)

        existing.description = description
        existing.amount = new_amount
        existing.day_of_week = DayOfWeek(day_of_week)
        existing.is_income = is_income
        await self._store.update(existing)

        await self._commit(
            "transaction_edited",
            transaction_id=str(existing.id),
            old_amount=str(old_amount),
            was_income=was_income,
            new_amount=str(new_amount),
            is_income=is_income,
        )

    async def delete_transaction(self, existing: Transaction) -> None:
        """
        Remove a transaction and its contribution to net income.

        Raises:
            NotFoundError: The transaction is no longer stored
            PersistenceError: Commit failed (the ledger keeps the reversal)
        """
        await self._require_stored(existing)

        self._ledger.adjust(existing.amount, existing.is_income, is_deletion=True)
        await self._store.delete(existing)

        await self._commit(
            "transaction_deleted",
            transaction_id=str(existing.id),
            amount=str(existing.amount),
            is_income=existing.is_income,
        )

    async def toggle_completed(self, transaction: Transaction) -> bool:
        """
        Flip the completed flag. Returns the new state.

        Completion never touches the ledger: a completed transaction
        still counts toward net income. When this returns True for an
        income transaction the caller may offer cash flow promotion
        (see should_offer_promotion); un-marking never does.
        """
        await self._require_stored(transaction)

        transaction.is_completed = not transaction.is_completed
        await self._store.update(transaction)

        await self._commit(
            "transaction_completion_toggled",
            transaction_id=str(transaction.id),
            is_completed=transaction.is_completed,
        )
        return transaction.is_completed

    @staticmethod
    def should_offer_promotion(transaction: Transaction) -> bool:
        """True for income that has just been marked complete."""
        return transaction.is_income and transaction.is_completed

    async def reset_all(self) -> None:
        """
        Delete every transaction and set net income to 0.

        The bulk delete is staged first and the ledger reset commits it
        together with the zero balance. Repeating a reset is harmless.

        Raises:
            PersistenceError: The commit failed. The balance is 0 and no
                              transaction is visible; the deletes stay
                              staged for the next commit.
        """
        deleted = await self._store.batch_delete(RecordKind.TRANSACTION)
        await self._ledger.reset()
        self._logger.info("transactions_reset", deleted_count=len(deleted))

    async def initialize_week(self) -> InitializeWeekOutcome:
        """
        Start a fresh week from the predefined templates.

        Always resets first. Then creates one transaction and makes one
        ledger adjustment per template, in weekday order.

        Returns:
            NO_TEMPLATES if there are no templates (nothing is seeded),
            SUCCESS otherwise
        """
        await self.reset_all()

        templates: list[PredefinedTransaction] = await self._store.query(
            RecordKind.PREDEFINED_TRANSACTION,
            sort_key=_weekday_order,
        )
        if not templates:
            self._logger.info("week_initialization_skipped", reason="no_templates")
            return InitializeWeekOutcome.NO_TEMPLATES

        for template in templates:
            await self._store.create(
                RecordKind.TRANSACTION,
                {
                    "description": template.description,
                    "amount": template.amount,
                    "day_of_week": template.day_of_week,
                    "is_income": template.is_income,
                    "is_completed": False,
                },
            )
            self._ledger.adjust(template.amount, template.is_income)

        await self._commit("week_initialized", seeded_count=len(templates))
        return InitializeWeekOutcome.SUCCESS

    async def apply_quick_add_template(
        self,
        template: QuickAddTransaction,
        target_day: Any,
    ) -> Transaction:
        """
        Create a transaction from a quick add template on the given day.

        Raises:
            ValidationError: Bad day or a template with a non-positive amount
            PersistenceError: Commit failed (the ledger keeps the adjustment)
        """
        self._validator.require_valid(
            self._validator.validate_transaction(
                template.description or NO_DESCRIPTION,
                template.amount,
                target_day,
                subject="quick_add_application",
            )
        )
        transaction = await self._store.create(
            RecordKind.TRANSACTION,
            {
                "description": template.description,
                "amount": template.amount,
                "day_of_week": DayOfWeek(target_day),
                "is_income": template.is_income,
                "is_completed": False,
            },
        )
        self._ledger.adjust(transaction.amount, transaction.is_income)

        await self._commit(
            "quick_add_applied",
            template_id=str(template.id),
            transaction_id=str(transaction.id),
            day_of_week=transaction.day_of_week.value,
        )
        return transaction

    async def list_transactions(
        self,
        day: Optional[DayOfWeek] = None,
    ) -> list[Transaction]:
        """All transactions (optionally for one day), Monday first."""
        return await self._store.query(
            RecordKind.TRANSACTION,
            predicate=(lambda t: t.day_of_week == DayOfWeek(day)) if day else None,
            sort_key=_weekday_order,
        )

    async def list_open_transactions(
        self,
        day: Optional[DayOfWeek] = None,
    ) -> list[Transaction]:
        """Transactions still to be completed, as shown on the week view."""
        return [t for t in await self.list_transactions(day) if not t.is_completed]

    async def expected_balance(self) -> Decimal:
        """Signed sum of the stored transactions (ignores manual adjustments)."""
        transactions = await self.list_transactions()
        return sum((t.signed_amount for t in transactions), Decimal("0"))

    async def _require_stored(self, transaction: Transaction) -> None:
        # A stale reference must not move the balance a second time
        matches = await self._store.query(
            RecordKind.TRANSACTION,
            predicate=lambda t: t.id == transaction.id,
        )
        if not matches:
            raise NotFoundError(f"transaction not found: {transaction.id}")

    async def _commit(self, event: str, **context) -> None:
        try:
            await self._store.commit()
        except PersistenceError as e:
            self._logger.error(f"{event}_persist_failed", error=str(e), **context)
            raise
        self._logger.info(event, balance=str(self._ledger.balance), **context)
