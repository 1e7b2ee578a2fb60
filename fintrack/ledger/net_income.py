"""
Net Income Ledger

The single authoritative owner of the running net income balance.
Every change to the balance goes through this class, and it is the
only writer of the NetIncome record.

READS vs WRITES:
- The in-memory balance is updated synchronously and is always the
  value to display. There is no failure mode for the arithmetic.
- Durability is deferred: adjust() and set_direct() only schedule a
  write, which happens once the balance has been quiet for the
  debounce window. A burst of edits produces one write.

FAILURES:
- A failed background write is logged and otherwise ignored. The
  in-memory balance stays correct and the next adjustment retries.
- reset() writes immediately and reports failure to its caller.
- load() never fails: on a storage error the balance starts at 0.
"""

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from fintrack.config import get_settings
from fintrack.ledger.debounce import Debouncer
from fintrack.models.records import NetIncomeRecord, RecordKind
from fintrack.observability import get_logger
from fintrack.services.storage import (
    NotFoundError,
    PersistenceError,
    RecordStore,
    StorageError,
)
from fintrack.validation import InputValidator, to_decimal


ZERO = Decimal("0")


def format_currency(value: Decimal) -> str:
    """Format a balance as $12.50 or -$3.00 (never $-3.00)."""
    prefix = "$" if value >= 0 else "-$"
    return f"{prefix}{abs(value):.2f}"


class NetIncomeLedger:
    """
    Running net income balance with debounced persistence.

    Construct exactly one per record store (the composition root does
    this) and share it with everything that changes the balance.
    """

    def __init__(
        self,
        store: RecordStore,
        debounce_seconds: Optional[float] = None,
        flush_on_shutdown: Optional[bool] = None,
        validator: Optional[InputValidator] = None,
    ):
        """
        Initialize the ledger.

        Args:
            store: Record store holding the NetIncome record
            debounce_seconds: Quiescence window before a write.
                              Defaults to LEDGER_DEBOUNCE_MS.
            flush_on_shutdown: Write an outstanding balance in close().
                               Defaults to LEDGER_FLUSH_ON_SHUTDOWN.
            validator: Input validator (a default one if None)
        """
        if debounce_seconds is None or flush_on_shutdown is None:
            settings = get_settings().ledger
            if debounce_seconds is None:
                debounce_seconds = settings.debounce_seconds
            if flush_on_shutdown is None:
                flush_on_shutdown = settings.flush_on_shutdown

        self._store = store
        self._validator = validator or InputValidator()
        self._flush_on_shutdown = flush_on_shutdown
        self._balance = ZERO
        self._record: Optional[NetIncomeRecord] = None
        self._loaded = False
        self._write_lock = asyncio.Lock()
        self._debouncer = Debouncer(debounce_seconds, self._persist_in_background)
        self._logger = get_logger(__name__)
        self.persist_count = 0

    @property
    def balance(self) -> Decimal:
        """The current balance. Always up to date, regardless of writes."""
        return self._balance

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def has_unsaved_changes(self) -> bool:
        """True while a debounced write is outstanding."""
        return self._debouncer.pending

    async def load(self, create_missing: bool = True) -> Decimal:
        """
        Read the stored balance. Call once at startup.

        Args:
            create_missing: Create the NetIncome record with 0 if none
                            exists yet. Pass False when the store could
                            not be read, so the 0 stays in memory only.

        Storage failures are logged and the balance falls back to 0.
        """
        try:
            records = await self._store.query(RecordKind.NET_INCOME)
            if records:
                self._record = records[0]
                self._balance = self._record.value
            elif create_missing:
                self._balance = ZERO
                self._record = await self._store.create(
                    RecordKind.NET_INCOME,
                    {"value": ZERO},
                )
                await self._store.commit()
            else:
                self._balance = ZERO
        except StorageError as e:
            self._logger.error("net_income_load_failed", error=str(e))
            self._balance = ZERO

        self._loaded = True
        self._logger.info("net_income_loaded", balance=str(self._balance))
        return self._balance

    def adjust(
        self,
        amount: Any,
        is_income: bool,
        is_deletion: bool = False,
    ) -> None:
        """
        Apply one transaction's contribution to the balance.

        delta = amount * (+1 income / -1 expense) * (-1 if is_deletion)

        Args:
            amount: Transaction amount (magnitude, never negative)
            is_income: Whether the transaction is income
            is_deletion: Reverse the contribution instead of applying it

        Raises:
            ValidationError: If amount is negative or not a number
        """
        self._validator.require_valid(
            self._validator.validate_amount(
                amount,
                subject="net_income_adjustment",
                allow_zero=True,
            )
        )
        magnitude = to_decimal(amount)
        delta = magnitude if is_income else -magnitude
        if is_deletion:
            delta = -delta

        self._balance += delta
        self._logger.debug(
            "net_income_adjusted",
            delta=str(delta),
            balance=str(self._balance),
            is_deletion=is_deletion,
        )
        self._debouncer.trigger()

    def set_direct(self, new_value: Any) -> None:
        """
        Replace the balance outright.

        Used by the manual "adjust net income" feature; unrelated
        to any transaction.
        """
        self._validator.require_valid(self._validator.validate_balance(new_value))
        self._balance = to_decimal(new_value)
        self._logger.info("net_income_set", balance=str(self._balance))
        self._debouncer.trigger()

    def apply_manual_adjustment(self, amount: Any, is_addition: bool) -> Decimal:
        """
        Add a positive amount to, or subtract it from, the balance.

        Returns the new balance.
        """
        self._validator.require_valid(
            self._validator.validate_amount(amount, subject="manual_adjustment")
        )
        magnitude = to_decimal(amount)
        self.set_direct(self._balance + magnitude if is_addition else self._balance - magnitude)
        return self._balance

    async def reset(self) -> None:
        """
        Set the balance to 0 and write it immediately.

        Any debounced write still outstanding is dropped; the reset
        value supersedes it. Safe to call repeatedly.

        Raises:
            PersistenceError: If the write fails (the balance is 0 anyway)
        """
        self._debouncer.cancel()
        self._balance = ZERO
        try:
            await self._persist()
        except StorageError as e:
            self._logger.error("net_income_reset_persist_failed", error=str(e))
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(f"Failed to persist reset: {e}") from e
        self._logger.info("net_income_reset")

    async def flush(self) -> None:
        """Write now if a debounced write is outstanding."""
        await self._debouncer.flush()

    async def close(self) -> None:
        """
        Stop the debounce timer, flushing first if configured to.

        Returns once any write already in flight has finished.
        """
        if self._flush_on_shutdown:
            await self.flush()
        else:
            self._debouncer.cancel()
        async with self._write_lock:
            pass

    def format_balance(self) -> str:
        return format_currency(self._balance)

    async def _persist_in_background(self) -> None:
        try:
            await self._persist()
        except Exception as e:
            # No caller to report to; the next adjustment retries
            self._logger.error(
                "net_income_persist_failed",
                error=str(e),
                balance=str(self._balance),
            )

    async def _persist(self) -> None:
        async with self._write_lock:
            value = self._balance
            if self._record is None:
                existing = await self._store.query(RecordKind.NET_INCOME)
                self._record = existing[0] if existing else None

            if self._record is None:
                self._record = await self._store.create(
                    RecordKind.NET_INCOME,
                    {"value": value},
                )
            else:
                self._record.value = value
                self._record.updated_at = datetime.utcnow()
                try:
                    await self._store.update(self._record)
                except NotFoundError:
                    self._record = await self._store.create(
                        RecordKind.NET_INCOME,
                        {"value": value},
                    )

            await self._store.commit()
            self.persist_count += 1
            self._logger.debug("net_income_persisted", balance=str(value))
