"""
Shared fixtures.

Tests never talk to Google; durable behaviour is exercised with the
in-memory store and small fakes.
"""

import asyncio
from decimal import Decimal

import pytest
import pytest_asyncio

from fintrack.cash_flow import CashFlowBook, CashFlowPromotion
from fintrack.ledger import NetIncomeLedger
from fintrack.models import RecordKind
from fintrack.reconciler import TransactionReconciler
from fintrack.services.storage import InMemoryRecordStore, StorageError
from fintrack.templates import TemplateCatalog


# Long enough that no background write fires during a test
QUIET_DEBOUNCE = 60.0
# Short enough to wait out in a test
FAST_DEBOUNCE = 0.05


class FlakyRecordStore(InMemoryRecordStore):
    """In-memory store whose commits can be made to fail on demand."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False
        self.written_batches = []

    async def _write(self, operations):
        if self.fail_writes:
            raise StorageError("disk full")
        self.written_batches.append(list(operations))

    def net_income_writes(self) -> int:
        """How many successful commits carried a NetIncome write."""
        return sum(
            1 for batch in self.written_batches
            if any(op.kind == RecordKind.NET_INCOME for op in batch)
        )

    def durable_balance(self) -> Decimal:
        records = self.durable_records(RecordKind.NET_INCOME)
        return records[0].value if records else None


class GatedRecordStore(FlakyRecordStore):
    """
    Store whose writes wait on a gate, so commits can be made to overlap.

    Writes of a batch that holds a cash flow item named in
    failing_names are rejected.
    """

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()
        self.gate.set()
        self.failing_names = set()
        self.active_writes = 0
        self.max_active_writes = 0

    async def _write(self, operations):
        self.active_writes += 1
        self.max_active_writes = max(self.max_active_writes, self.active_writes)
        try:
            await self.gate.wait()
            if any(getattr(op.record, "name", None) in self.failing_names for op in operations):
                raise StorageError("rejected")
            await super()._write(operations)
        finally:
            self.active_writes -= 1

    def written_names(self) -> list[str]:
        return [
            op.record.name for batch in self.written_batches for op in batch
            if op.kind == RecordKind.CASH_FLOW_ITEM
        ]


@pytest.fixture
def store() -> FlakyRecordStore:
    return FlakyRecordStore()


@pytest_asyncio.fixture
async def ledger(store):
    ledger = NetIncomeLedger(store, debounce_seconds=QUIET_DEBOUNCE, flush_on_shutdown=False)
    await ledger.load()
    yield ledger
    await ledger.close()


@pytest_asyncio.fixture
async def fast_ledger(store):
    ledger = NetIncomeLedger(store, debounce_seconds=FAST_DEBOUNCE, flush_on_shutdown=False)
    await ledger.load()
    yield ledger
    await ledger.close()


@pytest.fixture
def reconciler(store, ledger) -> TransactionReconciler:
    return TransactionReconciler(store, ledger)


@pytest.fixture
def promotion(store) -> CashFlowPromotion:
    return CashFlowPromotion(store)


@pytest.fixture
def cash_flow(store) -> CashFlowBook:
    return CashFlowBook(store)


@pytest.fixture
def templates(store) -> TemplateCatalog:
    return TemplateCatalog(store)
