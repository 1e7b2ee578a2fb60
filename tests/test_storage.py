"""
Tests for the record stores.

The Google Sheets store runs against an in-process fake worksheet;
no Google API is called.
"""

import asyncio
from decimal import Decimal

import pytest

from fintrack.models import (
    DayOfWeek,
    NetIncomeRecord,
    RecordKind,
    Transaction,
)
from fintrack.services.storage import (
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    PersistenceError,
)
from fintrack.services.storage.google_sheets import (
    columns_for,
    record_to_row,
    row_to_record,
)

from conftest import GatedRecordStore


def transaction_fields(description="Rent", amount="100", is_income=False):
    return {
        "description": description,
        "amount": Decimal(amount),
        "day_of_week": DayOfWeek.MONDAY,
        "is_income": is_income,
    }


class TestInMemoryRecordStore:
    """Tests for staging, commit and the live view."""

    async def test_create_is_visible_before_commit(self):
        store = InMemoryRecordStore()
        created = await store.create(RecordKind.TRANSACTION, transaction_fields())

        assert await store.query(RecordKind.TRANSACTION) == [created]
        assert store.durable_records(RecordKind.TRANSACTION) == []
        assert store.pending_count == 1

    async def test_commit_makes_changes_durable(self):
        store = InMemoryRecordStore()
        created = await store.create(RecordKind.TRANSACTION, transaction_fields())
        await store.commit()

        durable = store.durable_records(RecordKind.TRANSACTION)
        assert [record.id for record in durable] == [created.id]
        assert store.pending_count == 0
        assert store.commit_count == 1

    async def test_durable_view_is_a_snapshot(self):
        store = InMemoryRecordStore()
        created = await store.create(RecordKind.TRANSACTION, transaction_fields())
        await store.commit()

        created.amount = Decimal("5")
        await store.update(created)

        assert store.durable_records(RecordKind.TRANSACTION)[0].amount == Decimal("100")

    async def test_query_filters_and_sorts(self):
        store = InMemoryRecordStore()
        for name in ["carol", "Alice", "bob"]:
            await store.create(RecordKind.CASH_FLOW_ITEM, {"name": name, "amount": Decimal("1")})

        names = [
            item.name for item in await store.query(
                RecordKind.CASH_FLOW_ITEM,
                predicate=lambda item: item.name != "bob",
                sort_key=lambda item: item.name.lower(),
                reverse=True,
            )
        ]
        assert names == ["carol", "Alice"]

    async def test_update_missing_record_raises(self):
        store = InMemoryRecordStore()
        with pytest.raises(NotFoundError):
            await store.update(Transaction(**transaction_fields()))

    async def test_delete_missing_record_is_ignored(self):
        store = InMemoryRecordStore()
        await store.delete(Transaction(**transaction_fields()))
        assert store.pending_count == 0

    async def test_batch_delete(self):
        store = InMemoryRecordStore()
        keep = await store.create(RecordKind.TRANSACTION, transaction_fields(is_income=True))
        await store.create(RecordKind.TRANSACTION, transaction_fields())
        await store.create(RecordKind.TRANSACTION, transaction_fields())
        await store.commit()

        deleted = await store.batch_delete(
            RecordKind.TRANSACTION,
            predicate=lambda t: not t.is_income,
        )

        assert len(deleted) == 2
        assert await store.query(RecordKind.TRANSACTION) == [keep]
        await store.commit()
        assert len(store.durable_records(RecordKind.TRANSACTION)) == 1

    async def test_failed_commit_keeps_staged_operations(self, store):
        store.fail_writes = True
        await store.create(RecordKind.TRANSACTION, transaction_fields())

        with pytest.raises(PersistenceError):
            await store.commit()
        assert store.pending_count == 1
        assert store.durable_records(RecordKind.TRANSACTION) == []

        store.fail_writes = False
        await store.commit()
        assert store.pending_count == 0
        assert len(store.durable_records(RecordKind.TRANSACTION)) == 1

    async def test_later_operations_wait_for_next_commit(self, store):
        await store.create(RecordKind.TRANSACTION, transaction_fields())
        await store.commit()
        later = await store.create(RecordKind.TRANSACTION, transaction_fields())
        assert store.pending_count == 1
        assert store.written_batches[0][0].record.id != later.id


class TestOverlappingCommits:
    """Commits started while another is still writing."""

    async def _stage_and_commit_while_writing(self, store):
        store.gate.clear()
        await store.create(RecordKind.CASH_FLOW_ITEM, {"name": "x1", "amount": Decimal("1")})
        first = asyncio.create_task(store.commit())
        await asyncio.sleep(0)
        assert store.active_writes == 1

        await store.create(RecordKind.CASH_FLOW_ITEM, {"name": "x2", "amount": Decimal("2")})
        second = asyncio.create_task(store.commit())
        await store.create(RecordKind.CASH_FLOW_ITEM, {"name": "x3", "amount": Decimal("3")})
        third = asyncio.create_task(store.commit())
        await asyncio.sleep(0)

        store.gate.set()
        return await asyncio.gather(first, second, third, return_exceptions=True)

    async def test_each_operation_is_written_once(self):
        store = GatedRecordStore()

        results = await self._stage_and_commit_while_writing(store)

        assert results == [None, None, None]
        assert store.max_active_writes == 1
        assert store.written_names() == ["x1", "x2", "x3"]
        assert store.pending_count == 0

    async def test_failed_overlapping_commit_keeps_its_operations(self):
        store = GatedRecordStore()
        store.failing_names = {"x3"}

        results = await self._stage_and_commit_while_writing(store)

        assert results[0] is None
        assert all(isinstance(result, PersistenceError) for result in results[1:])
        assert store.written_names() == ["x1"]
        assert store.pending_count == 2

        store.failing_names.clear()
        await store.commit()

        assert store.written_names() == ["x1", "x2", "x3"]
        durable = store.durable_records(RecordKind.CASH_FLOW_ITEM)
        assert sorted(item.name for item in durable) == ["x1", "x2", "x3"]
        assert store.pending_count == 0


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the record store."""

    def __init__(self, header):
        self.rows = [list(header)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def col_values(self, column):
        return [row[column - 1] if len(row) >= column else "" for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append(list(row))

    def update(self, values, range_name):
        row_number = int(range_name[1:])
        self.rows[row_number - 1] = list(values[0])

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:

    def __init__(self):
        self.sheets = {kind: FakeWorksheet(columns_for(kind)) for kind in RecordKind}

    def get_worksheet(self, kind):
        return self.sheets[kind]


class TestRowConversion:

    def test_header_starts_with_id(self):
        for kind in RecordKind:
            assert columns_for(kind)[0] == "id"

    def test_transaction_row_round_trip(self):
        transaction = Transaction(
            description="Paycheck",
            amount=Decimal("1250.75"),
            day_of_week=DayOfWeek.FRIDAY,
            is_income=True,
            is_completed=True,
        )
        row = record_to_row(transaction)
        assert row[0] == str(transaction.id)
        assert row_to_record(RecordKind.TRANSACTION, row) == transaction


class TestGoogleSheetsRecordStore:
    """Tests for writing and loading through worksheets."""

    async def test_commit_appends_then_updates_rows(self):
        client = FakeSheetsClient()
        store = GoogleSheetsRecordStore(client)
        await store.load()

        transaction = await store.create(RecordKind.TRANSACTION, transaction_fields())
        await store.commit()
        transaction.amount = Decimal("80")
        await store.update(transaction)
        await store.commit()

        rows = client.sheets[RecordKind.TRANSACTION].rows
        assert len(rows) == 2
        assert row_to_record(RecordKind.TRANSACTION, rows[1]).amount == Decimal("80")

    async def test_delete_removes_row(self):
        client = FakeSheetsClient()
        store = GoogleSheetsRecordStore(client)
        await store.load()

        first = await store.create(RecordKind.TRANSACTION, transaction_fields("First"))
        await store.create(RecordKind.TRANSACTION, transaction_fields("Second"))
        await store.commit()
        await store.delete(first)
        await store.commit()

        rows = client.sheets[RecordKind.TRANSACTION].rows
        assert [row[1] for row in rows[1:]] == ["Second"]

    async def test_replaying_a_batch_is_idempotent(self):
        client = FakeSheetsClient()
        store = GoogleSheetsRecordStore(client)

        doomed = await store.create(RecordKind.TRANSACTION, transaction_fields("Gone"))
        kept = await store.create(RecordKind.TRANSACTION, transaction_fields("Kept"))
        await store.delete(doomed)
        operations = list(store._staged)

        store._apply_operations(operations)
        store._apply_operations(operations)

        rows = client.sheets[RecordKind.TRANSACTION].rows
        assert [row[0] for row in rows[1:]] == [str(kept.id)]

    async def test_load_seeds_live_and_durable_views(self):
        client = FakeSheetsClient()
        record = NetIncomeRecord(value=Decimal("-12.34"))
        client.sheets[RecordKind.NET_INCOME].append_row(record_to_row(record))

        store = GoogleSheetsRecordStore(client)
        await store.load()

        loaded = await store.query(RecordKind.NET_INCOME)
        assert [r.value for r in loaded] == [Decimal("-12.34")]
        assert store.durable_records(RecordKind.NET_INCOME)[0].id == record.id
        assert store.pending_count == 0

    async def test_load_skips_malformed_rows(self):
        client = FakeSheetsClient()
        good = Transaction(**transaction_fields())
        sheet = client.sheets[RecordKind.TRANSACTION]
        sheet.append_row(record_to_row(good))
        sheet.append_row(["not-a-uuid", "Broken", "abc", "Someday", "maybe", "no"])
        sheet.append_row([])

        store = GoogleSheetsRecordStore(client)
        await store.load()

        assert [t.id for t in await store.query(RecordKind.TRANSACTION)] == [good.id]

    async def test_delete_removes_duplicate_rows(self):
        client = FakeSheetsClient()
        transaction = Transaction(**transaction_fields())
        sheet = client.sheets[RecordKind.TRANSACTION]
        sheet.append_row(record_to_row(transaction))
        sheet.append_row(record_to_row(transaction))

        store = GoogleSheetsRecordStore(client)
        await store.load()
        await store.delete((await store.query(RecordKind.TRANSACTION))[0])
        await store.commit()

        assert sheet.rows == [columns_for(RecordKind.TRANSACTION)]

    async def test_overlapping_commits_then_delete_leave_no_row(self):
        client = FakeSheetsClient()
        store = GoogleSheetsRecordStore(client)
        await store.load()

        transaction = await store.create(RecordKind.TRANSACTION, transaction_fields("Pay"))
        await asyncio.gather(store.commit(), store.commit())
        assert len(client.sheets[RecordKind.TRANSACTION].rows) == 2

        await store.delete(transaction)
        await store.commit()

        restarted = GoogleSheetsRecordStore(client)
        await restarted.load()
        assert await restarted.query(RecordKind.TRANSACTION) == []

    async def test_refuses_to_write_before_load(self):
        client = FakeSheetsClient()
        store = GoogleSheetsRecordStore(client)

        await store.create(RecordKind.NET_INCOME, {"value": Decimal("0")})
        with pytest.raises(PersistenceError):
            await store.commit()

        assert store.is_loaded is False
        assert store.pending_count == 1
        assert client.sheets[RecordKind.NET_INCOME].rows == [columns_for(RecordKind.NET_INCOME)]
