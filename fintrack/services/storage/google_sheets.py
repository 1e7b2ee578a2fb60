"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the durable backend because:
1. Users can view and export their week directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (a week of transactions is tiny)
- No transactions (we write staged operations in order and make
  every write idempotent, so a retried commit converges)
- Limited query capabilities (records are cached and filtered in Python)

The store keeps the in-memory views of InMemoryRecordStore and only
overrides how staged operations are written and how data is loaded.
"""

import asyncio
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from pydantic import BaseModel
from tenacity import retry, stop_after_attempt, wait_exponential

from fintrack.config import GoogleSheetsSettings, get_settings
from fintrack.models.records import MODEL_BY_KIND, RecordKind
from fintrack.services.storage.interface import BackendConnectionError, StorageError
from fintrack.services.storage.memory import (
    UPSERT,
    InMemoryRecordStore,
    StagedOperation,
)


def columns_for(kind: RecordKind) -> list[str]:
    """Sheet header for a record kind: the model's field names, id first."""
    return list(MODEL_BY_KIND[kind].model_fields)


def record_to_row(record: BaseModel) -> list[str]:
    """Convert a record to a spreadsheet row."""
    data = record.model_dump(mode="json")
    return ["" if data[column] is None else str(data[column]) for column in data]


def row_to_record(kind: RecordKind, row: list[str]) -> BaseModel:
    """Convert a spreadsheet row back to a record."""
    columns = columns_for(kind)
    padded = list(row) + [""] * (len(columns) - len(row))
    return MODEL_BY_KIND[kind].model_validate(dict(zip(columns, padded)))


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise BackendConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise BackendConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise BackendConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def sheet_name(self, kind: RecordKind) -> str:
        return {
            RecordKind.TRANSACTION: self._settings.transactions_sheet_name,
            RecordKind.PREDEFINED_TRANSACTION: self._settings.predefined_sheet_name,
            RecordKind.QUICK_ADD_TRANSACTION: self._settings.quick_add_sheet_name,
            RecordKind.CASH_FLOW_ITEM: self._settings.cash_flow_sheet_name,
            RecordKind.NET_INCOME: self._settings.net_income_sheet_name,
        }[kind]

    def get_worksheet(self, kind: RecordKind) -> gspread.Worksheet:
        """Get or create the worksheet for a record kind."""
        spreadsheet = self.get_spreadsheet()
        title = self.sheet_name(kind)
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            columns = columns_for(kind)
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=500,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


class GoogleSheetsRecordStore(InMemoryRecordStore):
    """
    Google Sheets implementation of the record store.

    One worksheet per record kind, one record per row, id in column A.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        super().__init__()
        self._client = client or GoogleSheetsClient()
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        """True once load() has read every worksheet."""
        return self._loaded

    async def load(self) -> None:
        """
        Read every worksheet into memory. Call once at startup.

        Until a load succeeds the store refuses to write, so records
        created in the meantime can never duplicate rows that are
        already in the sheet.
        """
        try:
            loaded = await asyncio.to_thread(self._read_all)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load records: {e}") from e

        for kind, records in loaded.items():
            self.seed(kind, records)
        self._loaded = True

    def _read_all(self) -> dict[RecordKind, list[BaseModel]]:
        loaded = {}
        for kind in RecordKind:
            sheet = self._client.get_worksheet(kind)
            records = []
            for row in sheet.get_all_values()[1:]:  # Skip header
                if not row or not row[0]:  # Skip empty rows
                    continue
                try:
                    records.append(row_to_record(kind, row))
                except ValueError as e:
                    self._logger.warning(
                        "sheet_row_skipped",
                        kind=kind.value,
                        row_id=row[0],
                        error=str(e),
                    )
            loaded[kind] = records
        return loaded

    async def _write(self, operations: list[StagedOperation]) -> None:
        if not operations:
            return
        if not self._loaded:
            raise BackendConnectionError(
                "Google Sheets has not been loaded; refusing to write"
            )
        await self._send(operations)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _send(self, operations: list[StagedOperation]) -> None:
        try:
            await asyncio.to_thread(self._apply_operations, operations)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write to Google Sheets: {e}") from e

    def _apply_operations(self, operations: list[StagedOperation]) -> None:
        """
        Apply operations in order.

        Upserts replace the row with the same id or append one, and
        deletes remove every row with the id (none is fine), so
        replaying a partially applied batch is safe.
        """
        sheets: dict[RecordKind, gspread.Worksheet] = {}
        row_ids: dict[RecordKind, list[str]] = {}

        for operation in operations:
            kind = operation.kind
            if kind not in sheets:
                sheets[kind] = self._client.get_worksheet(kind)
                row_ids[kind] = sheets[kind].col_values(1)
            sheet, ids = sheets[kind], row_ids[kind]
            record_id = str(operation.record.id)

            if operation.action == UPSERT:
                row = record_to_row(operation.record)
                if record_id in ids:
                    row_number = ids.index(record_id) + 1
                    sheet.update(values=[row], range_name=f"A{row_number}")
                else:
                    sheet.append_row(row, value_input_option="RAW")
                    ids.append(record_id)
            else:
                # Bottom up so earlier row numbers stay valid
                for index in reversed(range(len(ids))):
                    if ids[index] == record_id:
                        sheet.delete_rows(index + 1)
                        ids.pop(index)
