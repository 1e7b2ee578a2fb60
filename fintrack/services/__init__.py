"""Services package."""

from fintrack.services.storage import (
    BackendConnectionError,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    PersistenceError,
    RecordStore,
    StorageError,
)

__all__ = [
    "BackendConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryRecordStore",
    "NotFoundError",
    "PersistenceError",
    "RecordStore",
    "StorageError",
]
