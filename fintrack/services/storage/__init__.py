"""
Storage Services Package

Provides the abstract record store interface and concrete implementations.
Ships an in-memory store and a Google Sheets store; designed to be swappable.
"""

from fintrack.services.storage.interface import (
    BackendConnectionError,
    NotFoundError,
    PersistenceError,
    RecordStore,
    StorageError,
)
from fintrack.services.storage.memory import InMemoryRecordStore, StagedOperation
from fintrack.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)

__all__ = [
    # Interfaces
    "RecordStore",
    # Exceptions
    "BackendConnectionError",
    "NotFoundError",
    "PersistenceError",
    "StorageError",
    # Implementations
    "InMemoryRecordStore",
    "StagedOperation",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
]
