"""
Abstract Record Store Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep ledger and reconciliation logic decoupled from storage

The store works like a unit of work: create/update/delete only STAGE
changes, and commit() flushes everything staged since the last commit
in one step. Queries always see staged changes.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
from uuid import UUID

from pydantic import BaseModel

from fintrack.models.records import RecordKind


Predicate = Callable[[Any], bool]
SortKey = Callable[[Any], Any]


class RecordStore(ABC):
    """
    Abstract interface for record storage.

    Any storage implementation (Google Sheets, SQLite, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def create(self, kind: RecordKind, fields: dict[str, Any]) -> BaseModel:
        """
        Build a record of the given kind and stage it for insertion.

        Args:
            kind: Which record kind to create
            fields: Field values for the record's model

        Returns:
            The new record (already visible to queries)
        """
        pass

    @abstractmethod
    async def update(self, record: BaseModel) -> None:
        """
        Stage an update of an existing record.

        Raises:
            NotFoundError: If the record is not in the store
        """
        pass

    @abstractmethod
    async def delete(self, record: BaseModel) -> None:
        """Stage deletion of a record. Deleting a missing record is a no-op."""
        pass

    @abstractmethod
    async def query(
        self,
        kind: RecordKind,
        predicate: Optional[Predicate] = None,
        sort_key: Optional[SortKey] = None,
        reverse: bool = False,
    ) -> list:
        """
        List records of a kind.

        Args:
            kind: Record kind to read
            predicate: Keep only records for which this returns True
            sort_key: Order results by this key
            reverse: Sort descending

        Returns:
            Matching records, including staged changes
        """
        pass

    @abstractmethod
    async def batch_delete(
        self,
        kind: RecordKind,
        predicate: Optional[Predicate] = None,
    ) -> set[UUID]:
        """
        Stage deletion of every matching record of a kind.

        Returns:
            IDs of the records staged for deletion
        """
        pass

    @abstractmethod
    async def commit(self) -> None:
        """
        Flush all staged changes to durable storage.

        Staged changes survive a failed commit and are retried
        by the next one.

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @property
    @abstractmethod
    def pending_count(self) -> int:
        """Number of staged, uncommitted operations."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """Staged changes could not be written to durable storage."""
    pass


class NotFoundError(StorageError):
    """Record not found in storage."""
    pass


class BackendConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
