"""
In-Memory Record Store

Keeps two views of every record kind:
- the live view, which queries read and callers mutate
- the durable view, a deep copy of each record as of the last
  successful commit

Staged operations sit between the two. commit() hands them to
_write() (a no-op here; durable backends override it) and only then
folds them into the durable view. A failed write leaves them staged.
"""

import asyncio
from typing import Any, NamedTuple, Optional
from uuid import UUID

from pydantic import BaseModel

from fintrack.models.records import MODEL_BY_KIND, RecordKind, kind_of
from fintrack.observability import get_logger
from fintrack.services.storage.interface import (
    NotFoundError,
    PersistenceError,
    Predicate,
    RecordStore,
    SortKey,
    StorageError,
)


UPSERT = "upsert"
DELETE = "delete"


class StagedOperation(NamedTuple):
    """One change waiting for commit()."""
    action: str
    kind: RecordKind
    record: BaseModel


class InMemoryRecordStore(RecordStore):
    """Record store held entirely in process memory."""

    def __init__(self):
        self._live: dict[RecordKind, dict[UUID, BaseModel]] = {
            kind: {} for kind in RecordKind
        }
        self._durable: dict[RecordKind, dict[UUID, BaseModel]] = {
            kind: {} for kind in RecordKind
        }
        self._staged: list[StagedOperation] = []
        # One commit at a time: snapshot, write and fold happen together
        self._commit_lock = asyncio.Lock()
        self._logger = get_logger(__name__)
        self.commit_count = 0

    async def create(self, kind: RecordKind, fields: dict[str, Any]) -> BaseModel:
        record = MODEL_BY_KIND[kind](**fields)
        self._live[kind][record.id] = record
        self._staged.append(StagedOperation(UPSERT, kind, record))
        return record

    async def update(self, record: BaseModel) -> None:
        kind = kind_of(record)
        if record.id not in self._live[kind]:
            raise NotFoundError(f"{kind.value} not found: {record.id}")
        self._live[kind][record.id] = record
        self._staged.append(StagedOperation(UPSERT, kind, record))

    async def delete(self, record: BaseModel) -> None:
        kind = kind_of(record)
        if self._live[kind].pop(record.id, None) is not None:
            self._staged.append(StagedOperation(DELETE, kind, record))

    async def query(
        self,
        kind: RecordKind,
        predicate: Optional[Predicate] = None,
        sort_key: Optional[SortKey] = None,
        reverse: bool = False,
    ) -> list:
        records = [
            record for record in self._live[kind].values()
            if predicate is None or predicate(record)
        ]
        if sort_key is not None:
            records.sort(key=sort_key, reverse=reverse)
        return records

    async def batch_delete(
        self,
        kind: RecordKind,
        predicate: Optional[Predicate] = None,
    ) -> set[UUID]:
        doomed = await self.query(kind, predicate)
        for record in doomed:
            del self._live[kind][record.id]
            self._staged.append(StagedOperation(DELETE, kind, record))
        return {record.id for record in doomed}

    async def commit(self) -> None:
        async with self._commit_lock:
            operations = list(self._staged)
            try:
                await self._write(operations)
            except StorageError as e:
                self._logger.error(
                    "record_store_commit_failed",
                    error=str(e),
                    pending=len(operations),
                )
                raise PersistenceError(f"Failed to commit changes: {e}") from e

            # Operations staged while the write was running stay queued
            written = {id(operation) for operation in operations}
            self._staged = [
                operation for operation in self._staged
                if id(operation) not in written
            ]
            for operation in operations:
                table = self._durable[operation.kind]
                if operation.action == UPSERT:
                    table[operation.record.id] = operation.record.model_copy(deep=True)
                else:
                    table.pop(operation.record.id, None)
            self.commit_count += 1

    @property
    def pending_count(self) -> int:
        return len(self._staged)

    async def _write(self, operations: list[StagedOperation]) -> None:
        """
        Write staged operations to the backing medium.

        Raise StorageError on failure. Nothing to do in memory.
        """
        return None

    def seed(self, kind: RecordKind, records: list[BaseModel]) -> None:
        """Install already-durable records (used when loading a backend)."""
        for record in records:
            self._live[kind][record.id] = record
            self._durable[kind][record.id] = record.model_copy(deep=True)

    def durable_records(self, kind: RecordKind) -> list[BaseModel]:
        """Records of a kind as of the last successful commit."""
        return list(self._durable[kind].values())
