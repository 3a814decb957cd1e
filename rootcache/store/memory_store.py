"""In-memory record store for development, testing and embedding."""

import asyncio
import logging
from collections.abc import AsyncIterator

from rootcache.core import defaults
from rootcache.core.exceptions import ConcurrentUpdateError, RecordNotFoundError
from rootcache.core.models import AnalysisRecord, RecordDraft, RecordUpdate
from rootcache.store.base import RecordStore

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """Dict-based record store.

    Not persistent and single-process only.

    Thread Safety:
        Uses asyncio.Lock so each read-modify-write is atomic with respect
        to other coroutines on the same loop.
    """

    def __init__(self) -> None:
        self._records: dict[str, AnalysisRecord] = {}
        self._lock = asyncio.Lock()

    async def add(self, draft: RecordDraft, quality_score: float) -> AnalysisRecord:
        self.validate_draft(draft)
        record = AnalysisRecord.from_draft(draft, quality_score)
        async with self._lock:
            self._records[record.id] = record
        logger.debug(f"Stored analysis record: {record.id}")
        return record

    async def put(self, record: AnalysisRecord) -> None:
        """Insert a fully-formed record as-is (fixtures, imports)."""
        async with self._lock:
            self._records[record.id] = record

    async def get_by_id(self, record_id: str) -> AnalysisRecord | None:
        async with self._lock:
            return self._records.get(record_id)

    async def update(
        self,
        record_id: str,
        changes: RecordUpdate,
        expected_version: int | None = None,
    ) -> AnalysisRecord:
        async with self._lock:
            current = self._records.get(record_id)
            if current is None:
                raise RecordNotFoundError(record_id, operation="update")

            if expected_version is not None and current.version != expected_version:
                raise ConcurrentUpdateError(record_id, expected_version, current.version)

            updated = current.apply(changes)
            self._records[record_id] = updated

        logger.debug(f"Updated analysis record: {record_id} (v{updated.version})")
        return updated

    async def delete(self, record_id: str) -> bool:
        async with self._lock:
            removed = self._records.pop(record_id, None)
        if removed is not None:
            logger.debug(f"Deleted analysis record: {record_id}")
        return removed is not None

    async def iter_records(
        self, batch_size: int = defaults.LIFECYCLE_SCAN_BATCH_SIZE
    ) -> AsyncIterator[list[AnalysisRecord]]:
        # Snapshot so callers may delete while iterating
        async with self._lock:
            snapshot = list(self._records.values())

        for start in range(0, len(snapshot), batch_size):
            yield snapshot[start : start + batch_size]

    async def count(self) -> int:
        async with self._lock:
            return len(self._records)

    async def clear(self) -> None:
        async with self._lock:
            count = len(self._records)
            self._records.clear()
        if count:
            logger.info(f"Cleared {count} analysis records")
