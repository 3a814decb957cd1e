"""Abstract record store.

The persisted record store is the one external collaborator of the
lifecycle and feedback components. Backends implement a small async
contract: point reads, conditional partial updates, deletes and a
genuine batch enumeration.

Concurrency:
    ``update`` accepts an ``expected_version``. When given, the write
    succeeds only if the stored record still carries that version;
    otherwise ``ConcurrentUpdateError`` is raised and nothing changes.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from rootcache.core import defaults
from rootcache.core.exceptions import ValidationError
from rootcache.core.models import AnalysisRecord, RecordDraft, RecordUpdate


class RecordStore(ABC):
    """Abstract base class for analysis record storage."""

    @abstractmethod
    async def add(self, draft: RecordDraft, quality_score: float) -> AnalysisRecord:
        """Validate and persist a new record.

        Args:
            draft: Caller-supplied analysis payload
            quality_score: Initial quality, computed by the caller

        Returns:
            The stored record (fresh id, timestamps, version 1)

        Raises:
            ValidationError: If the draft is structurally invalid
        """
        pass

    @abstractmethod
    async def get_by_id(self, record_id: str) -> AnalysisRecord | None:
        """Return the record or None when absent."""
        pass

    @abstractmethod
    async def update(
        self,
        record_id: str,
        changes: RecordUpdate,
        expected_version: int | None = None,
    ) -> AnalysisRecord:
        """Apply a partial update.

        Args:
            record_id: Record to update
            changes: Fields to change
            expected_version: Only write if the stored version matches

        Returns:
            The updated record (version incremented)

        Raises:
            RecordNotFoundError: If the record does not exist
            ConcurrentUpdateError: If expected_version no longer matches
        """
        pass

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        """Delete a record.

        Returns:
            True if a record was deleted, False if it did not exist
        """
        pass

    @abstractmethod
    def iter_records(
        self, batch_size: int = defaults.LIFECYCLE_SCAN_BATCH_SIZE
    ) -> AsyncIterator[list[AnalysisRecord]]:
        """Yield every stored record, ``batch_size`` at a time.

        Records deleted while iterating may or may not be yielded. Records
        present for the whole iteration are yielded exactly once.
        """
        pass

    @abstractmethod
    async def count(self) -> int:
        """Number of stored records."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Delete every record."""
        pass

    async def list_records(
        self, batch_size: int = defaults.LIFECYCLE_SCAN_BATCH_SIZE
    ) -> list[AnalysisRecord]:
        """Collect every stored record into a list."""
        records: list[AnalysisRecord] = []
        async for batch in self.iter_records(batch_size):
            records.extend(batch)
        return records

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
        return None

    @staticmethod
    def validate_draft(draft: RecordDraft) -> None:
        """Raise ValidationError listing every structural problem."""
        problems = draft.problems()
        if problems:
            raise ValidationError(
                f"Invalid analysis record: {'; '.join(problems)}",
                details={"problems": problems},
            )
