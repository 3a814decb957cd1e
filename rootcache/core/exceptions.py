"""Exception hierarchy for rootcache.

This module defines custom exceptions for the failure modes of the
cache, store, lifecycle and feedback components.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rootcache.core.models import FeedbackKind


class RootCacheError(Exception):
    """Base exception for all rootcache errors."""

    code: str = "ROOTCACHE_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(RootCacheError):
    """Configuration error (invalid settings, unknown hash algorithm)."""

    code: str = "CONFIGURATION_ERROR"


class ValidationError(RootCacheError):
    """Record failed structural validation before persisting."""

    code: str = "VALIDATION_ERROR"


class StoreError(RootCacheError):
    """Record store operation failed (connection, query, serialization)."""

    code: str = "STORE_ERROR"

    def __init__(
        self,
        message: str,
        operation: str,
        record_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.operation = operation
        self.record_id = record_id


class RecordNotFoundError(StoreError):
    """Record id does not exist in the store."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, record_id: str, operation: str = "get"):
        super().__init__(
            f"Analysis record not found: {record_id}",
            operation=operation,
            record_id=record_id,
        )


class ConcurrentUpdateError(StoreError):
    """Conditional update rejected because the record version moved on."""

    code: str = "VERSION_CONFLICT"

    def __init__(
        self, record_id: str, expected_version: int, actual_version: int | None
    ):
        super().__init__(
            f"Version conflict on record {record_id}: "
            f"expected {expected_version}, found {actual_version}",
            operation="update",
            record_id=record_id,
            details={
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )
        self.expected_version = expected_version
        self.actual_version = actual_version


class FeedbackError(RootCacheError):
    """Feedback could not be applied to a record.

    Raised for a missing record and for any store failure during the
    read-modify-write. The underlying exception, if any, is kept in
    ``cause``.
    """

    code: str = "FEEDBACK_FAILED"

    def __init__(
        self,
        message: str,
        record_id: str,
        kind: "FeedbackKind",
        cause: BaseException | None = None,
    ):
        super().__init__(message, {"record_id": record_id, "kind": str(kind)})
        self.record_id = record_id
        self.kind = kind
        self.cause = cause

    @property
    def is_not_found(self) -> bool:
        """True when the feedback target does not exist."""
        return isinstance(self.cause, RecordNotFoundError)
