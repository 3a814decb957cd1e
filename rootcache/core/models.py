"""Core data models for rootcache.

This module defines Pydantic models for parsed errors, persisted
analysis records and the partial updates the feedback and lifecycle
components apply to them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class FeedbackKind(str, Enum):
    """User feedback on an analysis result (thumbs up / thumbs down)."""

    POSITIVE = "positive"
    NEGATIVE = "negative"

    def __str__(self) -> str:
        return self.value


class ParsedError(BaseModel):
    """Structured error report, as produced by the error parsers.

    Only the fields needed for fingerprinting are modelled here. A
    ``line`` of 0 means the location is unknown.
    """

    error_type: str = Field(..., description="Error classification (lateinit, npe, ...)")
    message: str | None = Field(default="", description="Raw error message")
    language: str = Field(..., description="Source language of the failing code")
    file_path: str | None = Field(default=None, description="File the error points at")
    line: int = Field(default=0, description="Line number (0 = unknown)", ge=0)
    column: int | None = Field(default=None, description="Column number", ge=0)


class RecordDraft(BaseModel):
    """Analysis payload submitted for persistence.

    Structural rules live in :meth:`problems`; stores call it before
    persisting and raise one ``ValidationError`` listing every failure.
    """

    error_message: str
    error_type: str
    language: str
    root_cause: str
    fix_steps: list[str] = Field(default_factory=list)
    confidence: float
    user_validated: bool = False
    file_path: str | None = None
    line_number: int | None = None
    code_context: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def problems(self) -> list[str]:
        """Return human-readable validation failures (empty when valid)."""
        problems = []
        if not self.error_message.strip():
            problems.append("error_message cannot be empty")
        if not self.error_type.strip():
            problems.append("error_type cannot be empty")
        if not self.root_cause.strip():
            problems.append("root_cause cannot be empty")
        if not any(step.strip() for step in self.fix_steps):
            problems.append("at least one fix step is required")
        if not 0.0 <= self.confidence <= 1.0:
            problems.append("confidence must be between 0 and 1")
        if self.line_number is not None and self.line_number <= 0:
            problems.append("line_number must be positive")
        return problems


class AnalysisRecord(BaseModel):
    """A persisted root cause analysis result.

    ``quality_score`` is derived: whoever changes ``confidence`` or
    ``user_validated`` must write a freshly computed score in the same
    update. ``version`` increments on every update and is the token for
    conditional writes.
    """

    id: str = Field(default_factory=lambda: str(uuid4()), description="Record ID")
    error_message: str
    error_type: str
    language: str
    root_cause: str
    fix_steps: list[str]
    confidence: float = Field(..., ge=0.0, le=1.0)
    user_validated: bool = False
    quality_score: float = Field(..., ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    version: int = Field(default=1, ge=1)
    file_path: str | None = None
    line_number: int | None = None
    code_context: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Treat naive datetimes as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_draft(cls, draft: RecordDraft, quality_score: float) -> "AnalysisRecord":
        """Build a new record (fresh id, timestamps, version 1) from a draft."""
        return cls(
            **draft.model_dump(),
            quality_score=quality_score,
        )

    def age_seconds(self, now: datetime | None = None) -> float:
        """Age of the record in seconds."""
        return ((now or utc_now()) - self.created_at).total_seconds()

    def apply(self, changes: "RecordUpdate") -> "AnalysisRecord":
        """Return a copy with ``changes`` applied and the version bumped."""
        updates = changes.model_dump(exclude_none=True)
        updates["version"] = self.version + 1
        updates["updated_at"] = utc_now()
        return self.model_copy(update=updates)

    def __repr__(self) -> str:
        return (
            f"AnalysisRecord({self.id[:8]!r}, {self.error_type!r}, "
            f"quality={self.quality_score:.2f}, v{self.version})"
        )


class RecordUpdate(BaseModel):
    """Partial update of the mutable record fields.

    Classification fields and the analysis payload are immutable after
    creation, so they cannot be expressed here.
    """

    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    user_validated: bool | None = None
    quality_score: float | None = Field(default=None, ge=0.0, le=1.0)

    def is_empty(self) -> bool:
        """True when no field would change."""
        return not self.model_dump(exclude_none=True)
