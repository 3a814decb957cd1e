"""Pytest configuration and fixtures for rootcache tests."""

from collections.abc import Callable
from datetime import timedelta
from typing import Any

import pytest

from rootcache.core import defaults
from rootcache.core.models import AnalysisRecord, ParsedError, RecordDraft, utc_now
from rootcache.store.memory_store import InMemoryRecordStore


class FakeClock:
    """Manually advanced epoch-seconds clock for cache tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def parsed_error() -> ParsedError:
    """A Kotlin lateinit error with a known location."""
    return ParsedError(
        error_type="lateinit",
        message="lateinit property adapter has not been initialized",
        language="kotlin",
        file_path="app/src/main/java/com/example/MainActivity.kt",
        line=45,
    )


@pytest.fixture
def sample_draft() -> RecordDraft:
    return RecordDraft(
        error_message="lateinit property adapter has not been initialized",
        error_type="lateinit",
        language="kotlin",
        root_cause="adapter is read in onCreate before it is assigned",
        fix_steps=["Initialize adapter before setContentView", "Add isInitialized check"],
        confidence=0.8,
        file_path="MainActivity.kt",
        line_number=45,
    )


# =============================================================================
# RECORD FACTORIES
# =============================================================================


@pytest.fixture
def make_record() -> Callable[..., AnalysisRecord]:
    """Build an AnalysisRecord with sensible defaults.

    ``age_days`` backdates ``created_at``; any other keyword overrides a field.
    """

    def _make(age_days: float = 0.0, **overrides: Any) -> AnalysisRecord:
        created_at = utc_now() - timedelta(days=age_days)
        fields: dict[str, Any] = {
            "error_message": "NullPointerException at UserRepository.load",
            "error_type": "npe",
            "language": "java",
            "root_cause": "user is null when the cache is cold",
            "fix_steps": ["Guard the lookup with a null check"],
            "confidence": 0.7,
            "quality_score": 0.7,
            "created_at": created_at,
            "updated_at": created_at,
        }
        fields.update(overrides)
        return AnalysisRecord(**fields)

    return _make


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def old_age_days() -> float:
    """Age in days just past the default maximum record age."""
    return defaults.LIFECYCLE_MAX_AGE / defaults.DAY + 1
