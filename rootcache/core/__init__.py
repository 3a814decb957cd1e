"""Core infrastructure for rootcache."""

from rootcache.core.config import (
    Settings,
    load_cache_config,
    load_feedback_config,
    load_lifecycle_config,
    load_quality_config,
    settings,
)
from rootcache.core.exceptions import (
    ConcurrentUpdateError,
    ConfigurationError,
    FeedbackError,
    RecordNotFoundError,
    RootCacheError,
    StoreError,
    ValidationError,
)
from rootcache.core.models import (
    AnalysisRecord,
    FeedbackKind,
    ParsedError,
    RecordDraft,
    RecordUpdate,
)
from rootcache.core.scheduler import PeriodicTask

__all__ = [
    # Config
    "Settings",
    "settings",
    "load_cache_config",
    "load_quality_config",
    "load_lifecycle_config",
    "load_feedback_config",
    # Exceptions
    "RootCacheError",
    "ConfigurationError",
    "ValidationError",
    "StoreError",
    "RecordNotFoundError",
    "ConcurrentUpdateError",
    "FeedbackError",
    # Models
    "ParsedError",
    "RecordDraft",
    "AnalysisRecord",
    "RecordUpdate",
    "FeedbackKind",
    # Scheduling
    "PeriodicTask",
]
