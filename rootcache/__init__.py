"""rootcache - caching and lifecycle management for root cause analyses.

Fingerprints parsed errors into cache keys, keeps recent analysis results
in a TTL-bounded in-memory cache, scores stored analyses by confidence,
validation and age, prunes the ones that fall below the bar, and applies
user feedback to stored records.

Basic usage:
    >>> from rootcache import ResultCache, ParsedError
    >>> cache = ResultCache()
    >>> error = ParsedError(error_type="npe", message="x was null", language="kotlin")
    >>> cache.get_for_error(error) is None
    True
"""

from dotenv import load_dotenv

load_dotenv()

__version__ = "0.1.0"

from rootcache.cache import ErrorFingerprinter, FingerprintMode, ResultCache
from rootcache.core import (
    AnalysisRecord,
    ConcurrentUpdateError,
    ConfigurationError,
    FeedbackError,
    FeedbackKind,
    ParsedError,
    RecordDraft,
    RecordNotFoundError,
    RootCacheError,
    StoreError,
    ValidationError,
    settings,
)
from rootcache.feedback import FeedbackProcessor
from rootcache.quality import LifecycleManager, QualityScorer
from rootcache.store import (
    InMemoryRecordStore,
    RecordStore,
    create_record_store,
    save_analysis,
)

__all__ = [
    # Main interface
    "ResultCache",
    "ErrorFingerprinter",
    "FingerprintMode",
    "QualityScorer",
    "LifecycleManager",
    "FeedbackProcessor",
    "RecordStore",
    "InMemoryRecordStore",
    "create_record_store",
    "save_analysis",
    # Models
    "ParsedError",
    "RecordDraft",
    "AnalysisRecord",
    "FeedbackKind",
    # Configuration
    "settings",
    # Exceptions
    "RootCacheError",
    "ConfigurationError",
    "ValidationError",
    "StoreError",
    "RecordNotFoundError",
    "ConcurrentUpdateError",
    "FeedbackError",
    "__version__",
]
