"""Fingerprinting and in-memory result caching."""

from rootcache.cache.fingerprint import (
    ErrorFingerprinter,
    FingerprintConfig,
    FingerprintMode,
    normalize_file_path,
    normalize_message,
)
from rootcache.cache.models import CacheConfig, CacheEntry, CacheStats
from rootcache.cache.service import ResultCache

__all__ = [
    "ErrorFingerprinter",
    "FingerprintConfig",
    "FingerprintMode",
    "normalize_message",
    "normalize_file_path",
    "CacheConfig",
    "CacheEntry",
    "CacheStats",
    "ResultCache",
]
