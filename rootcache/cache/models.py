"""Result cache configuration, entry and statistics models."""

from pydantic import BaseModel, Field

from rootcache.cache.fingerprint import FingerprintConfig
from rootcache.core import defaults
from rootcache.core.models import AnalysisRecord


class CacheConfig(BaseModel):
    """Configuration for the in-memory result cache.

    Attributes:
        ttl: Default time-to-live for entries in seconds (default 24 hours)
        max_entries: Capacity; inserting beyond it evicts one entry
        sweep_interval: Seconds between background sweeps of expired entries
        auto_sweep: Start the sweeper when used as an async context manager
        fingerprint: Fingerprinter configuration for the ``*_for_error`` helpers
    """

    ttl: float = Field(default=defaults.CACHE_TTL, gt=0, description="Entry TTL (seconds)")
    max_entries: int = Field(default=defaults.CACHE_MAX_ENTRIES, ge=1)
    sweep_interval: float = Field(default=defaults.CACHE_SWEEP_INTERVAL, gt=0)
    auto_sweep: bool = Field(default=True)
    fingerprint: FingerprintConfig = Field(default_factory=FingerprintConfig)


class CacheEntry(BaseModel):
    """A cached analysis record with its bookkeeping.

    Timestamps are epoch seconds from the cache's clock.
    """

    record: AnalysisRecord
    expires_at: float
    hits: int = 0
    created_at: float
    last_accessed_at: float

    def is_expired(self, now: float) -> bool:
        """True once ``now`` has passed the expiry timestamp."""
        return now > self.expires_at


class CacheStats(BaseModel):
    """Cumulative cache statistics.

    Attributes:
        size: Current number of entries
        hits: Lookups that found a live entry
        misses: Lookups that found nothing or an expired entry
        hit_rate: hits / (hits + misses), 0.0 with no lookups
        expired_removed: Entries removed because their TTL passed
        invalidated: Entries removed by explicit invalidation
        evicted: Entries removed to stay within capacity
        estimated_memory_bytes: Rough footprint estimate
    """

    size: int = 0
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    expired_removed: int = 0
    invalidated: int = 0
    evicted: int = 0
    estimated_memory_bytes: int = 0

    def update_hit_rate(self) -> None:
        """Recalculate hit rate based on current stats."""
        total = self.hits + self.misses
        self.hit_rate = self.hits / total if total > 0 else 0.0
