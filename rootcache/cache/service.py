"""In-memory result cache with TTL expiry and recency eviction."""

import time
from collections import OrderedDict
from collections.abc import Callable, Iterator

from rootcache.cache.fingerprint import ErrorFingerprinter, FingerprintMode
from rootcache.cache.models import CacheConfig, CacheEntry, CacheStats
from rootcache.core import defaults
from rootcache.core.models import AnalysisRecord, ParsedError
from rootcache.core.scheduler import PeriodicTask
from rootcache.observability.logging import LogEvents, get_logger
from rootcache.observability.metrics import record_cache_invalidation, record_cache_lookup

logger = get_logger(__name__)


class ResultCache:
    """Bounded, TTL-aware map from fingerprint to analysis record.

    Features:
        - Absolute per-entry expiry, checked lazily on read
        - Background sweep of expired entries (owned PeriodicTask)
        - Capacity bound with least-recently-accessed eviction
        - Hit/miss/expiry/invalidation statistics

    Entries live in an OrderedDict kept in access order: a hit moves the
    entry to the end, so the front is always the entry with the oldest
    ``last_accessed_at``.

    All operations are synchronous. The cache is never persisted.

    Example:
        >>> cache = ResultCache()
        >>> key = cache.set_for_error(error, record)
        >>> cache.get(key)
        AnalysisRecord('3f1c...', 'lateinit', quality=0.90, v1)
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize cache.

        Args:
            config: Cache configuration (defaults to CacheConfig())
            clock: Source of epoch seconds, injectable for tests
        """
        self.config = config or CacheConfig()
        self.fingerprinter = ErrorFingerprinter(self.config.fingerprint)
        self.stats = CacheStats()
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._sweeper: PeriodicTask | None = None

    # ------------------------------------------------------------------
    # Key-based operations
    # ------------------------------------------------------------------

    def get(self, key: str) -> AnalysisRecord | None:
        """Return the cached record for ``key`` or None.

        An expired entry is removed and reported as a miss. A hit bumps
        the entry's hit count and last access time.
        """
        entry = self._entries.get(key)

        if entry is None:
            self._record_miss(key)
            return None

        now = self._clock()
        if entry.is_expired(now):
            self._remove_expired(key)
            self._record_miss(key)
            return None

        entry.hits += 1
        entry.last_accessed_at = now
        self._entries.move_to_end(key)

        self.stats.hits += 1
        self.stats.update_hit_rate()
        record_cache_lookup(hit=True)
        logger.debug(LogEvents.CACHE_HIT, key=key[:8], hits=entry.hits)
        return entry.record

    def set(self, key: str, record: AnalysisRecord, ttl: float | None = None) -> None:
        """Store ``record`` under ``key``.

        Args:
            key: Cache key (usually a fingerprint)
            record: Analysis record to cache
            ttl: Per-entry TTL in seconds (defaults to config.ttl)
        """
        now = self._clock()
        ttl = self.config.ttl if ttl is None else ttl

        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.config.max_entries:
            self._evict_least_recent()

        self._entries[key] = CacheEntry(
            record=record,
            expires_at=now + ttl,
            created_at=now,
            last_accessed_at=now,
        )

    def has(self, key: str) -> bool:
        """True if a live entry exists. Does not count as an access."""
        entry = self._entries.get(key)
        if entry is None:
            return False

        if entry.is_expired(self._clock()):
            self._remove_expired(key)
            return False

        return True

    def invalidate(self, key: str) -> bool:
        """Remove ``key`` if present.

        Returns:
            True if an entry was removed. Absent keys leave every
            counter untouched.
        """
        if self._entries.pop(key, None) is None:
            return False

        self.stats.invalidated += 1
        record_cache_invalidation()
        logger.info(LogEvents.CACHE_INVALIDATED, key=key[:8])
        return True

    def clear(self) -> None:
        """Drop all entries. Statistics are kept."""
        count = len(self._entries)
        self._entries.clear()
        if count:
            logger.info(LogEvents.CACHE_CLEARED, entries=count)

    def cleanup(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

        self.stats.expired_removed += len(expired)
        if expired:
            logger.debug(LogEvents.CACHE_SWEPT, removed=len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # Fingerprint-keyed wrappers
    # ------------------------------------------------------------------

    def key_for(
        self, error: ParsedError, mode: FingerprintMode = FingerprintMode.FULL
    ) -> str:
        """The cache key that would be used for ``error``."""
        return self.fingerprinter.fingerprint(error, mode)

    def get_for_error(
        self, error: ParsedError, mode: FingerprintMode = FingerprintMode.FULL
    ) -> AnalysisRecord | None:
        return self.get(self.key_for(error, mode))

    def set_for_error(
        self,
        error: ParsedError,
        record: AnalysisRecord,
        ttl: float | None = None,
        mode: FingerprintMode = FingerprintMode.FULL,
    ) -> str:
        """Cache ``record`` under the fingerprint of ``error``.

        Returns:
            The key used for storage
        """
        key = self.key_for(error, mode)
        self.set(key, record, ttl)
        return key

    def has_for_error(
        self, error: ParsedError, mode: FingerprintMode = FingerprintMode.FULL
    ) -> bool:
        return self.has(self.key_for(error, mode))

    def invalidate_for_error(
        self, error: ParsedError, mode: FingerprintMode = FingerprintMode.FULL
    ) -> bool:
        return self.invalidate(self.key_for(error, mode))

    # ------------------------------------------------------------------
    # Statistics and introspection
    # ------------------------------------------------------------------

    def get_stats(self) -> CacheStats:
        """Get a snapshot of cache statistics."""
        self.stats.size = len(self._entries)
        self.stats.estimated_memory_bytes = (
            len(self._entries) * defaults.CACHE_ENTRY_SIZE_ESTIMATE
        )
        self.stats.update_hit_rate()
        return self.stats.model_copy()

    def reset_stats(self) -> None:
        """Zero all counters. Entries are kept."""
        self.stats = CacheStats()

    def entries(self) -> Iterator[tuple[str, CacheEntry]]:
        """Iterate ``(key, entry)`` pairs, least recently accessed first."""
        return iter(list(self._entries.items()))

    @property
    def ttl(self) -> float:
        return self.config.ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    # ------------------------------------------------------------------
    # Background sweep and disposal
    # ------------------------------------------------------------------

    @property
    def sweeper(self) -> PeriodicTask | None:
        return self._sweeper

    def start_sweeper(self) -> PeriodicTask:
        """Start the periodic expired-entry sweep on the running loop.

        Returns:
            The owned task handle (the existing one if already running)
        """
        if self._sweeper is None:
            self._sweeper = PeriodicTask(
                "cache-sweep", self.config.sweep_interval, self.cleanup
            )
        return self._sweeper.start()

    def stop_sweeper(self) -> None:
        """Stop the background sweep. Idempotent."""
        if self._sweeper is not None:
            self._sweeper.stop()

    def dispose(self) -> None:
        """Stop the sweep and drop all entries. Safe to call repeatedly."""
        self.stop_sweeper()
        self.clear()
        logger.debug(LogEvents.CACHE_DISPOSED)

    async def aclose(self) -> None:
        """Dispose and wait for the sweep task to finish cancelling."""
        self.dispose()
        if self._sweeper is not None:
            await self._sweeper.aclose()

    async def __aenter__(self) -> "ResultCache":
        if self.config.auto_sweep:
            self.start_sweeper()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _record_miss(self, key: str) -> None:
        self.stats.misses += 1
        self.stats.update_hit_rate()
        record_cache_lookup(hit=False)
        logger.debug(LogEvents.CACHE_MISS, key=key[:8])

    def _remove_expired(self, key: str) -> None:
        del self._entries[key]
        self.stats.expired_removed += 1
        logger.debug(LogEvents.CACHE_EXPIRED, key=key[:8])

    def _evict_least_recent(self) -> None:
        key, entry = self._entries.popitem(last=False)
        self.stats.evicted += 1
        logger.debug(
            LogEvents.CACHE_EVICTED,
            key=key[:8],
            last_accessed_at=entry.last_accessed_at,
        )
