"""Record store construction and the record-creation entry point."""

import logging

from rootcache.core.config import Settings, settings
from rootcache.core.exceptions import ConfigurationError
from rootcache.core.models import AnalysisRecord, RecordDraft
from rootcache.quality.scorer import QualityFactors, QualityScorer
from rootcache.store.base import RecordStore
from rootcache.store.memory_store import InMemoryRecordStore
from rootcache.store.postgres_store import PostgresRecordStore
from rootcache.store.redis_store import RedisRecordStore

logger = logging.getLogger(__name__)


async def create_record_store(source: Settings | None = None) -> RecordStore:
    """Build the backend named by ``store_backend``.

    The Postgres backend connects its pool and ensures the table exists
    before returning.

    Raises:
        ConfigurationError: If the backend name is unknown
    """
    source = source or settings
    backend = source.store_backend

    if backend == "memory":
        logger.info("Using in-memory record store")
        return InMemoryRecordStore()

    if backend == "redis":
        return RedisRecordStore.from_url(source.redis_url, timeout=source.redis_timeout)

    if backend == "postgres":
        store = await PostgresRecordStore.connect(
            source.database_url, max_size=source.database_pool_size
        )
        await store.create_schema()
        return store

    raise ConfigurationError(
        f"Unknown store backend: {backend}", details={"store_backend": backend}
    )


async def save_analysis(
    store: RecordStore,
    draft: RecordDraft,
    scorer: QualityScorer | None = None,
) -> AnalysisRecord:
    """Validate, score and persist a freshly produced analysis.

    The initial quality is computed for a zero-age record.

    Raises:
        ValidationError: If the draft is structurally invalid
    """
    store.validate_draft(draft)
    scorer = scorer or QualityScorer()
    quality = scorer.score(
        QualityFactors(
            base_confidence=draft.confidence,
            user_validated=draft.user_validated,
            age_seconds=0.0,
        )
    )
    return await store.add(draft, quality)
