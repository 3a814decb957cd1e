"""Apply user feedback to stored analysis records.

Positive feedback raises confidence and marks the record as validated.
Negative feedback lowers confidence, revokes validation and (optionally)
drops the cached result so the next occurrence is analyzed afresh. In
both cases the quality score is recomputed from the new confidence.

Each update is a read-modify-write guarded by the record version. On a
version conflict the record is reloaded and the change recomputed, up to
``max_conflict_retries`` extra attempts.

Usage:
    >>> processor = FeedbackProcessor(store, cache)
    >>> result = await processor.handle_negative(record_id, cache_key=key)
    >>> result.new_confidence, result.cache_invalidated
    (0.35, True)
"""

from rootcache.cache.service import ResultCache
from rootcache.core.exceptions import (
    ConcurrentUpdateError,
    FeedbackError,
    RecordNotFoundError,
)
from rootcache.core.models import AnalysisRecord, FeedbackKind, RecordUpdate
from rootcache.feedback.models import FeedbackConfig, FeedbackResult, FeedbackStats
from rootcache.observability.logging import LogEvents, get_logger
from rootcache.observability.metrics import record_feedback
from rootcache.quality.scorer import QualityFactors, QualityScorer
from rootcache.store.base import RecordStore

logger = get_logger(__name__)


class FeedbackProcessor:
    """Turns thumbs up/down on an analysis into record updates.

    Failures are never swallowed: a missing record or any store error
    surfaces as ``FeedbackError`` carrying the record id, the kind and
    the underlying cause.
    """

    def __init__(
        self,
        store: RecordStore,
        cache: ResultCache | None = None,
        config: FeedbackConfig | None = None,
    ):
        """Initialize processor.

        Args:
            store: Record store holding the analyses
            cache: Result cache to invalidate on negative feedback
            config: Multipliers, bounds and retry policy
        """
        self.store = store
        self.cache = cache
        self.config = config or FeedbackConfig()
        self.quality_scorer = QualityScorer(self.config.quality)
        self.confidence_scorer = QualityScorer(self.config.confidence_scorer_config())
        self.reset_stats()

    async def handle_positive(
        self, record_id: str, cache_key: str | None = None
    ) -> FeedbackResult:
        """Boost confidence and mark the record as validated.

        The cache is left alone; ``cache_key`` is accepted for symmetry.
        """
        return await self._handle(record_id, FeedbackKind.POSITIVE, cache_key)

    async def handle_negative(
        self, record_id: str, cache_key: str | None = None
    ) -> FeedbackResult:
        """Reduce confidence, revoke validation and invalidate ``cache_key``."""
        return await self._handle(record_id, FeedbackKind.NEGATIVE, cache_key)

    async def handle_feedback(
        self,
        record_id: str,
        kind: FeedbackKind | str,
        cache_key: str | None = None,
    ) -> FeedbackResult:
        """Route to handle_positive or handle_negative by ``kind``.

        Raises:
            ValueError: If ``kind`` is not a FeedbackKind value
        """
        match FeedbackKind(kind):
            case FeedbackKind.POSITIVE:
                return await self.handle_positive(record_id, cache_key)
            case FeedbackKind.NEGATIVE:
                return await self.handle_negative(record_id, cache_key)

    def get_stats(self) -> FeedbackStats:
        total = self._positive + self._negative
        return FeedbackStats(
            total_positive=self._positive,
            total_negative=self._negative,
            total=total,
            successful=self._successful,
            success_rate=self._successful / total if total > 0 else 0.0,
            avg_positive_boost=(
                self._positive_delta / self._positive_applied
                if self._positive_applied
                else 0.0
            ),
            avg_negative_reduction=(
                self._negative_delta / self._negative_applied
                if self._negative_applied
                else 0.0
            ),
        )

    def reset_stats(self) -> None:
        """Zero all counters. Stored records are unaffected."""
        self._positive = 0
        self._negative = 0
        self._successful = 0
        self._positive_applied = 0
        self._negative_applied = 0
        self._positive_delta = 0.0
        self._negative_delta = 0.0

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _handle(
        self, record_id: str, kind: FeedbackKind, cache_key: str | None
    ) -> FeedbackResult:
        # Counted before the attempt so failures lower the success rate
        if kind is FeedbackKind.POSITIVE:
            self._positive += 1
        else:
            self._negative += 1

        try:
            result = await self._apply(record_id, kind)
        except FeedbackError as e:
            record_feedback(kind.value, success=False)
            logger.warning(
                LogEvents.FEEDBACK_FAILED,
                record_id=record_id,
                kind=kind.value,
                error=e.message,
                not_found=e.is_not_found,
            )
            raise

        if (
            kind is FeedbackKind.NEGATIVE
            and cache_key
            and self.cache is not None
            and self.config.invalidate_cache_on_negative
        ):
            result.cache_invalidated = self.cache.invalidate(cache_key)

        self._successful += 1
        delta = result.new_confidence - result.previous_confidence
        if kind is FeedbackKind.POSITIVE:
            self._positive_applied += 1
            self._positive_delta += delta
        else:
            self._negative_applied += 1
            self._negative_delta += -delta

        record_feedback(kind.value, success=True)
        logger.info(
            LogEvents.FEEDBACK_APPLIED,
            record_id=record_id,
            kind=kind.value,
            confidence=round(result.new_confidence, 3),
            quality=round(result.new_quality, 3),
            cache_invalidated=result.cache_invalidated,
            attempts=result.attempts,
        )
        return result

    async def _apply(self, record_id: str, kind: FeedbackKind) -> FeedbackResult:
        attempts = 0

        while True:
            attempts += 1
            record = await self._load(record_id, kind)
            confidence, validated, quality = self._compute_update(record, kind)
            changes = RecordUpdate(
                confidence=confidence, user_validated=validated, quality_score=quality
            )

            try:
                await self.store.update(
                    record_id, changes, expected_version=record.version
                )
            except ConcurrentUpdateError as e:
                if attempts > self.config.max_conflict_retries:
                    raise FeedbackError(
                        f"Gave up applying {kind.value} feedback to {record_id} "
                        f"after {attempts} conflicting attempts",
                        record_id,
                        kind,
                        cause=e,
                    ) from e
                logger.info(
                    LogEvents.FEEDBACK_CONFLICT,
                    record_id=record_id,
                    kind=kind.value,
                    attempt=attempts,
                )
                continue
            except RecordNotFoundError as e:
                raise FeedbackError(
                    f"Analysis record not found: {record_id}", record_id, kind, cause=e
                ) from e
            except Exception as e:
                raise FeedbackError(
                    f"Failed to persist {kind.value} feedback for {record_id}: {e}",
                    record_id,
                    kind,
                    cause=e,
                ) from e

            return FeedbackResult(
                record_id=record_id,
                kind=kind,
                previous_confidence=record.confidence,
                new_confidence=confidence,
                previous_quality=record.quality_score,
                new_quality=quality,
                attempts=attempts,
                message=(
                    f"{kind.value.capitalize()} feedback applied: confidence "
                    f"{record.confidence:.2f} -> {confidence:.2f}"
                ),
            )

    async def _load(self, record_id: str, kind: FeedbackKind) -> AnalysisRecord:
        try:
            record = await self.store.get_by_id(record_id)
        except Exception as e:
            raise FeedbackError(
                f"Failed to load analysis record {record_id}: {e}",
                record_id,
                kind,
                cause=e,
            ) from e

        if record is None:
            cause = RecordNotFoundError(record_id, operation=f"feedback_{kind.value}")
            raise FeedbackError(
                f"Analysis record not found: {record_id}", record_id, kind, cause=cause
            )
        return record

    def _compute_update(
        self, record: AnalysisRecord, kind: FeedbackKind
    ) -> tuple[float, bool, float]:
        """New (confidence, user_validated, quality) for one feedback event."""
        if kind is FeedbackKind.POSITIVE:
            confidence = self.confidence_scorer.apply_positive_feedback(record.confidence)
            validated = True
        else:
            confidence = self.confidence_scorer.apply_negative_feedback(record.confidence)
            validated = False

        quality = self.quality_scorer.score(
            QualityFactors(
                base_confidence=confidence,
                user_validated=validated,
                age_seconds=record.age_seconds(),
            )
        )
        return confidence, validated, quality
