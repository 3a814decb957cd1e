"""Lifecycle management for stored analysis records.

Evaluates records against quality and age rules, prunes the ones that
should go, reports aggregate quality metrics and rescoring drift, and
optionally runs pruning on a fixed interval.

Evaluation precedence:
    1. Expired records are pruned, validated or not.
    2. Low-quality validated records are flagged for review and kept.
    3. Low-quality unvalidated records are pruned.
    4. Everything else is kept.

Failure Policy:
    Enumeration failures are logged and counted, and the operation acts
    as if the store were empty. A single failed delete is logged and
    counted in ``PruneResult.failed`` and the scan continues.
"""

import statistics
import time
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from rootcache.core import defaults
from rootcache.core.models import AnalysisRecord, RecordUpdate, utc_now
from rootcache.core.scheduler import PeriodicTask
from rootcache.observability.logging import LogEvents, get_logger
from rootcache.observability.metrics import record_prune
from rootcache.quality.models import (
    LifecycleConfig,
    PruneResult,
    PruneStats,
    QualityDistribution,
    QualityMetrics,
    Recommendation,
    RecordEvaluation,
)
from rootcache.quality.scorer import QualityScorer

if TYPE_CHECKING:
    from rootcache.store.base import RecordStore

logger = get_logger(__name__)

# Maps an evaluation to a removal reason, or None to keep the record
PruneRule = Callable[[RecordEvaluation], str | None]

LOW_QUALITY = "low_quality"
EXPIRED = "expired"


def _low_quality_rule(evaluation: RecordEvaluation) -> str | None:
    if evaluation.is_below_threshold and not evaluation.user_validated:
        return LOW_QUALITY
    return None


def _expired_rule(evaluation: RecordEvaluation) -> str | None:
    return EXPIRED if evaluation.is_expired else None


def _recommendation_rule(evaluation: RecordEvaluation) -> str | None:
    if evaluation.recommendation is not Recommendation.PRUNE:
        return None
    return EXPIRED if evaluation.is_expired else LOW_QUALITY


class LifecycleManager:
    """Prunes, measures and rescores records in a RecordStore.

    Example:
        >>> manager = LifecycleManager(store)
        >>> result = await manager.prune_all()
        >>> result.removed_expired, result.removed_low_quality
        (3, 12)
    """

    def __init__(
        self,
        store: "RecordStore",
        config: LifecycleConfig | None = None,
        scorer: QualityScorer | None = None,
    ):
        """Initialize lifecycle manager.

        Args:
            store: Record store to scan and prune
            config: Lifecycle thresholds (defaults to LifecycleConfig())
            scorer: Scorer used by recalculate_all_quality_scores
        """
        self.store = store
        self.config = config or LifecycleConfig()
        self.scorer = scorer or QualityScorer()
        self._stats = PruneStats()
        self._auto_prune: PeriodicTask | None = None

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(
        self, record: AnalysisRecord, now: datetime | None = None
    ) -> RecordEvaluation:
        """Apply the threshold and age rules to one record."""
        age = record.age_seconds(now)
        is_below_threshold = record.quality_score < self.config.min_quality_threshold
        is_expired = age > self.config.max_age

        if is_expired:
            recommendation = Recommendation.PRUNE
        elif is_below_threshold and record.user_validated:
            recommendation = Recommendation.FLAG
        elif is_below_threshold:
            recommendation = Recommendation.PRUNE
        else:
            recommendation = Recommendation.KEEP

        return RecordEvaluation(
            record_id=record.id,
            quality=record.quality_score,
            age_seconds=age,
            user_validated=record.user_validated,
            is_below_threshold=is_below_threshold,
            is_expired=is_expired,
            recommendation=recommendation,
        )

    # ------------------------------------------------------------------
    # Pruning
    # ------------------------------------------------------------------

    async def prune_low_quality(self) -> PruneResult:
        """Delete unvalidated records below the quality threshold.

        Validated records are never touched here, however low they score.
        """
        return await self._prune("prune_low_quality", _low_quality_rule)

    async def prune_expired(self) -> PruneResult:
        """Delete every record older than ``max_age``."""
        return await self._prune("prune_expired", _expired_rule)

    async def prune_all(self) -> PruneResult:
        """Delete every record whose evaluation recommends pruning.

        A record both expired and low-quality counts as expired. Retained
        records recommended for review are logged as flagged.
        """
        return await self._prune("prune_all", _recommendation_rule, flag=True)

    async def _prune(
        self, operation: str, rule: PruneRule, flag: bool = False
    ) -> PruneResult:
        started = time.perf_counter()
        now = utc_now()
        records = await self._load_records(operation)
        result = PruneResult(total_scanned=len(records))

        for record in records:
            evaluation = self.evaluate(record, now)
            reason = rule(evaluation)

            if reason is None:
                result.retained += 1
                if flag and evaluation.recommendation is Recommendation.FLAG:
                    logger.info(
                        LogEvents.RECORD_FLAGGED,
                        record_id=record.id,
                        quality=round(record.quality_score, 3),
                    )
                continue

            try:
                await self.store.delete(record.id)
            except Exception as e:
                result.failed += 1
                result.retained += 1
                logger.warning(
                    LogEvents.RECORD_DELETE_FAILED,
                    operation=operation,
                    record_id=record.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            if reason == EXPIRED:
                result.removed_expired += 1
            else:
                result.removed_low_quality += 1

        result.duration_seconds = time.perf_counter() - started

        self._stats.total_operations += 1
        self._stats.total_records_pruned += result.total_removed
        self._stats.last_prune_result = result
        record_prune(result.removed_low_quality, result.removed_expired)

        logger.info(
            LogEvents.RECORDS_PRUNED,
            operation=operation,
            scanned=result.total_scanned,
            removed_low_quality=result.removed_low_quality,
            removed_expired=result.removed_expired,
            retained=result.retained,
            failed=result.failed,
            duration_seconds=round(result.duration_seconds, 3),
        )
        return result

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def get_quality_metrics(self) -> QualityMetrics:
        """Aggregate quality statistics. All zeros for an empty store."""
        records = await self._load_records("get_quality_metrics")
        if not records:
            return QualityMetrics()

        now = utc_now()
        threshold = self.config.min_quality_threshold
        qualities = [record.quality_score for record in records]
        distribution = QualityDistribution()

        for quality in qualities:
            if quality >= defaults.QUALITY_BUCKET_EXCELLENT:
                distribution.excellent += 1
            elif quality >= defaults.QUALITY_BUCKET_GOOD:
                distribution.good += 1
            elif quality >= defaults.QUALITY_BUCKET_FAIR:
                distribution.fair += 1
            else:
                distribution.poor += 1

        above = sum(1 for quality in qualities if quality >= threshold)

        return QualityMetrics(
            total_records=len(records),
            above_threshold=above,
            below_threshold=len(records) - above,
            validated=sum(1 for record in records if record.user_validated),
            old_records=sum(
                1
                for record in records
                if record.age_seconds(now) > self.config.old_age_watermark
            ),
            average_quality=statistics.fmean(qualities),
            median_quality=statistics.median(qualities),
            distribution=distribution,
        )

    async def get_records_needing_attention(
        self, limit: int | None = None
    ) -> list[RecordEvaluation]:
        """Evaluations for low-quality, expired or nearly expired records.

        "Nearly expired" means within ``max_age - old_age_watermark`` of
        the maximum age. Sorted by quality, worst first.
        """
        records = await self._load_records("get_records_needing_attention")
        now = utc_now()
        window_start = self.config.max_age - self.config.old_age_watermark

        needing_attention = []
        for record in records:
            evaluation = self.evaluate(record, now)
            if (
                evaluation.is_below_threshold
                or evaluation.is_expired
                or evaluation.age_seconds > window_start
            ):
                needing_attention.append(evaluation)

        needing_attention.sort(key=lambda evaluation: evaluation.quality)
        if limit is not None:
            return needing_attention[:limit]
        return needing_attention

    async def recalculate_all_quality_scores(self) -> int:
        """Rescore every record and persist scores that drifted.

        Only changes larger than ``recalculation_epsilon`` are written.
        Writes are conditional on the scanned version; a record changed
        concurrently is skipped.

        Returns:
            Number of records updated
        """
        records = await self._load_records("recalculate_all_quality_scores")
        now = utc_now()
        updated = 0

        for record in records:
            new_quality = self.scorer.score_record(record, now)
            if abs(new_quality - record.quality_score) <= self.config.recalculation_epsilon:
                continue

            try:
                await self.store.update(
                    record.id,
                    RecordUpdate(quality_score=new_quality),
                    expected_version=record.version,
                )
            except Exception as e:
                logger.warning(
                    LogEvents.QUALITY_RECALCULATED,
                    record_id=record.id,
                    skipped=True,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            updated += 1

        logger.info(
            LogEvents.QUALITY_RECALCULATED, scanned=len(records), updated=updated
        )
        return updated

    @property
    def last_prune_result(self) -> PruneResult | None:
        return self._stats.last_prune_result

    def get_prune_stats(self) -> PruneStats:
        """Snapshot of cumulative prune counters."""
        return self._stats.model_copy()

    # ------------------------------------------------------------------
    # Auto-prune
    # ------------------------------------------------------------------

    @property
    def auto_prune_task(self) -> PeriodicTask | None:
        return self._auto_prune

    def start_auto_prune(self) -> PeriodicTask:
        """Run ``prune_all`` every ``auto_prune_interval`` seconds.

        Failed runs are logged by the task and never stop the loop.

        Returns:
            The owned task handle (the existing one if already running)
        """
        if self._auto_prune is None:
            self._auto_prune = PeriodicTask(
                "auto-prune", self.config.auto_prune_interval, self.prune_all
            )

        if not self._auto_prune.running:
            self._auto_prune.start()
            logger.info(
                LogEvents.AUTO_PRUNE_STARTED,
                interval_seconds=self.config.auto_prune_interval,
            )
        return self._auto_prune

    def stop_auto_prune(self) -> None:
        """Stop the auto-prune loop. Idempotent."""
        if self._auto_prune is not None and self._auto_prune.running:
            self._auto_prune.stop()
            logger.info(LogEvents.AUTO_PRUNE_STOPPED, runs=self._auto_prune.runs)

    def dispose(self) -> None:
        self.stop_auto_prune()

    async def aclose(self) -> None:
        """Stop auto-prune and wait for the task to finish cancelling."""
        self.dispose()
        if self._auto_prune is not None:
            await self._auto_prune.aclose()

    async def __aenter__(self) -> "LifecycleManager":
        if self.config.auto_prune:
            self.start_auto_prune()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load_records(self, operation: str) -> list[AnalysisRecord]:
        """Enumerate the store, treating failure as an empty store."""
        try:
            return await self.store.list_records(self.config.scan_batch_size)
        except Exception as e:
            self._stats.enumeration_failures += 1
            logger.error(
                LogEvents.RECORD_SCAN_FAILED,
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []
