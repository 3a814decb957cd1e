"""Lifecycle configuration and result models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, computed_field

from rootcache.core import defaults
from rootcache.core.models import utc_now


class LifecycleConfig(BaseModel):
    """Configuration for LifecycleManager.

    Attributes:
        min_quality_threshold: Records scoring below this are pruned (or flagged)
        max_age: Records older than this many seconds are pruned
        old_age_watermark: Age counted as "old" in metrics
        auto_prune: Start the auto-prune task on ``async with``
        auto_prune_interval: Seconds between automatic prune runs
        recalculation_epsilon: Minimum score change persisted on recalculation
        scan_batch_size: Page size requested from the store when enumerating
    """

    min_quality_threshold: float = Field(
        default=defaults.LIFECYCLE_MIN_QUALITY_THRESHOLD, ge=0.0, le=1.0
    )
    max_age: float = Field(default=defaults.LIFECYCLE_MAX_AGE, gt=0)
    old_age_watermark: float = Field(default=defaults.LIFECYCLE_OLD_AGE_WATERMARK, gt=0)
    auto_prune: bool = Field(default=False)
    auto_prune_interval: float = Field(
        default=defaults.LIFECYCLE_AUTO_PRUNE_INTERVAL, gt=0
    )
    recalculation_epsilon: float = Field(
        default=defaults.LIFECYCLE_RECALCULATION_EPSILON, ge=0.0
    )
    scan_batch_size: int = Field(default=defaults.LIFECYCLE_SCAN_BATCH_SIZE, ge=1)


class Recommendation(str, Enum):
    """What the lifecycle manager would do with a record."""

    KEEP = "keep"
    FLAG = "flag"
    PRUNE = "prune"


class RecordEvaluation(BaseModel):
    """Outcome of evaluating one record against the lifecycle rules."""

    record_id: str
    quality: float
    age_seconds: float
    user_validated: bool
    is_below_threshold: bool
    is_expired: bool
    recommendation: Recommendation


class PruneResult(BaseModel):
    """Outcome of one prune operation.

    A record counted in ``failed`` could not be deleted and is also
    counted in ``retained``.
    """

    removed_low_quality: int = 0
    removed_expired: int = 0
    total_scanned: int = 0
    retained: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    timestamp: datetime = Field(default_factory=utc_now)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_removed(self) -> int:
        return self.removed_low_quality + self.removed_expired


class QualityDistribution(BaseModel):
    """Record counts per quality bucket.

    excellent >= 0.8, good [0.6, 0.8), fair [0.4, 0.6), poor < 0.4
    """

    excellent: int = 0
    good: int = 0
    fair: int = 0
    poor: int = 0


class QualityMetrics(BaseModel):
    """Aggregate quality statistics over all stored records."""

    total_records: int = 0
    above_threshold: int = 0
    below_threshold: int = 0
    validated: int = 0
    old_records: int = 0
    average_quality: float = 0.0
    median_quality: float = 0.0
    distribution: QualityDistribution = Field(default_factory=QualityDistribution)


class PruneStats(BaseModel):
    """Cumulative lifecycle counters for one manager instance."""

    total_operations: int = 0
    total_records_pruned: int = 0
    enumeration_failures: int = 0
    last_prune_result: PruneResult | None = None
