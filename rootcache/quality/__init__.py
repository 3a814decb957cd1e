"""Quality scoring and record lifecycle management."""

from rootcache.quality.lifecycle import LifecycleManager
from rootcache.quality.models import (
    LifecycleConfig,
    PruneResult,
    PruneStats,
    QualityDistribution,
    QualityMetrics,
    Recommendation,
    RecordEvaluation,
)
from rootcache.quality.scorer import (
    QualityBreakdown,
    QualityFactors,
    QualityScorer,
    QualityScorerConfig,
)

__all__ = [
    "QualityScorer",
    "QualityScorerConfig",
    "QualityFactors",
    "QualityBreakdown",
    "LifecycleManager",
    "LifecycleConfig",
    "Recommendation",
    "RecordEvaluation",
    "PruneResult",
    "PruneStats",
    "QualityMetrics",
    "QualityDistribution",
]
