"""Quality scoring for analysis records.

Quality combines the analyst's confidence, user validation, record age
and (optionally) how often the record has been reused:

    q = base_confidence (+ validation_bonus if validated)
    q *= 1 - age_penalty             # linear ramp up to age_threshold
    q += log10(usage_count + 1) * usage_bonus_weight   # when usage_count > 0
    q = clamp(q, min_quality, max_quality)

The scorer is stateless. ``score`` and ``score_with_breakdown`` always
agree on the final value.
"""

import math
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from rootcache.core import defaults
from rootcache.core.models import AnalysisRecord


class QualityScorerConfig(BaseModel):
    """Tunables for QualityScorer.

    Attributes:
        age_threshold: Age in seconds at which the penalty reaches its maximum
        max_age_penalty: Fractional reduction applied at/after the threshold
        validation_bonus: Added to confidence for user-validated records
        usage_bonus_weight: Multiplier for the log10 usage bonus
        min_quality: Lower clamp bound
        max_quality: Upper clamp bound
        positive_boost: Multiplier used by apply_positive_feedback
        negative_reduction: Multiplier used by apply_negative_feedback
    """

    age_threshold: float = Field(default=defaults.QUALITY_AGE_THRESHOLD, gt=0)
    max_age_penalty: float = Field(default=defaults.QUALITY_MAX_AGE_PENALTY, ge=0.0, le=1.0)
    validation_bonus: float = Field(default=defaults.QUALITY_VALIDATION_BONUS, ge=0.0)
    usage_bonus_weight: float = Field(default=defaults.QUALITY_USAGE_BONUS_WEIGHT, ge=0.0)
    min_quality: float = Field(default=defaults.QUALITY_MIN, ge=0.0, le=1.0)
    max_quality: float = Field(default=defaults.QUALITY_MAX, ge=0.0, le=1.0)
    positive_boost: float = Field(default=defaults.QUALITY_POSITIVE_BOOST, ge=1.0)
    negative_reduction: float = Field(
        default=defaults.QUALITY_NEGATIVE_REDUCTION, gt=0.0, le=1.0
    )

    @model_validator(mode="after")
    def check_bounds(self) -> "QualityScorerConfig":
        if self.min_quality > self.max_quality:
            raise ValueError(
                f"min_quality ({self.min_quality}) must not exceed "
                f"max_quality ({self.max_quality})"
            )
        return self


class QualityFactors(BaseModel):
    """Inputs to the quality formula."""

    base_confidence: float = Field(..., ge=0.0, le=1.0)
    user_validated: bool = False
    age_seconds: float = 0.0
    usage_count: int | None = Field(default=None, ge=0)


class QualityBreakdown(BaseModel):
    """Each term of the quality formula, for diagnostics.

    Attributes:
        base_confidence: Confidence the score started from
        validation_bonus: Bonus added for validation (0.0 if not validated)
        age_penalty: Fractional penalty applied multiplicatively
        usage_bonus: Bonus added for reuse (0.0 without usage data)
        score: Final clamped quality
    """

    base_confidence: float
    validation_bonus: float
    age_penalty: float
    usage_bonus: float
    score: float


class QualityScorer:
    """Computes quality scores and feedback adjustments.

    Example:
        >>> scorer = QualityScorer()
        >>> scorer.score(QualityFactors(base_confidence=0.7, user_validated=True))
        0.9
    """

    def __init__(self, config: QualityScorerConfig | None = None):
        self.config = config or QualityScorerConfig()

    def score(self, factors: QualityFactors) -> float:
        """Quality in [min_quality, max_quality] for ``factors``."""
        return self.score_with_breakdown(factors).score

    def score_with_breakdown(self, factors: QualityFactors) -> QualityBreakdown:
        """Quality plus every intermediate term."""
        bonus = self.config.validation_bonus if factors.user_validated else 0.0
        penalty = self.age_penalty(factors.age_seconds)
        usage_bonus = self.usage_bonus(factors.usage_count)

        quality = (factors.base_confidence + bonus) * (1.0 - penalty) + usage_bonus

        return QualityBreakdown(
            base_confidence=factors.base_confidence,
            validation_bonus=bonus,
            age_penalty=penalty,
            usage_bonus=usage_bonus,
            score=self._clamp(quality),
        )

    def age_penalty(self, age_seconds: float) -> float:
        """Fractional penalty: 0 for new records, max_age_penalty at the threshold."""
        if age_seconds <= 0:
            return 0.0
        if age_seconds >= self.config.age_threshold:
            return self.config.max_age_penalty
        return (age_seconds / self.config.age_threshold) * self.config.max_age_penalty

    def usage_bonus(self, usage_count: int | None) -> float:
        if not usage_count or usage_count <= 0:
            return 0.0
        return math.log10(usage_count + 1) * self.config.usage_bonus_weight

    def is_below_minimum(self, quality: float) -> bool:
        return quality < self.config.min_quality

    def apply_positive_feedback(self, quality: float) -> float:
        """Boost a value, capped at max_quality."""
        return min(self.config.max_quality, quality * self.config.positive_boost)

    def apply_negative_feedback(self, quality: float) -> float:
        """Reduce a value, floored at min_quality."""
        return max(self.config.min_quality, quality * self.config.negative_reduction)

    def score_record(
        self,
        record: AnalysisRecord,
        now: datetime | None = None,
        usage_count: int | None = None,
    ) -> float:
        """Score a record from its current confidence, validation and age."""
        return self.score(
            QualityFactors(
                base_confidence=record.confidence,
                user_validated=record.user_validated,
                age_seconds=record.age_seconds(now),
                usage_count=usage_count,
            )
        )

    def _clamp(self, quality: float) -> float:
        return max(self.config.min_quality, min(self.config.max_quality, quality))
