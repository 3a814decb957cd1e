"""Feedback configuration, result and statistics models."""

from pydantic import BaseModel, Field, model_validator

from rootcache.core import defaults
from rootcache.core.models import FeedbackKind
from rootcache.quality.scorer import QualityScorerConfig


class FeedbackConfig(BaseModel):
    """Configuration for FeedbackProcessor.

    Attributes:
        positive_multiplier: Confidence multiplier for positive feedback
        negative_multiplier: Confidence multiplier for negative feedback
        max_confidence: Cap applied after positive feedback
        min_confidence: Floor applied after negative feedback
        invalidate_cache_on_negative: Drop the cached result on negative feedback
        max_conflict_retries: Extra attempts after a version conflict
        quality: Scorer settings used to recompute quality after the change
    """

    positive_multiplier: float = Field(
        default=defaults.FEEDBACK_POSITIVE_MULTIPLIER, ge=1.0
    )
    negative_multiplier: float = Field(
        default=defaults.FEEDBACK_NEGATIVE_MULTIPLIER, gt=0.0, le=1.0
    )
    max_confidence: float = Field(default=defaults.FEEDBACK_MAX_CONFIDENCE, ge=0.0, le=1.0)
    min_confidence: float = Field(default=defaults.FEEDBACK_MIN_CONFIDENCE, ge=0.0, le=1.0)
    invalidate_cache_on_negative: bool = Field(default=True)
    max_conflict_retries: int = Field(default=defaults.FEEDBACK_MAX_CONFLICT_RETRIES, ge=0)
    quality: QualityScorerConfig = Field(default_factory=QualityScorerConfig)

    @model_validator(mode="after")
    def check_bounds(self) -> "FeedbackConfig":
        if self.min_confidence > self.max_confidence:
            raise ValueError("min_confidence must not exceed max_confidence")
        return self

    def confidence_scorer_config(self) -> QualityScorerConfig:
        """Scorer settings whose feedback helpers adjust confidence.

        The boost and reduction factors are the feedback multipliers and
        the clamp bounds are the confidence bounds.
        """
        return self.quality.model_copy(
            update={
                "positive_boost": self.positive_multiplier,
                "negative_reduction": self.negative_multiplier,
                "min_quality": self.min_confidence,
                "max_quality": self.max_confidence,
            }
        )


class FeedbackResult(BaseModel):
    """Outcome of applying one feedback event to a record."""

    record_id: str
    kind: FeedbackKind
    previous_confidence: float
    new_confidence: float
    previous_quality: float
    new_quality: float
    cache_invalidated: bool = False
    attempts: int = Field(default=1, description="Write attempts including conflict retries")
    message: str = ""


class FeedbackStats(BaseModel):
    """Running feedback statistics for one processor instance.

    Attributes:
        total_positive: Positive feedback calls received
        total_negative: Negative feedback calls received
        total: All feedback calls received
        successful: Calls that persisted their update
        success_rate: successful / total, 0.0 with no calls
        avg_positive_boost: Mean confidence increase from positive feedback
        avg_negative_reduction: Mean confidence decrease from negative feedback
    """

    total_positive: int = 0
    total_negative: int = 0
    total: int = 0
    successful: int = 0
    success_rate: float = 0.0
    avg_positive_boost: float = 0.0
    avg_negative_reduction: float = 0.0
