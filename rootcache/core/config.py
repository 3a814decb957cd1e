"""Configuration management for rootcache.

Settings are read from environment variables (and a ``.env`` file) with
validation and type safety. Component configs follow a 3-tier fallback
chain:

    1. YAML config (rootcache.yaml)
    2. Environment variables (via the Settings class)
    3. Hardcoded defaults (rootcache.core.defaults)
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rootcache.core import defaults

if TYPE_CHECKING:
    from rootcache.cache.models import CacheConfig
    from rootcache.feedback.models import FeedbackConfig
    from rootcache.quality.models import LifecycleConfig
    from rootcache.quality.scorer import QualityScorerConfig

CONFIG_FILE_NAME = "rootcache.yaml"


class Settings(BaseSettings):
    """Application configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Record store
    store_backend: Literal["memory", "redis", "postgres"] = Field(
        default="memory", description="Persisted record store backend"
    )
    database_url: str = Field(default="", description="PostgreSQL connection string")
    database_pool_size: int = Field(
        default=10, description="Connection pool size", ge=1, le=100
    )
    redis_url: str = Field(default="redis://localhost:6379", description="Redis URL")
    redis_timeout: int = Field(
        default=5, description="Redis operation timeout seconds", ge=1, le=30
    )

    # Fingerprinting
    fingerprint_algorithm: str = Field(
        default=defaults.FINGERPRINT_ALGORITHM, description="hashlib algorithm name"
    )
    fingerprint_include_file_path: bool = Field(default=True)
    fingerprint_include_line_number: bool = Field(default=True)
    fingerprint_include_column_number: bool = Field(default=False)

    # Result cache
    cache_ttl: float = Field(
        default=defaults.CACHE_TTL, description="Cache TTL in seconds (24 hours)", gt=0
    )
    cache_max_entries: int = Field(
        default=defaults.CACHE_MAX_ENTRIES, description="Cache capacity", ge=1
    )
    cache_sweep_interval: float = Field(
        default=defaults.CACHE_SWEEP_INTERVAL,
        description="Seconds between expired-entry sweeps",
        gt=0,
    )
    cache_auto_sweep: bool = Field(default=True)

    # Quality scoring
    quality_age_threshold: float = Field(
        default=defaults.QUALITY_AGE_THRESHOLD,
        description="Age (seconds) at which the age penalty is maxed out",
        gt=0,
    )
    quality_max_age_penalty: float = Field(
        default=defaults.QUALITY_MAX_AGE_PENALTY, ge=0.0, le=1.0
    )
    quality_validation_bonus: float = Field(
        default=defaults.QUALITY_VALIDATION_BONUS, ge=0.0, le=1.0
    )
    quality_min: float = Field(default=defaults.QUALITY_MIN, ge=0.0, le=1.0)
    quality_max: float = Field(default=defaults.QUALITY_MAX, ge=0.0, le=1.0)
    quality_usage_bonus_weight: float = Field(
        default=defaults.QUALITY_USAGE_BONUS_WEIGHT, ge=0.0
    )

    # Lifecycle
    lifecycle_min_quality_threshold: float = Field(
        default=defaults.LIFECYCLE_MIN_QUALITY_THRESHOLD, ge=0.0, le=1.0
    )
    lifecycle_max_age: float = Field(
        default=defaults.LIFECYCLE_MAX_AGE,
        description="Age (seconds) after which records are pruned",
        gt=0,
    )
    lifecycle_old_age_watermark: float = Field(
        default=defaults.LIFECYCLE_OLD_AGE_WATERMARK, gt=0
    )
    lifecycle_auto_prune: bool = Field(default=False)
    lifecycle_auto_prune_interval: float = Field(
        default=defaults.LIFECYCLE_AUTO_PRUNE_INTERVAL, gt=0
    )
    lifecycle_recalculation_epsilon: float = Field(
        default=defaults.LIFECYCLE_RECALCULATION_EPSILON, ge=0.0
    )
    lifecycle_scan_batch_size: int = Field(
        default=defaults.LIFECYCLE_SCAN_BATCH_SIZE,
        description="Records requested per store enumeration page",
        ge=1,
    )

    # Feedback
    feedback_positive_multiplier: float = Field(
        default=defaults.FEEDBACK_POSITIVE_MULTIPLIER, ge=1.0
    )
    feedback_negative_multiplier: float = Field(
        default=defaults.FEEDBACK_NEGATIVE_MULTIPLIER, gt=0.0, le=1.0
    )
    feedback_min_confidence: float = Field(
        default=defaults.FEEDBACK_MIN_CONFIDENCE, ge=0.0, le=1.0
    )
    feedback_max_confidence: float = Field(
        default=defaults.FEEDBACK_MAX_CONFIDENCE, ge=0.0, le=1.0
    )
    feedback_invalidate_cache_on_negative: bool = Field(default=True)
    feedback_max_conflict_retries: int = Field(
        default=defaults.FEEDBACK_MAX_CONFLICT_RETRIES,
        description="Extra attempts after a version conflict",
        ge=0,
    )

    # Logging and telemetry
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] | None = Field(
        default=None, description="Log output format (default depends on environment)"
    )
    environment: str = Field(default="development")
    otel_enabled: bool = Field(default=False, description="Export OpenTelemetry metrics")

    @model_validator(mode="after")
    def check_bounds(self) -> "Settings":
        """Reject inverted min/max pairs."""
        if self.quality_min > self.quality_max:
            raise ValueError("quality_min must not exceed quality_max")
        if self.feedback_min_confidence > self.feedback_max_confidence:
            raise ValueError(
                "feedback_min_confidence must not exceed feedback_max_confidence"
            )
        return self

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()


def load_yaml_section(section: str, config_path: Path | None = None) -> dict[str, Any]:
    """Return one top-level mapping from rootcache.yaml.

    Missing file, unreadable YAML or a non-mapping section all yield an
    empty dict so callers fall through to environment defaults.
    """
    config_path = config_path or Path(CONFIG_FILE_NAME)
    if not config_path.exists():
        return {}

    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return {}

    if not isinstance(config, dict):
        return {}

    section_config = config.get(section, {})
    if not isinstance(section_config, dict):
        return {}
    return section_config


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in overrides.items():
        existing = result.get(key)
        if isinstance(value, dict) and isinstance(existing, dict):
            result[key] = {**existing, **value}
        else:
            result[key] = value
    return result


def load_cache_config(
    source: Settings | None = None, config_path: Path | None = None
) -> "CacheConfig":
    """Load result cache configuration.

    Example:
        >>> config = load_cache_config()
        >>> config.ttl
        86400.0
    """
    # Import here to avoid circular import
    from rootcache.cache.models import CacheConfig

    source = source or settings
    values = {
        "ttl": source.cache_ttl,
        "max_entries": source.cache_max_entries,
        "sweep_interval": source.cache_sweep_interval,
        "auto_sweep": source.cache_auto_sweep,
        "fingerprint": {
            "algorithm": source.fingerprint_algorithm,
            "include_file_path": source.fingerprint_include_file_path,
            "include_line_number": source.fingerprint_include_line_number,
            "include_column_number": source.fingerprint_include_column_number,
        },
    }
    return CacheConfig.model_validate(
        _merge(values, load_yaml_section("cache", config_path))
    )


def load_quality_config(
    source: Settings | None = None, config_path: Path | None = None
) -> "QualityScorerConfig":
    """Load quality scorer configuration."""
    from rootcache.quality.scorer import QualityScorerConfig

    source = source or settings
    values = {
        "age_threshold": source.quality_age_threshold,
        "max_age_penalty": source.quality_max_age_penalty,
        "validation_bonus": source.quality_validation_bonus,
        "min_quality": source.quality_min,
        "max_quality": source.quality_max,
        "usage_bonus_weight": source.quality_usage_bonus_weight,
    }
    return QualityScorerConfig.model_validate(
        _merge(values, load_yaml_section("quality", config_path))
    )


def load_lifecycle_config(
    source: Settings | None = None, config_path: Path | None = None
) -> "LifecycleConfig":
    """Load lifecycle (pruning) configuration."""
    from rootcache.quality.models import LifecycleConfig

    source = source or settings
    values = {
        "min_quality_threshold": source.lifecycle_min_quality_threshold,
        "max_age": source.lifecycle_max_age,
        "old_age_watermark": source.lifecycle_old_age_watermark,
        "auto_prune": source.lifecycle_auto_prune,
        "auto_prune_interval": source.lifecycle_auto_prune_interval,
        "recalculation_epsilon": source.lifecycle_recalculation_epsilon,
        "scan_batch_size": source.lifecycle_scan_batch_size,
    }
    return LifecycleConfig.model_validate(
        _merge(values, load_yaml_section("lifecycle", config_path))
    )


def load_feedback_config(
    source: Settings | None = None, config_path: Path | None = None
) -> "FeedbackConfig":
    """Load feedback processor configuration.

    Quality rescoring after a confidence change uses the quality section.
    """
    from rootcache.feedback.models import FeedbackConfig

    source = source or settings
    values = {
        "positive_multiplier": source.feedback_positive_multiplier,
        "negative_multiplier": source.feedback_negative_multiplier,
        "min_confidence": source.feedback_min_confidence,
        "max_confidence": source.feedback_max_confidence,
        "invalidate_cache_on_negative": source.feedback_invalidate_cache_on_negative,
        "max_conflict_retries": source.feedback_max_conflict_retries,
        "quality": load_quality_config(source, config_path).model_dump(),
    }
    return FeedbackConfig.model_validate(
        _merge(values, load_yaml_section("feedback", config_path))
    )
