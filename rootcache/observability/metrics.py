"""OpenTelemetry metrics for rootcache.

Metrics:
    - rootcache.cache.lookups: Counter of cache lookups by outcome (hit/miss)
    - rootcache.cache.invalidations: Counter of explicit cache invalidations
    - rootcache.records.pruned: Counter of pruned records by reason
    - rootcache.feedback.submissions: Counter of feedback by kind and outcome

All recording functions are no-ops unless ``settings.otel_enabled`` is
set. Exporter wiring is left to the embedding application; without a
configured MeterProvider the API hands out no-op instruments.
"""

import logging
from typing import Any

from opentelemetry import metrics

from rootcache.core.config import settings

logger = logging.getLogger(__name__)

# Global meter instance
_meter: metrics.Meter | None = None

# Metric instruments (created on first access)
_cache_lookups_counter: metrics.Counter | None = None
_cache_invalidations_counter: metrics.Counter | None = None
_records_pruned_counter: metrics.Counter | None = None
_feedback_submissions_counter: metrics.Counter | None = None


def get_meter(name: str = "rootcache") -> metrics.Meter:
    """Get OpenTelemetry meter instance."""
    global _meter
    if _meter is None:
        _meter = metrics.get_meter(name)
    return _meter


def _ensure_instruments() -> None:
    """Lazy initialization of metric instruments."""
    if not settings.otel_enabled:
        return

    global _cache_lookups_counter
    global _cache_invalidations_counter
    global _records_pruned_counter
    global _feedback_submissions_counter

    meter = get_meter()

    if _cache_lookups_counter is None:
        _cache_lookups_counter = meter.create_counter(
            name="rootcache.cache.lookups",
            description="Number of result cache lookups",
            unit="1",
        )

    if _cache_invalidations_counter is None:
        _cache_invalidations_counter = meter.create_counter(
            name="rootcache.cache.invalidations",
            description="Number of cache entries invalidated on request",
            unit="1",
        )

    if _records_pruned_counter is None:
        _records_pruned_counter = meter.create_counter(
            name="rootcache.records.pruned",
            description="Number of analysis records removed by lifecycle pruning",
            unit="1",
        )

    if _feedback_submissions_counter is None:
        _feedback_submissions_counter = meter.create_counter(
            name="rootcache.feedback.submissions",
            description="Number of feedback submissions",
            unit="1",
        )


def record_cache_lookup(hit: bool) -> None:
    """Record a cache lookup outcome."""
    if not settings.otel_enabled:
        return

    _ensure_instruments()

    if _cache_lookups_counter:
        _cache_lookups_counter.add(1, {"outcome": "hit" if hit else "miss"})


def record_cache_invalidation() -> None:
    """Record an explicit cache invalidation."""
    if not settings.otel_enabled:
        return

    _ensure_instruments()

    if _cache_invalidations_counter:
        _cache_invalidations_counter.add(1)


def record_prune(removed_low_quality: int, removed_expired: int) -> None:
    """Record records removed by one prune run.

    Args:
        removed_low_quality: Records removed for falling below the threshold
        removed_expired: Records removed for exceeding the maximum age
    """
    if not settings.otel_enabled:
        return

    _ensure_instruments()

    if _records_pruned_counter:
        if removed_low_quality:
            _records_pruned_counter.add(removed_low_quality, {"reason": "low_quality"})
        if removed_expired:
            _records_pruned_counter.add(removed_expired, {"reason": "expired"})


def record_feedback(kind: str, success: bool) -> None:
    """Record a feedback submission.

    Args:
        kind: Feedback kind (positive, negative)
        success: False when the feedback raised to the caller
    """
    if not settings.otel_enabled:
        return

    _ensure_instruments()

    if _feedback_submissions_counter:
        attributes = {
            "kind": kind,
            "outcome": "success" if success else "failure",
        }
        _feedback_submissions_counter.add(1, attributes)


def get_metrics_summary() -> dict[str, Any]:
    """Get current metrics configuration for debugging."""
    return {
        "otel_enabled": settings.otel_enabled,
        "meter_created": _meter is not None,
    }
