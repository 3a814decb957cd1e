"""Observability for rootcache.

Structured logging via structlog and OpenTelemetry metrics for cache
lookups, invalidations, pruning and feedback.
"""

from rootcache.observability.logging import (
    LogEvents,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from rootcache.observability.metrics import (
    get_meter,
    record_cache_invalidation,
    record_cache_lookup,
    record_feedback,
    record_prune,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "LogEvents",
    "get_meter",
    "record_cache_lookup",
    "record_cache_invalidation",
    "record_prune",
    "record_feedback",
]
