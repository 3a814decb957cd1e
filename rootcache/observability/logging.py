"""Structured logging configuration for rootcache.

This module provides structured logging using structlog. Logs are output
as JSON in production for log aggregators and as colored key-value lines
during development.

Configuration:
    Read from Settings (environment variables and .env):
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    - LOG_FORMAT: json, console (default: json in production, console in dev)
    - ENVIRONMENT: development, production (affects format default)

Usage:
    >>> from rootcache.observability.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("cache_hit", key="ab12cd34", hits=3)

Standard Events:
    Cache:
        - cache_hit / cache_miss: Lookup outcome
        - cache_expired: Entry removed lazily on read
        - cache_evicted: Least recently accessed entry dropped at capacity
        - cache_invalidated: Entry removed on request (negative feedback)
        - cache_swept: Background sweep removed expired entries

    Lifecycle:
        - records_pruned: Batch prune finished
        - record_flagged: Validated record below threshold kept for review
        - record_scan_failed: Store enumeration failed (treated as empty)
        - quality_recalculated: Batch rescoring finished

    Feedback:
        - feedback_applied: Confidence and quality updated
        - feedback_failed: Feedback raised to the caller
        - feedback_conflict: Version conflict, retrying
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import Processor

# Module-level flag to track initialization
_configured = False


def configure_logging(
    level: str | None = None,
    log_format: str | None = None,
    is_production: bool | None = None,
    stream: TextIO | None = None,
    force: bool = False,
) -> None:
    """Configure structured logging for the application.

    Should be called once at application startup. Safe to call multiple times
    (subsequent calls are no-ops unless ``force`` is set).

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Default from
            settings.log_level.
        log_format: Output format (json, console). Default from settings.log_format,
            else json in production and console elsewhere.
        is_production: Override production detection. Default from
            settings.environment.
        stream: Output stream (default stdout)
        force: Reconfigure even if logging was already configured, e.g. by
            an import-time ``get_logger`` call
    """
    global _configured
    if _configured and not force:
        return

    # Import here to avoid circular import
    from rootcache.core.config import settings

    if level is None:
        level = settings.log_level
    level = level.upper()

    if is_production is None:
        is_production = settings.is_production

    if log_format is None:
        log_format = settings.log_format or ("json" if is_production else "console")

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=getattr(logging, level, logging.INFO),
        force=force,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Auto-configures logging on first call if not already configured.

    Args:
        name: Logger name (typically __name__). If None, returns root logger.

    Returns:
        Configured structlog BoundLogger instance.
    """
    if not _configured:
        configure_logging()

    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_context(**kwargs: Any) -> None:
    """Bind context variables to all subsequent log calls in this context.

    Example:
        >>> bind_context(run_id="prune-2024-01-15")
        >>> logger.info("records_pruned")  # Includes run_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


class LogEvents:
    """Standard event names for structured logging.

    Example:
        >>> logger.info(LogEvents.CACHE_HIT, key=key[:8])
    """

    # Cache events
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    CACHE_EXPIRED = "cache_expired"
    CACHE_EVICTED = "cache_evicted"
    CACHE_INVALIDATED = "cache_invalidated"
    CACHE_CLEARED = "cache_cleared"
    CACHE_SWEPT = "cache_swept"
    CACHE_DISPOSED = "cache_disposed"

    # Lifecycle events
    RECORDS_PRUNED = "records_pruned"
    RECORD_FLAGGED = "record_flagged"
    RECORD_DELETE_FAILED = "record_delete_failed"
    RECORD_SCAN_FAILED = "record_scan_failed"
    QUALITY_RECALCULATED = "quality_recalculated"
    AUTO_PRUNE_STARTED = "auto_prune_started"
    AUTO_PRUNE_STOPPED = "auto_prune_stopped"

    # Feedback events
    FEEDBACK_APPLIED = "feedback_applied"
    FEEDBACK_FAILED = "feedback_failed"
    FEEDBACK_CONFLICT = "feedback_conflict"

    # Scheduler events
    TASK_STARTED = "task_started"
    TASK_STOPPED = "task_stopped"
    TASK_FAILED = "task_failed"
