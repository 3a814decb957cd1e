"""User feedback on analysis results."""

from rootcache.feedback.models import FeedbackConfig, FeedbackResult, FeedbackStats
from rootcache.feedback.processor import FeedbackProcessor

__all__ = [
    "FeedbackProcessor",
    "FeedbackConfig",
    "FeedbackResult",
    "FeedbackStats",
]
