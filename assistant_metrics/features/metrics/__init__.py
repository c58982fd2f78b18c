"""Conversation metrics: topic analysis, cached aggregation and snapshots."""

from .cache import MetricsCache
from .calculator import MetricsCalculator
from .models import MetricsResult, Period
from .service import MetricsService
from .topics import analyze_topics

__all__ = [
    "MetricsCache",
    "MetricsCalculator",
    "MetricsResult",
    "MetricsService",
    "Period",
    "analyze_topics",
]
