"""
Analysis helpers: metrics extraction and recommendation.
"""

from .metrics import MetricsExtractor, parse_metrics, placeholder_metrics, NOT_AVAILABLE
from .recommendation import derive_recommendation, BUY, HOLD, SELL, NEUTRAL

__all__ = [
    "MetricsExtractor",
    "parse_metrics",
    "placeholder_metrics",
    "NOT_AVAILABLE",
    "derive_recommendation",
    "BUY",
    "HOLD",
    "SELL",
    "NEUTRAL"
]
