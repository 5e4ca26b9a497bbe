"""Analytics engine for the task manager."""

from taskmanager.engine.analytics import compute_analytics, AnalyticsEngine

__all__ = [
    "compute_analytics",
    "AnalyticsEngine",
]
