"""Data models for the task manager."""

from taskmanager.models.task import Task, TaskStatus, TaskPriority, TaskUpdate, TaskFilters
from taskmanager.models.user import User
from taskmanager.models.analytics import AnalyticsPeriod, AnalyticsSnapshot, CachedAnalytics

__all__ = [
    "Task",
    "TaskStatus",
    "TaskPriority",
    "TaskUpdate",
    "TaskFilters",
    "User",
    "AnalyticsPeriod",
    "AnalyticsSnapshot",
    "CachedAnalytics",
]
