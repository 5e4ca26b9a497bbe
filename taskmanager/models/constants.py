"""Constants for the task manager.

This module centralizes all magic numbers and default values used throughout the application.
"""

from datetime import timedelta

from taskmanager.models.task import TaskStatus, TaskPriority
from taskmanager.models.analytics import AnalyticsPeriod


# Task defaults
DEFAULT_TASK_STATUS = TaskStatus.PENDING
DEFAULT_TASK_PRIORITY = TaskPriority.MEDIUM
DEFAULT_DUE_DATE_OFFSET = timedelta(days=1)

# Ordering weight for priority (higher = more important)
PRIORITY_RANK = {
    TaskPriority.LOW.value: 1,
    TaskPriority.MEDIUM.value: 2,
    TaskPriority.HIGH.value: 3,
}

# Analytics
ANALYTICS_PERIODS = (AnalyticsPeriod.DAY, AnalyticsPeriod.WEEK, AnalyticsPeriod.MONTH)
DEFAULT_ANALYTICS_PERIOD = AnalyticsPeriod.WEEK

# Auth
MIN_PASSWORD_LENGTH = 6
