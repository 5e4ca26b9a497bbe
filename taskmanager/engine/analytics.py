"""Task analytics aggregation.

`compute_analytics` is a pure function over a user's tasks. `AnalyticsEngine`
wraps it with compute-on-miss caching: a cached snapshot is returned as-is
until its TTL expires or the user's entries are invalidated.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, Optional

from taskmanager.cache.analytics_cache import ANALYTICS_CACHE_TTL, AnalyticsCache, CacheError
from taskmanager.database.models import enum_to_value
from taskmanager.database.repository import TaskRepository
from taskmanager.models.analytics import AnalyticsPeriod, AnalyticsSnapshot
from taskmanager.models.task import Task, TaskFilters, TaskStatus

logger = logging.getLogger(__name__)


def compute_analytics(
    user_id: str,
    tasks: Iterable[Task],
    period,
    now: Optional[datetime] = None,
) -> AnalyticsSnapshot:
    """Aggregate statistics over a user's tasks.

    The period only labels the snapshot; every task passed in is counted.

    Args:
        user_id: Owner of the tasks
        tasks: All tasks of the user
        period: Period tag for the snapshot
        now: Reference time for overdue checks (defaults to utcnow)

    Returns:
        AnalyticsSnapshot with counts, average completion time in hours,
        on-time completion rate as a fraction, and overdue count
    """
    now = now or datetime.utcnow()
    status_count: Counter = Counter()
    priority_count: Counter = Counter()
    completed = 0
    on_time = 0
    total_completion_hours = 0.0
    overdue = 0

    for task in tasks:
        status = enum_to_value(task.status)
        status_count[status] += 1
        priority_count[enum_to_value(task.priority)] += 1

        if status == TaskStatus.DONE.value:
            if task.completed_at is not None:
                completed += 1
                total_completion_hours += (task.completed_at - task.created_at).total_seconds() / 3600
                if task.completed_at < task.due_date:
                    on_time += 1
        elif task.due_date < now:
            overdue += 1

    return AnalyticsSnapshot(
        user_id=user_id,
        period=AnalyticsPeriod(period),
        status_count=dict(status_count),
        priority_count=dict(priority_count),
        avg_completion_time=total_completion_hours / completed if completed else 0.0,
        on_time_completion_rate=on_time / completed if completed else 0.0,
        overdue_tasks=overdue,
        generated_at=now,
    )


class AnalyticsEngine:
    """Cached per-user task analytics."""

    def __init__(
        self,
        task_repository: TaskRepository,
        cache: AnalyticsCache,
        ttl: timedelta = ANALYTICS_CACHE_TTL,
    ):
        self.task_repository = task_repository
        self.cache = cache
        self.ttl = ttl

    def get_analytics(self, user_id: str, period) -> AnalyticsSnapshot:
        """Return the cached snapshot, computing and caching it on a miss.

        Cache failures are logged and never fail the call; task store
        failures propagate.
        """
        try:
            cached = self.cache.get(user_id, period)
        except CacheError as e:
            logger.warning(f"Analytics cache read failed for user {user_id} ({enum_to_value(period)}): {e}")
            cached = None
        if cached is not None:
            logger.debug(f"Analytics cache hit for user {user_id} ({enum_to_value(period)})")
            return cached

        snapshot = self._compute(user_id, period)
        try:
            self.cache.set(snapshot, self.ttl)
        except CacheError as e:
            logger.error(f"Failed to cache analytics for user {user_id} ({enum_to_value(period)}): {e}")
        return snapshot

    def refresh(self, user_id: str, period) -> AnalyticsSnapshot:
        """Recompute from the task store and overwrite the cache entry.

        Raises:
            CacheError: If the snapshot could not be written
        """
        snapshot = self._compute(user_id, period)
        self.cache.set(snapshot, self.ttl)
        return snapshot

    def _compute(self, user_id: str, period) -> AnalyticsSnapshot:
        tasks = self.task_repository.get_all(TaskFilters(user_id=user_id))
        return compute_analytics(user_id, tasks, period)
