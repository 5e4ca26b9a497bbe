"""Background maintenance loops.

Two periodic jobs run in daemon threads until `stop()` is called:
- expiry sweep: deletes tasks due more than the retention window ago
- analytics refresh: recomputes every period for every user owning tasks
"""

import logging
import os
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Callable, Iterator, List, Optional

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from taskmanager.cache.analytics_cache import ANALYTICS_CACHE_TTL, AnalyticsCache
from taskmanager.database.repository import TaskRepository
from taskmanager.engine.analytics import AnalyticsEngine
from taskmanager.metrics import TaskMetrics
from taskmanager.models.constants import ANALYTICS_PERIODS
from taskmanager.services.task_service import TaskService

load_dotenv()

logger = logging.getLogger(__name__)

BACKGROUND_WORKER_ENABLED = os.getenv("BACKGROUND_WORKER_ENABLED", "true").lower() == "true"
CLEANUP_INTERVAL = timedelta(hours=float(os.getenv("CLEANUP_INTERVAL_HOURS", "24")))
ANALYTICS_REFRESH_INTERVAL = timedelta(hours=float(os.getenv("ANALYTICS_REFRESH_INTERVAL_HOURS", "6")))
EXPIRED_TASK_RETENTION = timedelta(days=float(os.getenv("EXPIRED_TASK_RETENTION_DAYS", "7")))


class BackgroundRefresher:
    """Runs the expiry sweep and analytics refresh on fixed intervals.

    Each iteration opens its own session from `session_factory`. Errors are
    logged and the loop carries on with the next interval.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        analytics_cache: AnalyticsCache,
        cleanup_interval: timedelta = CLEANUP_INTERVAL,
        refresh_interval: timedelta = ANALYTICS_REFRESH_INTERVAL,
        retention: timedelta = EXPIRED_TASK_RETENTION,
        cache_ttl: timedelta = ANALYTICS_CACHE_TTL,
        metrics: Optional[TaskMetrics] = None,
    ):
        self.session_factory = session_factory
        self.analytics_cache = analytics_cache
        self.cleanup_interval = cleanup_interval
        self.refresh_interval = refresh_interval
        self.retention = retention
        self.cache_ttl = cache_ttl
        self.metrics = metrics

        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._threads: List[threading.Thread] = []

    def start(self) -> None:
        """Launch both loops. Calling start on a running refresher is a no-op."""
        with self._lock:
            if self._threads:
                return
            self._stop_event.clear()
            self._threads = [
                threading.Thread(
                    target=self._run_loop,
                    args=(self.cleanup_interval, self.cleanup_expired_tasks),
                    name="task-expiry-sweep",
                    daemon=True,
                ),
                threading.Thread(
                    target=self._run_loop,
                    args=(self.refresh_interval, self.refresh_analytics),
                    name="analytics-refresh",
                    daemon=True,
                ),
            ]
            for thread in self._threads:
                thread.start()
        logger.info(
            f"Background refresher started (cleanup every {self.cleanup_interval}, "
            f"analytics every {self.refresh_interval})"
        )

    def stop(self) -> None:
        """Signal both loops and wait for them to exit. Safe to call repeatedly."""
        with self._lock:
            self._stop_event.set()
            threads, self._threads = self._threads, []
            for thread in threads:
                thread.join()
        if threads:
            logger.info("Background refresher stopped")

    @property
    def running(self) -> bool:
        return bool(self._threads)

    def _run_loop(self, interval: timedelta, job: Callable[[], object]) -> None:
        while not self._stop_event.wait(interval.total_seconds()):
            try:
                job()
            except Exception:
                logger.exception(f"Background job {job.__name__} failed")

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
        finally:
            session.close()

    def cleanup_expired_tasks(self, now: Optional[datetime] = None) -> int:
        """Delete tasks due before now minus the retention window.

        Returns:
            Number of tasks deleted
        """
        cutoff = (now or datetime.utcnow()) - self.retention
        deleted = 0
        with self._session() as session:
            service = TaskService(TaskRepository(session), cache=self.analytics_cache, metrics=self.metrics)
            for task in service.get_expired_tasks(cutoff):
                try:
                    service.delete_task(task.user_id, task.id)
                    deleted += 1
                except Exception as e:
                    logger.error(f"Failed to delete expired task {task.id}: {type(e).__name__}: {str(e)}")
        logger.info(f"Expired task sweep removed {deleted} tasks due before {cutoff.isoformat()}")
        return deleted

    def refresh_analytics(self) -> int:
        """Recompute and cache analytics for every active user and period.

        Returns:
            Number of snapshots written
        """
        refreshed = 0
        with self._session() as session:
            repository = TaskRepository(session)
            engine = AnalyticsEngine(repository, self.analytics_cache, ttl=self.cache_ttl)
            user_ids = repository.get_active_user_ids()
            for user_id in user_ids:
                for period in ANALYTICS_PERIODS:
                    try:
                        engine.refresh(user_id, period)
                        refreshed += 1
                    except Exception as e:
                        logger.error(
                            f"Failed to refresh {period.value} analytics for user {user_id}: "
                            f"{type(e).__name__}: {str(e)}"
                        )
        logger.info(f"Refreshed {refreshed} analytics snapshots for {len(user_ids)} users")
        return refreshed
