"""Task business logic: ownership checks, partial updates, import/export."""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from taskmanager.cache.analytics_cache import AnalyticsCache, CacheError
from taskmanager.database.models import enum_to_value
from taskmanager.database.repository import TaskRepository
from taskmanager.metrics import TaskMetrics
from taskmanager.models.task import Task, TaskFilters, TaskStatus, TaskUpdate
from taskmanager.models.task_factory import create_task_base

logger = logging.getLogger(__name__)


class TaskNotFoundError(Exception):
    """Raised when a task id does not exist."""


class AccessDeniedError(Exception):
    """Raised when a task exists but belongs to another user."""


class InvalidTaskDataError(ValueError):
    """Raised when task input is missing required fields."""


class TaskService:
    """Task operations scoped to a requesting user.

    Every read, update and delete goes through `get_task`, which resolves the
    task by id and then checks its owner.
    """

    def __init__(
        self,
        task_repository: TaskRepository,
        cache: Optional[AnalyticsCache] = None,
        metrics: Optional[TaskMetrics] = None,
    ):
        self.task_repository = task_repository
        self.cache = cache
        self.metrics = metrics

    def create_task(
        self,
        user_id: str,
        title: str,
        description: Optional[str] = None,
        status=None,
        priority=None,
        due_date: Optional[datetime] = None,
    ) -> Task:
        """Create a task for the user with server-assigned id and timestamps.

        Raises:
            InvalidTaskDataError: If the title is empty
        """
        if not title or not title.strip():
            raise InvalidTaskDataError("Title is required")

        task = create_task_base(
            user_id=user_id,
            title=title,
            description=description,
            status=status,
            priority=priority,
            due_date=due_date,
        )
        created = self.task_repository.create(task)
        logger.info(f"User {user_id} created task {created.id}")

        self._record_created(created)
        self._invalidate_analytics(user_id)
        return created

    def get_task(self, user_id: str, task_id: str) -> Task:
        """Get a task the user owns.

        Raises:
            TaskNotFoundError: If no task has this id
            AccessDeniedError: If the task belongs to another user
        """
        task = self.task_repository.get_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        if task.user_id != user_id:
            logger.warning(f"User {user_id} denied access to task {task_id}")
            raise AccessDeniedError(f"Access denied to task {task_id}")
        return task

    def list_tasks(self, user_id: str, filters: Optional[TaskFilters] = None) -> List[Task]:
        """List the user's tasks; any user_id in the filters is overridden."""
        filters = filters or TaskFilters()
        return self.task_repository.get_all(filters.model_copy(update={"user_id": user_id}))

    def update_task(self, user_id: str, task_id: str, update: TaskUpdate) -> Task:
        """Apply a partial update to a task the user owns.

        Only fields that are set and non-empty overwrite the stored values; a
        whitespace-only title counts as empty.
        Moving to done stamps `completed_at` the first time only.
        """
        existing = self.get_task(user_id, task_id)
        previous_status = enum_to_value(existing.status)

        changes = {}
        if update.title and update.title.strip():
            changes["title"] = update.title
        if update.description:
            changes["description"] = update.description
        if update.status:
            changes["status"] = update.status
        if update.priority:
            changes["priority"] = update.priority
        if update.due_date is not None:
            changes["due_date"] = update.due_date

        now = datetime.utcnow()
        changes["updated_at"] = now
        if changes.get("status") == TaskStatus.DONE.value and existing.completed_at is None:
            changes["completed_at"] = now

        updated_task = existing.model_copy(update=changes)
        try:
            saved = self.task_repository.update(updated_task)
        except ValueError as e:
            # Deleted between the ownership check and the write
            raise TaskNotFoundError(str(e)) from e
        logger.info(f"User {user_id} updated task {task_id}")

        new_status = enum_to_value(saved.status)
        if self.metrics and new_status != previous_status:
            self.metrics.task_status_changes_total.labels(new_status).inc()
            if new_status == TaskStatus.DONE.value:
                self.metrics.tasks_completed_total.inc()

        self._invalidate_analytics(user_id)
        return saved

    def delete_task(self, user_id: str, task_id: str) -> None:
        """Delete a task the user owns."""
        self.get_task(user_id, task_id)
        if not self.task_repository.delete(task_id):
            raise TaskNotFoundError(f"Task {task_id} not found")
        logger.info(f"User {user_id} deleted task {task_id}")
        self._invalidate_analytics(user_id)

    def import_tasks(self, user_id: str, items: Iterable[dict]) -> List[Task]:
        """Create one new task per item, ignoring any ids in the input.

        The batch is validated up front so a bad item imports nothing.
        Missing fields get the same defaults as `create_task`.

        Raises:
            InvalidTaskDataError: If any item has no title
        """
        items = list(items)
        for index, item in enumerate(items):
            title = item.get("title")
            if not title or not str(title).strip():
                raise InvalidTaskDataError(f"Task at index {index} is missing a title")

        imported = []
        for item in items:
            task = create_task_base(
                user_id=user_id,
                title=item["title"],
                description=item.get("description"),
                status=item.get("status"),
                priority=item.get("priority"),
                due_date=item.get("due_date"),
            )
            created = self.task_repository.create(task)
            self._record_created(created)
            imported.append(created)

        logger.info(f"User {user_id} imported {len(imported)} tasks")
        if imported:
            self._invalidate_analytics(user_id)
        return imported

    def export_tasks(self, user_id: str) -> List[Task]:
        """All of the user's tasks, in list order."""
        return self.task_repository.get_all(TaskFilters(user_id=user_id))

    def get_active_user_ids(self) -> List[str]:
        return self.task_repository.get_active_user_ids()

    def get_expired_tasks(self, cutoff: datetime) -> List[Task]:
        """Tasks of every user due before the cutoff."""
        return self.task_repository.get_due_before(cutoff)

    def _record_created(self, task: Task) -> None:
        if not self.metrics:
            return
        self.metrics.tasks_created_total.inc()
        status = enum_to_value(task.status)
        self.metrics.task_status_changes_total.labels(status).inc()
        if status == TaskStatus.DONE.value:
            self.metrics.tasks_completed_total.inc()

    def _invalidate_analytics(self, user_id: str) -> None:
        if self.cache is None:
            return
        try:
            self.cache.invalidate(user_id)
        except CacheError as e:
            logger.warning(f"Failed to invalidate analytics cache for user {user_id}: {e}")
