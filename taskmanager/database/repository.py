"""Repository layer for task database operations."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import case, desc, or_

from taskmanager.models.task import Task, TaskFilters
from taskmanager.models.constants import PRIORITY_RANK
from taskmanager.database.models import TaskDB, enum_to_value

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for Task database operations.

    Lookups here are not user-scoped; ownership is enforced by the task
    service on top of `get_by_id`.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, task: Task) -> Task:
        """Create a new task."""
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Created task {task.id}: {task.title[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def get_by_id(self, task_id: str) -> Optional[Task]:
        """Get task by ID regardless of owner."""
        task_db = self.db.query(TaskDB).filter(TaskDB.id == task_id).first()
        return task_db.to_pydantic() if task_db else None

    def get_all(self, filters: Optional[TaskFilters] = None) -> List[Task]:
        """Get tasks matching the filters.

        Sorted by due date (earliest first), then priority (high first),
        then creation date (newest first).
        """
        filters = filters or TaskFilters()
        query = self.db.query(TaskDB)

        if filters.user_id:
            query = query.filter(TaskDB.user_id == filters.user_id)
        if filters.status:
            query = query.filter(TaskDB.status == enum_to_value(filters.status))
        if filters.priority:
            query = query.filter(TaskDB.priority == enum_to_value(filters.priority))
        if filters.due_date is not None:
            day_start = datetime.combine(filters.due_date.date(), datetime.min.time())
            query = query.filter(
                TaskDB.due_date >= day_start,
                TaskDB.due_date < day_start + timedelta(days=1),
            )
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.filter(or_(TaskDB.title.ilike(pattern), TaskDB.description.ilike(pattern)))

        priority_rank = case(PRIORITY_RANK, value=TaskDB.priority, else_=0)
        tasks_db = query.order_by(TaskDB.due_date, desc(priority_rank), desc(TaskDB.created_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def get_due_before(self, cutoff: datetime) -> List[Task]:
        """Get tasks of all users whose due date precedes the cutoff."""
        tasks_db = self.db.query(TaskDB).filter(TaskDB.due_date < cutoff).order_by(TaskDB.due_date).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def get_active_user_ids(self) -> List[str]:
        """Get the distinct IDs of users owning at least one task."""
        rows = self.db.query(TaskDB.user_id).distinct().order_by(TaskDB.user_id).all()
        return [row[0] for row in rows]

    def update(self, task: Task) -> Task:
        """Update an existing task (user_id must match task.user_id)."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task.id,
            TaskDB.user_id == task.user_id,
        ).first()
        if not task_db:
            raise ValueError(f"Task {task.id} not found")

        task_db.title = task.title
        task_db.description = task.description or ""
        task_db.status = enum_to_value(task.status)
        task_db.priority = enum_to_value(task.priority)
        task_db.due_date = task.due_date
        task_db.updated_at = task.updated_at
        task_db.completed_at = task.completed_at

        try:
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Updated task {task.id}: {task.title[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, task_id: str) -> bool:
        """Permanently delete a task by ID."""
        task_db = self.db.query(TaskDB).filter(TaskDB.id == task_id).first()
        if not task_db:
            return False

        try:
            self.db.delete(task_db)
            self.db.commit()
            logger.debug(f"Deleted task {task_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete task {task_id}: {type(e).__name__}: {str(e)}")
            raise
