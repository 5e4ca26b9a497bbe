"""Task creation factory.

This module centralizes task creation logic so API-created and imported
tasks get the same defaults.
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from taskmanager.models.task import Task, TaskStatus
from taskmanager.models.constants import (
    DEFAULT_TASK_STATUS,
    DEFAULT_TASK_PRIORITY,
    DEFAULT_DUE_DATE_OFFSET,
)


def create_task_defaults(now: datetime) -> Dict[str, Any]:
    """Get default task values as a dictionary.

    Args:
        now: Reference time used for the default due date

    Returns:
        Dictionary with default task field values using constants
    """
    return {
        "description": "",
        "status": DEFAULT_TASK_STATUS,
        "priority": DEFAULT_TASK_PRIORITY,
        "due_date": now + DEFAULT_DUE_DATE_OFFSET,
        "completed_at": None,
    }


def create_task_base(
    user_id: str,
    title: str,
    description: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[Any] = None,
    due_date: Optional[datetime] = None,
) -> Task:
    """Create a task with defaults, allowing overrides.

    A fresh id and creation timestamps are always assigned. A task created
    directly in the done state is stamped completed at creation time, so its
    completion time is never negative.

    Args:
        user_id: User ID who owns this task (required)
        title: Task title (required)
        description: Task description
        status: Task status (defaults to pending)
        priority: Task priority (defaults to medium)
        due_date: Due date (defaults to one day from now)

    Returns:
        Task object with defaults applied
    """
    now = datetime.utcnow()
    defaults = create_task_defaults(now)

    status = status if status else defaults["status"]
    completed_at = now if status == TaskStatus.DONE else defaults["completed_at"]

    return Task(
        id=str(uuid.uuid4()),
        user_id=user_id,
        title=title,
        description=description if description is not None else defaults["description"],
        status=status,
        priority=priority if priority else defaults["priority"],
        due_date=due_date if due_date is not None else defaults["due_date"],
        created_at=now,
        updated_at=now,
        completed_at=completed_at,
    )
