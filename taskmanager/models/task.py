"""Task data model for the task manager."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class TaskStatus(str, Enum):
    """Task status enumeration."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an aware datetime to naive UTC (naive values pass through)."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Task(BaseModel):
    """Canonical Task model."""

    id: str = Field(..., description="Unique task identifier (UUID v4)")
    user_id: str = Field(..., description="User ID who owns this task")
    title: str = Field(..., description="Task title")
    description: str = Field("", description="Task description")
    status: TaskStatus = Field(TaskStatus.PENDING, description="Task status")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")
    due_date: datetime = Field(..., description="Task due date")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")
    completed_at: Optional[datetime] = Field(None, description="Set when the task first moves to done")

    @field_validator("due_date", "created_at", "updated_at", "completed_at")
    @classmethod
    def _normalize_timestamps(cls, v):
        return to_naive_utc(v)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskUpdate(BaseModel):
    """Partial update for a task.

    Only fields that are present and non-empty overwrite the stored task.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None

    @field_validator("due_date")
    @classmethod
    def _normalize_due_date(cls, v):
        return to_naive_utc(v)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskFilters(BaseModel):
    """Filters for task list queries. Unset fields do not filter."""

    user_id: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = Field(None, description="Matches tasks due on the same calendar day (UTC)")
    search: Optional[str] = Field(None, description="Case-insensitive substring of title or description")

    @field_validator("due_date")
    @classmethod
    def _normalize_due_date(cls, v):
        return to_naive_utc(v)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
