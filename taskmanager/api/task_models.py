"""Request/response models for task endpoints."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from taskmanager.models.task import Task, TaskStatus, TaskPriority, to_naive_utc


class TaskCreateRequest(BaseModel):
    """Request model for creating a task. Omitted fields get defaults."""

    title: str = Field(..., description="Task title")
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = Field(None, description="Defaults to one day from now")

    @field_validator("due_date")
    @classmethod
    def _normalize_due_date(cls, v):
        return to_naive_utc(v)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskImportItem(BaseModel):
    """One element of an import payload.

    Ids and timestamps other than `due_date` are ignored; the title is
    checked by the task service so the whole batch can be rejected at once.
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


class ImportResponse(BaseModel):
    """Response for task import."""
    imported_count: int
    tasks: List[Task]
