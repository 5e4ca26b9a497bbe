"""Analytics snapshot models."""

from datetime import datetime
from enum import Enum
from typing import Dict
from pydantic import BaseModel, Field


class AnalyticsPeriod(str, Enum):
    """Analytics period tag.

    The period labels a snapshot and partitions the cache; it does not
    restrict which tasks are aggregated.
    """
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class AnalyticsSnapshot(BaseModel):
    """Aggregate statistics over one user's tasks."""

    user_id: str = Field(..., description="Owner of the aggregated tasks")
    period: AnalyticsPeriod = Field(..., description="Period tag")
    status_count: Dict[str, int] = Field(default_factory=dict, description="Task count per status")
    priority_count: Dict[str, int] = Field(default_factory=dict, description="Task count per priority")
    avg_completion_time: float = Field(0.0, description="Mean hours from creation to completion")
    on_time_completion_rate: float = Field(
        0.0,
        ge=0.0,
        le=1.0,
        description="Fraction of completed tasks finished before their due date",
    )
    overdue_tasks: int = Field(0, description="Tasks not done whose due date has passed")
    generated_at: datetime = Field(..., description="When the snapshot was computed")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class CachedAnalytics(BaseModel):
    """Cache envelope for a snapshot."""

    user_id: str
    period: AnalyticsPeriod
    analytics: AnalyticsSnapshot
    cached_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
