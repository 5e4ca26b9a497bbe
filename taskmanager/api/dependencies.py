"""FastAPI dependencies wiring services to per-request sessions.

Shared clients (analytics cache, metrics) are created in the app lifespan and
kept on `app.state`.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from taskmanager.cache.analytics_cache import AnalyticsCache
from taskmanager.database.database import get_db
from taskmanager.database.repository import TaskRepository
from taskmanager.database.user_repository import UserRepository
from taskmanager.engine.analytics import AnalyticsEngine
from taskmanager.metrics import TaskMetrics
from taskmanager.services.auth_service import AuthService
from taskmanager.services.task_service import TaskService


def get_analytics_cache(request: Request) -> AnalyticsCache:
    return request.app.state.analytics_cache


def get_metrics(request: Request) -> TaskMetrics:
    return request.app.state.metrics


def get_task_service(
    db: Session = Depends(get_db),
    cache: AnalyticsCache = Depends(get_analytics_cache),
    metrics: TaskMetrics = Depends(get_metrics),
) -> TaskService:
    return TaskService(TaskRepository(db), cache=cache, metrics=metrics)


def get_analytics_engine(
    db: Session = Depends(get_db),
    cache: AnalyticsCache = Depends(get_analytics_cache),
) -> AnalyticsEngine:
    return AnalyticsEngine(TaskRepository(db), cache)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(UserRepository(db))
