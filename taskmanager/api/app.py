"""FastAPI web application for the task manager."""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from taskmanager.api.auth_models import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from taskmanager.api.dependencies import (
    get_analytics_engine,
    get_auth_service,
    get_metrics,
    get_task_service,
)
from taskmanager.api.task_models import ImportResponse, TaskCreateRequest, TaskImportItem
from taskmanager.auth.dependencies import get_current_user
from taskmanager.cache.analytics_cache import build_analytics_cache
from taskmanager.database.database import SessionLocal, init_db
from taskmanager.engine.analytics import AnalyticsEngine
from taskmanager.metrics import TaskMetrics
from taskmanager.models.analytics import AnalyticsPeriod, AnalyticsSnapshot
from taskmanager.models.constants import DEFAULT_ANALYTICS_PERIOD
from taskmanager.models.task import Task, TaskFilters, TaskPriority, TaskStatus, TaskUpdate, to_naive_utc
from taskmanager.models.user import User
from taskmanager.services.auth_service import (
    AuthService,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidPasswordError,
    UserExistsError,
)
from taskmanager.services.task_service import (
    AccessDeniedError,
    InvalidTaskDataError,
    TaskNotFoundError,
    TaskService,
)
from taskmanager.worker.background import BACKGROUND_WORKER_ENABLED, BackgroundRefresher

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

ERROR_STATUS_CODES = {
    InvalidTaskDataError: status.HTTP_400_BAD_REQUEST,
    InvalidEmailError: status.HTTP_400_BAD_REQUEST,
    InvalidPasswordError: status.HTTP_400_BAD_REQUEST,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    AccessDeniedError: status.HTTP_403_FORBIDDEN,
    TaskNotFoundError: status.HTTP_404_NOT_FOUND,
    UserExistsError: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    app.state.analytics_cache = build_analytics_cache()
    app.state.metrics = TaskMetrics()

    refresher = None
    if BACKGROUND_WORKER_ENABLED:
        refresher = BackgroundRefresher(SessionLocal, app.state.analytics_cache, metrics=app.state.metrics)
        refresher.start()
    app.state.refresher = refresher

    try:
        yield
    finally:
        if refresher:
            refresher.stop()


# Initialize FastAPI app
app = FastAPI(
    title="Task Manager API",
    description="Multi-user task manager with cached analytics",
    version=API_VERSION,
    lifespan=lifespan,
)


@app.middleware("http")
async def record_request_metrics(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)

    metrics: Optional[TaskMetrics] = getattr(request.app.state, "metrics", None)
    if metrics:
        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")
        metrics.observe_request(request.method, endpoint, response.status_code, time.perf_counter() - started)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query parameters are client errors (400)."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


def _http_error(e: Exception, action: str) -> HTTPException:
    """Map a service exception to an HTTPException."""
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(e, error_type):
            return HTTPException(status_code=status_code, detail=str(e))
    logger.exception(f"Failed to {action}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to {action}")


def _parse_due_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid due_date")


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": API_VERSION}


@app.get("/metrics")
def metrics_endpoint(metrics: TaskMetrics = Depends(get_metrics)):
    """Prometheus scrape endpoint."""
    return Response(content=metrics.render(), media_type=metrics.content_type)


@app.post("/api/auth/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Create an account."""
    try:
        user = auth_service.register(body.email, body.password)
    except Exception as e:
        raise _http_error(e, "register user")
    return UserResponse(id=user.id, email=user.email, created_at=user.created_at)


@app.post("/api/auth/login", response_model=TokenResponse)
def login(body: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Exchange email and password for an access token."""
    try:
        token = auth_service.login(body.email, body.password)
    except Exception as e:
        raise _http_error(e, "log in")
    return TokenResponse(token=token)


@app.post("/api/tasks", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreateRequest,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
):
    """Create a task owned by the current user."""
    try:
        return task_service.create_task(
            user_id=current_user.id,
            title=body.title,
            description=body.description,
            status=body.status,
            priority=body.priority,
            due_date=body.due_date,
        )
    except Exception as e:
        raise _http_error(e, "create task")


@app.get("/api/tasks", response_model=List[Task])
def list_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = None,
    due_date: Optional[str] = Query(None, description="ISO date; matches tasks due that day"),
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
):
    """List the current user's tasks, optionally filtered."""
    filters = TaskFilters(
        status=status_filter,
        priority=priority,
        due_date=_parse_due_date(due_date),
        search=search or None,
    )
    try:
        return task_service.list_tasks(current_user.id, filters)
    except Exception as e:
        raise _http_error(e, "list tasks")


@app.get("/api/tasks/analytics", response_model=AnalyticsSnapshot)
def get_analytics(
    period: str = Query(DEFAULT_ANALYTICS_PERIOD.value, description="day, week or month"),
    current_user: User = Depends(get_current_user),
    analytics_engine: AnalyticsEngine = Depends(get_analytics_engine),
):
    """Analytics for the current user, served from cache when fresh."""
    try:
        analytics_period = AnalyticsPeriod(period)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid period")
    try:
        return analytics_engine.get_analytics(current_user.id, analytics_period)
    except Exception as e:
        raise _http_error(e, "compute analytics")


@app.get("/api/tasks/export", response_model=List[Task])
def export_tasks(
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
):
    """Export all of the current user's tasks."""
    try:
        return task_service.export_tasks(current_user.id)
    except Exception as e:
        raise _http_error(e, "export tasks")


@app.post("/api/tasks/import", response_model=ImportResponse, status_code=status.HTTP_201_CREATED)
def import_tasks(
    items: List[TaskImportItem],
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
):
    """Import tasks as new tasks owned by the current user."""
    try:
        tasks = task_service.import_tasks(
            current_user.id,
            [item.model_dump(exclude_none=True) for item in items],
        )
    except Exception as e:
        raise _http_error(e, "import tasks")
    return ImportResponse(imported_count=len(tasks), tasks=tasks)


@app.get("/api/tasks/{task_id}", response_model=Task)
def get_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
):
    """Get one of the current user's tasks."""
    try:
        return task_service.get_task(current_user.id, task_id)
    except Exception as e:
        raise _http_error(e, "get task")


@app.put("/api/tasks/{task_id}", response_model=Task)
def update_task(
    task_id: str,
    body: TaskUpdate,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
):
    """Partially update one of the current user's tasks."""
    try:
        return task_service.update_task(current_user.id, task_id, body)
    except Exception as e:
        raise _http_error(e, "update task")


@app.delete("/api/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    task_service: TaskService = Depends(get_task_service),
):
    """Delete one of the current user's tasks."""
    try:
        task_service.delete_task(current_user.id, task_id)
    except Exception as e:
        raise _http_error(e, "delete task")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
