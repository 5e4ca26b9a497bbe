"""Pytest fixtures and configuration for task manager tests."""

import os

# Configuration is read at import time, so set it before importing the app.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["BACKGROUND_WORKER_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

import pytest
import uuid
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from taskmanager.auth.jwt import create_access_token
from taskmanager.auth.passwords import hash_password
from taskmanager.cache.analytics_cache import InMemoryAnalyticsCache
from taskmanager.database.database import Base
from taskmanager.database.models import UserDB
from taskmanager.database.repository import TaskRepository
from taskmanager.database.user_repository import UserRepository
from taskmanager.models.task import Task, TaskStatus, TaskPriority
from taskmanager.services.task_service import TaskService


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "password123"


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def other_user_id():
    """A second user for ownership checks."""
    return "other-user-456"


@pytest.fixture(scope="function")
def session_factory(test_user_id, other_user_id):
    """Session factory over a fresh in-memory database with two users.

    StaticPool keeps a single connection so every session (including the
    ones opened by the background refresher) sees the same database.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Users are required for the tasks.user_id foreign key
    seed = TestingSessionLocal()
    now = datetime.utcnow()
    password_hash = hash_password(TEST_PASSWORD)
    for user_id, email in ((test_user_id, "test@example.com"), (other_user_id, "other@example.com")):
        seed.add(UserDB(id=user_id, email=email, password_hash=password_hash, created_at=now, updated_at=now))
    seed.commit()
    seed.close()

    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session(session_factory):
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def task_repository(db_session: Session):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session)


@pytest.fixture
def user_repository(db_session: Session):
    return UserRepository(db_session)


@pytest.fixture
def analytics_cache():
    return InMemoryAnalyticsCache()


@pytest.fixture
def task_service(task_repository, analytics_cache):
    return TaskService(task_repository, cache=analytics_cache)


@pytest.fixture
def sample_task_base(test_user_id):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    now = datetime.utcnow()
    return {
        "id": str(uuid.uuid4()),
        "user_id": test_user_id,
        "title": "Test Task",
        "description": "Test description",
        "status": TaskStatus.PENDING,
        "priority": TaskPriority.MEDIUM,
        "due_date": now + timedelta(days=1),
        "created_at": now,
        "updated_at": now,
        "completed_at": None,
    }


@pytest.fixture
def sample_task(sample_task_base):
    """Create a sample Task object for testing."""
    return Task(**sample_task_base)


@pytest.fixture
def make_task(task_repository, sample_task_base):
    """Persist a task built from sample_task_base with overrides."""
    def _make(**overrides):
        data = {**sample_task_base, "id": str(uuid.uuid4()), **overrides}
        return task_repository.create(Task(**data))
    return _make


@pytest.fixture
def auth_headers(test_user_id):
    return {"Authorization": f"Bearer {create_access_token(test_user_id)}"}


@pytest.fixture
def other_auth_headers(other_user_id):
    return {"Authorization": f"Bearer {create_access_token(other_user_id)}"}


@pytest.fixture
def test_client(db_session: Session):
    """Create a FastAPI test client with overridden database dependency."""
    from taskmanager.api.app import app
    from taskmanager.database.database import get_db

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
