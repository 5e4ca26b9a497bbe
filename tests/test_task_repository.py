"""Tests for TaskRepository CRUD operations."""

import pytest
from datetime import datetime, timedelta
import uuid

from taskmanager.models.task import Task, TaskFilters, TaskStatus, TaskPriority


class TestTaskRepository:
    """Test TaskRepository CRUD operations."""

    def test_create_task(self, task_repository, sample_task, test_user_id):
        """Test creating a task."""
        created = task_repository.create(sample_task)

        assert created.id == sample_task.id
        assert created.title == sample_task.title
        assert created.status == "pending"
        assert created.user_id == test_user_id

    def test_get_task_by_id(self, task_repository, sample_task):
        """Test retrieving a task by ID."""
        created = task_repository.create(sample_task)
        retrieved = task_repository.get_by_id(created.id)

        assert retrieved is not None
        assert retrieved.id == created.id
        assert retrieved.title == created.title

    def test_get_nonexistent_task(self, task_repository):
        """Test retrieving a nonexistent task returns None."""
        assert task_repository.get_by_id("nonexistent-id") is None

    def test_get_all_scoped_to_user(self, make_task, task_repository, test_user_id, other_user_id):
        make_task(title="Mine 1")
        make_task(title="Mine 2")
        make_task(title="Theirs", user_id=other_user_id)

        tasks = task_repository.get_all(TaskFilters(user_id=test_user_id))
        assert sorted(t.title for t in tasks) == ["Mine 1", "Mine 2"]

    def test_get_all_ordering(self, make_task, task_repository, test_user_id):
        """Due date ascending, then priority high first, then newest first."""
        now = datetime.utcnow()
        due = now + timedelta(days=2)
        make_task(title="later", due_date=now + timedelta(days=5), priority=TaskPriority.HIGH)
        make_task(title="low", due_date=due, priority=TaskPriority.LOW)
        make_task(title="high-old", due_date=due, priority=TaskPriority.HIGH, created_at=now - timedelta(hours=1))
        make_task(title="high-new", due_date=due, priority=TaskPriority.HIGH, created_at=now)
        make_task(title="medium", due_date=due, priority=TaskPriority.MEDIUM)

        titles = [t.title for t in task_repository.get_all(TaskFilters(user_id=test_user_id))]
        assert titles == ["high-new", "high-old", "medium", "low", "later"]

    def test_get_all_filters_status_and_priority(self, make_task, task_repository, test_user_id):
        make_task(title="a", status=TaskStatus.DONE, priority=TaskPriority.HIGH)
        make_task(title="b", status=TaskStatus.DONE, priority=TaskPriority.LOW)
        make_task(title="c", status=TaskStatus.PENDING, priority=TaskPriority.HIGH)

        done = task_repository.get_all(TaskFilters(user_id=test_user_id, status=TaskStatus.DONE))
        assert sorted(t.title for t in done) == ["a", "b"]

        done_high = task_repository.get_all(
            TaskFilters(user_id=test_user_id, status="done", priority="high")
        )
        assert [t.title for t in done_high] == ["a"]

    def test_get_all_filters_same_day_due_date(self, make_task, task_repository, test_user_id):
        day = datetime(2030, 3, 10)
        make_task(title="morning", due_date=day.replace(hour=8))
        make_task(title="night", due_date=day.replace(hour=23, minute=59))
        make_task(title="next day", due_date=day + timedelta(days=1))

        tasks = task_repository.get_all(TaskFilters(user_id=test_user_id, due_date=day.replace(hour=12)))
        assert [t.title for t in tasks] == ["morning", "night"]

    def test_get_all_search_is_case_insensitive(self, make_task, task_repository, test_user_id):
        make_task(title="Buy MILK", description="")
        make_task(title="Call mom", description="about the milk order")
        make_task(title="Write report", description="quarterly")

        tasks = task_repository.get_all(TaskFilters(user_id=test_user_id, search="milk"))
        assert sorted(t.title for t in tasks) == ["Buy MILK", "Call mom"]

    def test_update_task(self, task_repository, sample_task):
        created = task_repository.create(sample_task)
        completed_at = datetime.utcnow()

        updated = task_repository.update(
            created.model_copy(update={"title": "Renamed", "status": "done", "completed_at": completed_at})
        )

        assert updated.title == "Renamed"
        assert updated.status == "done"
        assert updated.completed_at == completed_at
        assert task_repository.get_by_id(created.id).title == "Renamed"

    def test_update_requires_matching_owner(self, task_repository, sample_task, other_user_id):
        created = task_repository.create(sample_task)

        with pytest.raises(ValueError):
            task_repository.update(created.model_copy(update={"user_id": other_user_id}))

    def test_delete_task(self, task_repository, sample_task):
        created = task_repository.create(sample_task)

        assert task_repository.delete(created.id) is True
        assert task_repository.get_by_id(created.id) is None
        assert task_repository.delete(created.id) is False

    def test_get_due_before_spans_users(self, make_task, task_repository, other_user_id):
        now = datetime.utcnow()
        make_task(title="old mine", due_date=now - timedelta(days=10))
        make_task(title="old theirs", due_date=now - timedelta(days=9), user_id=other_user_id)
        make_task(title="recent", due_date=now - timedelta(days=1))

        expired = task_repository.get_due_before(now - timedelta(days=7))
        assert [t.title for t in expired] == ["old mine", "old theirs"]

    def test_get_active_user_ids(self, make_task, task_repository, test_user_id, other_user_id):
        assert task_repository.get_active_user_ids() == []

        make_task()
        make_task()
        make_task(user_id=other_user_id)

        assert sorted(task_repository.get_active_user_ids()) == sorted([test_user_id, other_user_id])

    def test_create_for_unknown_user_fails(self, task_repository, sample_task_base):
        task = Task(**{**sample_task_base, "id": str(uuid.uuid4()), "user_id": "ghost"})

        with pytest.raises(Exception):
            task_repository.create(task)
