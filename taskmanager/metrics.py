"""Prometheus metrics for the task manager.

Each `TaskMetrics` owns its own `CollectorRegistry`; the app creates one at
startup and hands it to the components that record into it.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client import CONTENT_TYPE_LATEST

NAMESPACE = "taskmanager"
REQUEST_DURATION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10)


class TaskMetrics:
    """Counters and histograms recorded by the API and task service."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.http_requests_total = Counter(
            "http_requests",
            "Total number of HTTP requests",
            ["method", "endpoint", "status"],
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            namespace=NAMESPACE,
            buckets=REQUEST_DURATION_BUCKETS,
            registry=self.registry,
        )
        self.tasks_created_total = Counter(
            "tasks_created",
            "Total number of created tasks",
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self.tasks_completed_total = Counter(
            "tasks_completed",
            "Total number of tasks moved to done",
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self.task_status_changes_total = Counter(
            "task_status_changes",
            "Task writes by resulting status",
            ["status"],
            namespace=NAMESPACE,
            registry=self.registry,
        )

    def observe_request(self, method: str, endpoint: str, status_code: int, duration_seconds: float) -> None:
        self.http_requests_total.labels(method, endpoint, str(status_code)).inc()
        self.http_request_duration.labels(method, endpoint).observe(duration_seconds)

    def render(self) -> bytes:
        """Text exposition of every metric in this registry."""
        return generate_latest(self.registry)
