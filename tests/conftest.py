"""Pytest fixtures for task query tests."""

from datetime import date

import pytest

from taskql.models import TaskRecord


@pytest.fixture
def today():
    """Fixed clock for relative dates."""
    return lambda: date(2026, 2, 10)


@pytest.fixture
def task_dict():
    """Single task as a plain mapping."""
    return {
        "id": "t1",
        "name": "Write quarterly report",
        "status": "todo",
        "priority": "high",
        "due_at": "2026-02-05T09:00:00Z",
        "scheduled_at": "2026-02-01",
        "tags": ["#work", "#urgent"],
        "path": "daily/2026-02-01.md",
        "meta": {"owner": {"name": "Sam"}},
    }


@pytest.fixture
def sample_tasks():
    """Sample tasks covering statuses, priorities, dates and tags."""
    return [
        TaskRecord(
            id="a",
            name="Plan sprint",
            status="todo",
            priority="medium",
            due_at="2026-02-12T10:00:00Z",
            tags=["#work"],
            path="projects/sprint.md",
        ),
        TaskRecord(
            id="b",
            name="Pay rent",
            status="done",
            priority="highest",
            due_at="2026-02-01T00:00:00Z",
            tags=["#home"],
            path="daily/2026-02-01.md",
        ),
        TaskRecord(
            id="c",
            name="Fix login bug",
            status="todo",
            priority="high",
            due_at="2026-02-08T12:00:00Z",
            tags=["#work", "#urgent"],
            path="projects/app.md",
            depends_on=["a"],
        ),
        TaskRecord(
            id="d",
            name="Read a book",
            status="cancelled",
            tags=[],
            path="inbox.md",
        ),
        TaskRecord(
            id="e",
            name="Deploy release",
            status="todo",
            priority="low",
            tags=["#work"],
            path="projects/app.md",
            depends_on=["c"],
        ),
    ]
