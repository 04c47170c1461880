# tests/test_task_api.py

from __future__ import annotations

import pytest

from taskminder.core.errors import ValidationError
from taskminder.tasks.task_api import format_time_remaining, partition_tasks, validate_duration, validate_title
from taskminder.tasks.task_models import Task, compute_time_limit

from .fakes import make_task


def test_validate_title_trims_and_rejects_blank() -> None:
    assert validate_title("  Buy milk  ") == "Buy milk"
    for raw in ("", "   ", None):
        with pytest.raises(ValidationError):
            validate_title(raw)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, None), ("", None), ("  ", None), ("5", 5), (" 12 ", 12), (1, 1)],
)
def test_validate_duration_accepts(raw, expected) -> None:
    assert validate_duration(raw) == expected


@pytest.mark.parametrize("raw", ["0", "-3", "abc", "1.5", 0, 2.5, True])
def test_validate_duration_rejects(raw) -> None:
    with pytest.raises(ValidationError):
        validate_duration(raw)


def test_format_time_remaining() -> None:
    now = 1000.0
    assert format_time_remaining(make_task("a"), now) is None
    assert format_time_remaining(make_task("a", time_limit=now), now) == "Time expired!"
    assert format_time_remaining(make_task("a", time_limit=now - 5), now) == "Time expired!"
    assert format_time_remaining(make_task("a", time_limit=now + 59.9), now) == "59s"
    assert format_time_remaining(make_task("a", time_limit=now + 240), now) == "4m 0s"
    assert format_time_remaining(make_task("a", time_limit=now + 3723), now) == "1h 2m 3s"


def test_partition_tasks_preserves_order() -> None:
    tasks = [
        make_task("a"),
        make_task("b", completed=True),
        make_task("c"),
        make_task("d", completed=True, has_expired=True),
    ]
    active, completed = partition_tasks(tasks)
    assert [t.id for t in active] == ["a", "c"]
    assert [t.id for t in completed] == ["b", "d"]


def test_task_record_conversion_and_due_check() -> None:
    record = {"id": 7, "owner": "alice", "title": "Read", "created_at": "100", "time_limit": 400}
    task = Task.from_record(record)

    assert task.id == "7"
    assert task.time_limit == 400.0
    assert task.completed is False and task.has_expired is False
    assert task.is_monitored
    assert not task.is_due(399.999)
    assert task.is_due(400.0)
    assert Task.from_record(task.to_record()) == task

    assert compute_time_limit(100.0, None) is None
    assert compute_time_limit(100.0, 5) == 400.0
