# src/taskminder/tasks/task_api.py

"""
Small high-level helpers used by the session and the console front-end.

- input validation that runs before anything reaches the TaskStore
- countdown formatting for task listings
- splitting a task list into active / completed sections
"""

from __future__ import annotations

from collections.abc import Iterable

from ..core.errors import ValidationError
from .task_models import Task

MIN_DURATION_MINUTES = 1


def validate_title(raw: str | None) -> str:
    title = (raw or "").strip()
    if not title:
        raise ValidationError("Task title is required")
    return title


def validate_duration(raw: int | str | None) -> int | None:
    """
    Parse an optional time limit in minutes.

    None or an empty string means "no time limit".
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    if isinstance(raw, bool):
        raise ValidationError("Time limit must be a whole number of minutes")
    try:
        minutes = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Time limit must be a whole number of minutes (got {raw!r})") from None
    if isinstance(raw, float) and raw != minutes:
        raise ValidationError("Time limit must be a whole number of minutes")
    if minutes < MIN_DURATION_MINUTES:
        raise ValidationError(f"Time limit must be at least {MIN_DURATION_MINUTES} minute")
    return minutes


def format_time_remaining(task: Task, now_ts: float) -> str | None:
    """
    Human countdown for a time-limited task, or None without a time limit.

    Examples: "1h 2m 3s", "4m 0s", "59s", "Time expired!".
    """
    if task.time_limit is None:
        return None

    remaining = task.time_limit - now_ts
    if remaining <= 0:
        return "Time expired!"

    total = int(remaining)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def partition_tasks(tasks: Iterable[Task]) -> tuple[list[Task], list[Task]]:
    active: list[Task] = []
    completed: list[Task] = []
    for task in tasks:
        (completed if task.completed else active).append(task)
    return active, completed
