# src/taskminder/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

SECONDS_PER_MINUTE = 60


class ChangeKind(StrEnum):
    """Kind of a change-feed event delivered by the data service."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


def compute_time_limit(created_at: float, duration_minutes: int | None) -> float | None:
    """Absolute deadline for a task created at `created_at`, or None without a duration."""
    if duration_minutes is None:
        return None
    return float(created_at) + int(duration_minutes) * SECONDS_PER_MINUTE


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    owner: str
    title: str
    created_at: float
    time_limit: float | None = None

    completed: bool = False
    has_expired: bool = False

    @property
    def is_monitored(self) -> bool:
        """True while an expiration check still applies to this task."""
        return self.time_limit is not None and not self.completed and not self.has_expired

    def is_due(self, now_ts: float) -> bool:
        # A task exactly at its deadline counts as expired.
        return self.time_limit is not None and now_ts >= self.time_limit

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Task:
        time_limit = record.get("time_limit")
        return cls(
            id=str(record["id"]),
            owner=str(record["owner"]),
            title=str(record.get("title") or ""),
            created_at=float(record.get("created_at") or 0.0),
            time_limit=float(time_limit) if time_limit is not None else None,
            completed=bool(record.get("completed", False)),
            has_expired=bool(record.get("has_expired", False)),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner": self.owner,
            "title": self.title,
            "created_at": self.created_at,
            "time_limit": self.time_limit,
            "completed": self.completed,
            "has_expired": self.has_expired,
        }


@dataclass(slots=True, frozen=True)
class ChangeEvent:
    """
    One entry of the per-owner change feed.

    For DELETE events only `record.id` is meaningful to consumers.
    """

    kind: ChangeKind
    record: Task
