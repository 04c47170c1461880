# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskminder.tasks.task_store import TaskStore

from .fakes import FakeAlert, FakeClock, FakeNotifier, FakeTaskService


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskminder-test",
        log_level="DEBUG",
        console_enabled=False,
        default_user=None,
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        # Long interval: tests drive expiration ticks explicitly.
        poll_interval_seconds=60.0,
        notification_dismiss_seconds=5.0,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def service() -> FakeTaskService:
    return FakeTaskService()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def alert() -> FakeAlert:
    return FakeAlert()


@pytest.fixture()
def store(service: FakeTaskService, clock: FakeClock) -> TaskStore:
    return TaskStore(service, clock=clock)
