# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskminder.config import Settings


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for suffix in (
        "APP_NAME",
        "DATA_DIR",
        "TASKS_DB_PATH",
        "DEFAULT_USER",
        "POLL_INTERVAL_SECONDS",
        "NOTIFICATION_DISMISS_SECONDS",
        "CONSOLE_ENABLED",
    ):
        monkeypatch.delenv(f"TASKMINDER_{suffix}", raising=False)

    s = Settings.from_env()

    assert s.app_name == "taskminder"
    assert s.console_enabled is True
    assert s.default_user is None
    assert s.data_dir == Path(".local/taskminder")
    assert s.tasks_db_path == Path(".local/taskminder") / "tasks.sqlite3"
    assert s.poll_interval_seconds == 1.0
    assert s.notification_dismiss_seconds == 5.0


def test_settings_from_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TASKMINDER_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("TASKMINDER_TASKS_DB_PATH", raising=False)
    monkeypatch.setenv("TASKMINDER_DEFAULT_USER", "  alice ")
    monkeypatch.setenv("TASKMINDER_CONSOLE_ENABLED", "off")
    monkeypatch.setenv("TASKMINDER_POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("TASKMINDER_NOTIFICATION_DISMISS_SECONDS", "not-a-number")

    s = Settings.from_env()

    assert s.default_user == "alice"
    assert s.console_enabled is False
    assert s.tasks_db_path == tmp_path / "tasks.sqlite3"
    assert s.poll_interval_seconds == 0.5
    assert s.notification_dismiss_seconds == 5.0


def test_non_positive_poll_interval_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKMINDER_POLL_INTERVAL_SECONDS", "0")
    assert Settings.from_env().poll_interval_seconds == 1.0
