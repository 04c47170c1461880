# src/taskminder/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (storage/identity/notifications/session).
"""

from __future__ import annotations

import logging

from ..auth.identity import LocalIdentityProvider
from ..backend.sqlite_service import SqliteTaskService
from ..config import get_settings
from ..connectors.console_connector import ConsoleAlertSink
from ..core.ports import AlertSink
from ..core.session import TaskSession
from ..core.state import AppState
from ..notify.notification_center import NotificationCenter

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, alert: AlertSink | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    service = SqliteTaskService(settings.tasks_db_path)
    identity = LocalIdentityProvider(default_user=settings.default_user)
    notifications = NotificationCenter(dismiss_after_seconds=settings.notification_dismiss_seconds)
    alert_sink: AlertSink = alert if alert is not None else ConsoleAlertSink()

    session = TaskSession(
        service=service,
        identity=identity,
        notifier=notifications,
        alert=alert_sink,
        poll_interval_seconds=settings.poll_interval_seconds,
    )

    logger.debug("AppState wired db=%s user=%s", settings.tasks_db_path, settings.default_user)
    return AppState(
        settings=settings,
        service=service,
        identity=identity,
        notifications=notifications,
        alert=alert_sink,
        session=session,
    )
