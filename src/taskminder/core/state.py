# src/taskminder/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..notify.notification_center import NotificationCenter
from .ports import AlertSink, IdentityProvider, TaskService
from .session import TaskSession


@dataclass
class AppState:
    # Settings live on the state for easy access from commands/connectors.
    settings: object

    service: TaskService
    identity: IdentityProvider
    notifications: NotificationCenter
    alert: AlertSink
    session: TaskSession
