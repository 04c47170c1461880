# src/taskminder/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store, the expiration monitor and the session depend on Protocols
instead of concrete implementations. The data service and the identity
provider are external collaborators; the SQLite backend and the local identity
provider shipped here are just one way to satisfy them (tests use fakes).
"""

from collections.abc import Callable
from typing import Any, Awaitable, Protocol

from ..notify.notification_models import NotificationKind
from ..tasks.task_models import ChangeEvent, Task

ChangeListener = Callable[[ChangeEvent], None]
AuthListener = Callable[[str | None], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class TaskService(Protocol):
    """
    Remote "tasks" collection scoped by owner.

    Every call may fail with ServiceError or AuthorizationError.
    """

    def fetch_tasks(self, owner: str) -> Awaitable[list[Task]]:
        """All tasks of `owner`, newest first (created_at descending)."""
        ...

    def insert_task(
            self,
            *,
            owner: str,
            title: str,
            created_at: float,
            time_limit: float | None,
    ) -> Awaitable[Task]: ...

    def update_task(
            self,
            task_id: str,
            *,
            owner: str,
            completed: bool | None = None,
            has_expired: bool | None = None,
    ) -> Awaitable[Task]: ...

    def delete_task(self, task_id: str, *, owner: str) -> Awaitable[None]: ...

    def subscribe(self, owner: str, listener: ChangeListener) -> Subscription: ...


class IdentityProvider(Protocol):
    def current_user(self) -> str | None: ...
    def sign_in(self, user_id: str) -> Awaitable[str]: ...
    def sign_out(self) -> Awaitable[None]: ...
    def refresh_session(self) -> Awaitable[str | None]: ...
    def on_auth_state_change(self, listener: AuthListener) -> Subscription: ...


class NotificationSink(Protocol):
    """Transient, non-blocking notification channel (auto-dismissing UI element)."""
    def notify(self, message: str, kind: NotificationKind = NotificationKind.INFO) -> Any: ...


class AlertSink(Protocol):
    """Blocking, synchronous alert channel. Returns once the alert has been shown."""
    def alert(self, message: str) -> None: ...
