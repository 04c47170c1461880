# src/taskminder/core/session.py

"""
User-facing task session.

This is the operation boundary of the app:
- validates input before anything reaches the TaskStore,
- turns ServiceError / AuthorizationError into error notifications,
- owns the per-owner lifecycle (load -> change feed -> expiration monitor)
  and rebuilds it whenever the signed-in user changes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..notify.notification_models import NotificationKind
from ..tasks.expiration_monitor import DEFAULT_POLL_INTERVAL_SECONDS, ExpirationMonitor
from ..tasks.task_api import partition_tasks, validate_duration, validate_title
from ..tasks.task_models import Task
from ..tasks.task_store import TaskStore
from .errors import AuthorizationError, TaskminderError, describe_error
from .ports import AlertSink, IdentityProvider, NotificationSink, Subscription, TaskService

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class OperationResult:
    ok: bool
    task: Task | None = None
    error: TaskminderError | None = None


def completion_message(task: Task) -> str:
    return f'Great job! You completed "{task.title}"'


class TaskSession:
    def __init__(
        self,
        *,
        service: TaskService,
        identity: IdentityProvider,
        notifier: NotificationSink,
        alert: AlertSink,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._service = service
        self._identity = identity
        self._notifier = notifier
        self._alert = alert
        self._poll_interval = poll_interval_seconds
        self._clock = clock

        self.store = TaskStore(service, clock=clock)
        self.monitor: ExpirationMonitor | None = None
        self._feed: Subscription | None = None
        self._auth_sub: Subscription | None = None

        self._switch_lock = asyncio.Lock()
        self._pending_switches: set[asyncio.Task[None]] = set()

    # ---- read-only view ----

    @property
    def owner(self) -> str | None:
        return self.store.owner

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self.store.tasks

    @property
    def active_tasks(self) -> list[Task]:
        return partition_tasks(self.store.tasks)[0]

    @property
    def completed_tasks(self) -> list[Task]:
        return partition_tasks(self.store.tasks)[1]

    # ---- lifecycle ----

    async def start(self) -> None:
        if self._auth_sub is None:
            self._auth_sub = self._identity.on_auth_state_change(self._on_auth_change)
        await self.switch_owner(self._identity.current_user())

    def _on_auth_change(self, user: str | None) -> None:
        switch = asyncio.get_running_loop().create_task(self.switch_owner(user))
        self._pending_switches.add(switch)
        switch.add_done_callback(self._pending_switches.discard)

    async def settle(self) -> None:
        """Wait until every owner switch triggered by auth changes has completed."""
        while self._pending_switches:
            await asyncio.gather(*list(self._pending_switches), return_exceptions=True)

    async def switch_owner(self, owner: str | None) -> None:
        async with self._switch_lock:
            if owner is not None and owner == self.store.owner and self.monitor is not None:
                return
            await self._deactivate()
            if owner:
                await self._activate(owner)

    async def _activate(self, owner: str) -> None:
        logger.info("Activating task session owner=%s", owner)
        # Subscribe first; the store holds back events that arrive mid-fetch.
        self._feed = self._service.subscribe(owner, self.store.on_remote_change)
        try:
            await self.store.load(owner)
        except TaskminderError as exc:
            self._notify_error("load your tasks", exc)

        self.monitor = ExpirationMonitor(
            self.store,
            self._notifier,
            self._alert,
            interval_seconds=self._poll_interval,
            clock=self._clock,
        )
        self.monitor.start()

    async def _deactivate(self) -> None:
        monitor, self.monitor = self.monitor, None
        if monitor is not None:
            await monitor.stop()

        feed, self._feed = self._feed, None
        if feed is not None:
            try:
                feed.unsubscribe()
            except Exception:
                logger.exception("Change feed unsubscribe failed")

        if self.store.owner is not None:
            logger.info("Deactivating task session owner=%s", self.store.owner)
        self.store.clear()

    async def close(self) -> None:
        auth_sub, self._auth_sub = self._auth_sub, None
        if auth_sub is not None:
            auth_sub.unsubscribe()
        await self.settle()
        async with self._switch_lock:
            await self._deactivate()

        close = getattr(self._notifier, "close", None)
        if callable(close):
            close()

    # ---- helpers ----

    def _notify_error(self, action: str, exc: TaskminderError) -> None:
        logger.info("Operation failed (%s): %s", action, exc)
        try:
            self._notifier.notify(f"Could not {action}: {describe_error(exc)}", NotificationKind.ERROR)
        except Exception:
            logger.exception("Error notification failed")

    def _require_owner(self) -> str:
        owner = self.store.owner
        if owner is None:
            raise AuthorizationError("Please sign in first")
        return owner

    # ---- user-facing operations ----

    async def add_task(self, title: str | None, duration_minutes: int | str | None = None) -> OperationResult:
        try:
            clean_title = validate_title(title)
            minutes = validate_duration(duration_minutes)
            owner = self._require_owner()
            task = await self.store.add(owner, clean_title, minutes)
        except TaskminderError as exc:
            self._notify_error("add the task", exc)
            return OperationResult(ok=False, error=exc)
        return OperationResult(ok=True, task=task)

    async def toggle_completed(self, task_id: str) -> OperationResult:
        try:
            self._require_owner()
            task = await self.store.toggle_completed(task_id)
        except TaskminderError as exc:
            self._notify_error("update the task", exc)
            return OperationResult(ok=False, error=exc)

        if task is not None and task.completed:
            self._notifier.notify(completion_message(task), NotificationKind.SUCCESS)
        return OperationResult(ok=True, task=task)

    async def delete_task(self, task_id: str) -> OperationResult:
        existing = self.store.get(task_id)
        try:
            self._require_owner()
            await self.store.delete(task_id)
        except TaskminderError as exc:
            self._notify_error("delete the task", exc)
            return OperationResult(ok=False, error=exc)
        return OperationResult(ok=True, task=existing)

    async def reload(self) -> OperationResult:
        try:
            owner = self._require_owner()
            await self.store.load(owner)
        except TaskminderError as exc:
            self._notify_error("load your tasks", exc)
            return OperationResult(ok=False, error=exc)
        return OperationResult(ok=True)
