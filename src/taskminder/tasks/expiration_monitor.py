# src/taskminder/tasks/expiration_monitor.py

from __future__ import annotations

"""
Expiration monitor.

A single polling loop (one shared clock, no per-task timers) that:
- reads the current snapshot of the TaskStore on every tick,
- picks tasks whose time limit has been reached while still open,
- fires each one exactly once: transient notification + blocking alert,
- asks the store to persist has_expired (fire-and-forget, logged on failure).

The monitor never mutates the collection itself; it only calls
TaskStore.mark_expired(). Its own handled-id set guards against double firing
while the persisted flag is still in flight (or failed to persist).
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable

from ..core.ports import AlertSink, NotificationSink
from ..notify.notification_models import NotificationKind
from .task_models import ChangeEvent, ChangeKind, Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 1.0


def expiration_message(task: Task) -> str:
    return f'Time\'s up! Your task "{task.title}" has expired.'


class ExpirationMonitor:
    def __init__(
            self,
            store: TaskStore,
            notifier: NotificationSink,
            alert: AlertSink,
            *,
            interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
            clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._alert = alert
        self._interval = max(0.01, float(interval_seconds))
        self._clock = clock

        self._handled: set[str] = set()
        self._in_flight: set[asyncio.Task[None]] = set()
        self._runner: asyncio.Task[None] | None = None
        self._remove_listener: Callable[[], None] | None = store.add_listener(self._on_store_change)

    @property
    def handled_ids(self) -> frozenset[str]:
        return frozenset(self._handled)

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def forget(self, task_id: str) -> None:
        self._handled.discard(task_id)

    def _on_store_change(self, event: ChangeEvent) -> None:
        if event.kind == ChangeKind.DELETE:
            self.forget(event.record.id)

    # ---- one tick ----

    def check_once(self, now_ts: float | None = None) -> list[Task]:
        """
        Run one expiration pass over the store snapshot.

        Returns the tasks that fired on this tick. Must be called from inside a
        running event loop (persistence is scheduled as a background task).
        """
        now = self._clock() if now_ts is None else float(now_ts)
        fired: list[Task] = []

        for task in self._store.tasks:
            if not task.is_monitored or not task.is_due(now):
                continue
            if task.id in self._handled:
                continue

            # Record before persisting so the next tick cannot fire again.
            self._handled.add(task.id)
            fired.append(task)

            message = expiration_message(task)
            logger.info("Task %s expired (time_limit=%s now=%s)", task.id, task.time_limit, now)

            try:
                self._notifier.notify(message, NotificationKind.EXPIRED)
            except Exception:
                logger.exception("Expiration notification failed task_id=%s", task.id)

            try:
                self._alert.alert(message)
            except Exception:
                logger.exception("Expiration alert failed task_id=%s", task.id)

            pending = asyncio.get_running_loop().create_task(self._persist_expired(task.id))
            self._in_flight.add(pending)
            pending.add_done_callback(self._in_flight.discard)

        return fired

    async def _persist_expired(self, task_id: str) -> None:
        try:
            await self._store.mark_expired(task_id)
        except Exception:
            # The handled set already blocks re-notification; next load() fixes the flag.
            logger.warning("mark_expired failed task_id=%s; will self-correct on reload", task_id)

    # ---- loop lifecycle ----

    async def run(self) -> None:
        """
        Poll forever. To stop, cancel the coroutine/task (or call stop()).
        """
        logger.debug("ExpirationMonitor loop started interval=%.2fs", self._interval)
        while True:
            try:
                self.check_once()
            except Exception:
                logger.exception("Expiration check failed")
            await asyncio.sleep(self._interval)

    def start(self) -> asyncio.Task[None]:
        if self.running:
            assert self._runner is not None
            return self._runner
        self._runner = asyncio.get_running_loop().create_task(self.run())
        return self._runner

    async def drain(self) -> None:
        """Wait for every in-flight mark_expired call to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def stop(self) -> None:
        """Cancel the polling loop, detach from the store, let pending writes finish."""
        runner, self._runner = self._runner, None
        if runner is not None:
            runner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await runner

        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None

        await self.drain()
        logger.debug("ExpirationMonitor stopped handled=%d", len(self._handled))
