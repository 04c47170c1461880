# src/taskminder/tasks/task_store.py

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..core.errors import AuthorizationError, ServiceError, TaskminderError, ValidationError
from ..core.ports import ChangeListener, TaskService
from .task_models import ChangeEvent, ChangeKind, Task, compute_time_limit

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskStore:
    """
    Canonical in-memory collection of the current owner's tasks.

    Rules:
    - local mutations are applied only after the data service acknowledged them
      (no optimistic updates, nothing to roll back on failure)
    - remote change events are merged in arrival order, last applied wins
    - the collection is newest-first, like the service query
    - feed events that arrive while load() is fetching are held back and
      replayed on top of the fetched list

    Listeners registered with add_listener() see every change that actually
    altered the collection, whether it came from a local call or from the feed.
    """

    def __init__(self, service: TaskService, *, clock: Callable[[], float] = time.time) -> None:
        self._service = service
        self._clock = clock
        self._owner: str | None = None
        self._tasks: list[Task] = []
        self._listeners: list[ChangeListener] = []
        self._held_back: list[ChangeEvent] = []

        self.loading = False
        self.last_error: TaskminderError | None = None

    # ---- read-only view ----

    @property
    def owner(self) -> str | None:
        return self._owner

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def get(self, task_id: str) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def __len__(self) -> int:
        return len(self._tasks)

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ---- low-level helpers ----

    def _emit(self, event: ChangeEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("TaskStore listener failed kind=%s id=%s", event.kind, event.record.id)

    def _index_of(self, task_id: str) -> int | None:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        return None

    def _replace(self, task: Task) -> bool:
        idx = self._index_of(task.id)
        if idx is None:
            return False
        self._tasks[idx] = task
        self._emit(ChangeEvent(ChangeKind.UPDATE, task))
        return True

    def _require_owner(self) -> str:
        if self._owner is None:
            raise AuthorizationError("No user is signed in")
        return self._owner

    async def _call(self, op: str, call: Awaitable[T]) -> T:
        """
        Await a data service call, normalising failures.

        TaskminderError subclasses pass through untouched; anything else is
        wrapped into ServiceError so callers only deal with one error family.
        """
        try:
            return await call
        except TaskminderError as exc:
            self.last_error = exc
            logger.exception("TaskStore %s failed owner=%s", op, self._owner)
            raise
        except Exception as exc:
            err = ServiceError(f"{op} failed: {exc}")
            self.last_error = err
            logger.exception("TaskStore %s failed owner=%s", op, self._owner)
            raise err from exc

    # ---- public API ----

    async def load(self, owner: str) -> list[Task]:
        """
        Replace the local collection with `owner`'s tasks.

        On failure the collection is left empty and the error is re-raised;
        there is no automatic retry.
        """
        self._owner = owner
        self._tasks = []
        self._held_back = []
        self.loading = True
        self.last_error = None
        try:
            fetched = await self._call("load", self._service.fetch_tasks(owner))
        except TaskminderError:
            self._held_back = []
            raise
        finally:
            self.loading = False

        self._tasks = list(fetched)
        held_back, self._held_back = self._held_back, []
        for event in held_back:
            self._apply_remote(event)
        logger.info(
            "TaskStore loaded owner=%s total=%d replayed=%d", owner, len(self._tasks), len(held_back)
        )
        return list(self._tasks)

    def clear(self) -> None:
        """Forget the owner and the collection (sign-out / owner switch)."""
        self._owner = None
        self._tasks = []
        self._held_back = []
        self.last_error = None

    async def add(self, owner: str, title: str, duration_minutes: int | None = None) -> Task:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Task title is required")
        if duration_minutes is not None and int(duration_minutes) < 1:
            raise ValidationError("Time limit must be at least 1 minute")
        if owner != self._require_owner():
            raise AuthorizationError(f"Cannot add a task for another user ({owner})")

        now = self._clock()
        created = await self._call(
            "add",
            self._service.insert_task(
                owner=owner,
                title=title,
                created_at=now,
                time_limit=compute_time_limit(now, duration_minutes),
            ),
        )

        # The change feed may already have echoed the insert.
        if self._index_of(created.id) is None:
            self._tasks.insert(0, created)
            self._emit(ChangeEvent(ChangeKind.INSERT, created))
        else:
            self._replace(created)

        logger.info("Task added id=%s time_limit=%s", created.id, created.time_limit)
        return created

    async def toggle_completed(self, task_id: str) -> Task | None:
        """Flip `completed`. Unknown ids are a no-op (no service call, returns None)."""
        task = self.get(task_id)
        if task is None:
            logger.debug("toggle_completed: unknown task id=%s", task_id)
            return None

        owner = self._require_owner()
        updated = await self._call(
            "toggle",
            self._service.update_task(task_id, owner=owner, completed=not task.completed),
        )
        self._replace(updated)
        logger.info("Task %s completed=%s", task_id, updated.completed)
        return updated

    async def mark_expired(self, task_id: str) -> Task:
        """
        Persist has_expired=True.

        Failures are re-raised for the caller to log; a missed flag is
        corrected by the next load().
        """
        owner = self._require_owner()
        updated = await self._call(
            "mark_expired",
            self._service.update_task(task_id, owner=owner, has_expired=True),
        )
        self._replace(updated)
        logger.info("Task %s -> expired", task_id)
        return updated

    async def delete(self, task_id: str) -> None:
        owner = self._require_owner()
        await self._call("delete", self._service.delete_task(task_id, owner=owner))

        idx = self._index_of(task_id)
        if idx is not None:
            removed = self._tasks.pop(idx)
            self._emit(ChangeEvent(ChangeKind.DELETE, removed))
        logger.info("Task deleted id=%s", task_id)

    def on_remote_change(self, event: ChangeEvent) -> bool:
        """
        Merge one change-feed event. Returns True if the collection changed.

        - insert: prepend unless the id is already present (echo of a local add)
        - update: replace the matching record; unknown ids are ignored
        - delete: drop the matching record; unknown ids are ignored
        Events for another owner are ignored.
        """
        record = event.record
        if self._owner is None or (record.owner and record.owner != self._owner):
            logger.debug("Ignoring change for foreign owner id=%s", record.id)
            return False

        if self.loading:
            logger.debug("Holding back change kind=%s id=%s until load completes", event.kind, record.id)
            self._held_back.append(event)
            return False

        return self._apply_remote(event)

    def _apply_remote(self, event: ChangeEvent) -> bool:
        record = event.record
        if event.kind == ChangeKind.INSERT:
            if self._index_of(record.id) is not None:
                return False
            self._tasks.insert(0, record)
            self._emit(event)
            return True

        if event.kind == ChangeKind.UPDATE:
            return self._replace(record)

        if event.kind == ChangeKind.DELETE:
            idx = self._index_of(record.id)
            if idx is None:
                return False
            removed = self._tasks.pop(idx)
            self._emit(ChangeEvent(ChangeKind.DELETE, removed))
            return True

        logger.warning("Unknown change kind=%s id=%s", event.kind, record.id)
        return False
