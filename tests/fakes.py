# tests/fakes.py

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field, replace

from taskminder.core.errors import AuthorizationError, ServiceError
from taskminder.core.ports import ChangeListener
from taskminder.notify.notification_models import NotificationKind
from taskminder.tasks.task_models import ChangeEvent, ChangeKind, Task


class FakeClock:
    """Controllable wall clock (epoch seconds)."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@dataclass(slots=True)
class FakeNotifier:
    sent: list[tuple[str, NotificationKind]] = field(default_factory=list)

    def notify(self, message: str, kind: NotificationKind = NotificationKind.INFO) -> None:
        self.sent.append((message, kind))

    def of_kind(self, kind: NotificationKind) -> list[str]:
        return [m for m, k in self.sent if k == kind]


@dataclass(slots=True)
class FakeAlert:
    shown: list[str] = field(default_factory=list)

    def alert(self, message: str) -> None:
        self.shown.append(message)


class _FakeSubscription:
    def __init__(self, service: FakeTaskService, owner: str, listener: ChangeListener) -> None:
        self.service = service
        self.owner = owner
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        self.active = False


class FakeTaskService:
    """
    In-memory TaskService used for unit tests.

    - records every call in `calls` (op name, task id or owner)
    - `fail_next[op] = exc` makes the next call of that op raise `exc`
    - `echo=True` publishes change events to subscribers like a real feed
    - `push()` simulates an event arriving from another session
    """

    def __init__(self, tasks: list[Task] | None = None, *, echo: bool = False) -> None:
        self.tasks: dict[str, Task] = {t.id: t for t in (tasks or [])}
        self.echo = echo
        self.calls: list[tuple[str, str]] = []
        self.fail_next: dict[str, Exception] = {}
        self.subscriptions: list[_FakeSubscription] = []
        self._ids = itertools.count(1)

    def _maybe_fail(self, op: str) -> None:
        exc = self.fail_next.pop(op, None)
        if exc is not None:
            raise exc

    def _owned(self, task_id: str, owner: str) -> Task:
        task = self.tasks.get(task_id)
        if task is None:
            raise ServiceError(f"Task {task_id} not found")
        if task.owner != owner:
            raise AuthorizationError(f"Task {task_id} does not belong to {owner}")
        return task

    def push(self, event: ChangeEvent) -> None:
        for sub in list(self.subscriptions):
            if sub.active and sub.owner == event.record.owner:
                sub.listener(event)

    def _echo(self, event: ChangeEvent) -> None:
        if self.echo:
            self.push(event)

    async def fetch_tasks(self, owner: str) -> list[Task]:
        self.calls.append(("fetch", owner))
        self._maybe_fail("fetch")
        owned = [t for t in self.tasks.values() if t.owner == owner]
        return sorted(owned, key=lambda t: t.created_at, reverse=True)

    async def insert_task(self, *, owner: str, title: str, created_at: float, time_limit: float | None) -> Task:
        self.calls.append(("insert", owner))
        self._maybe_fail("insert")
        task = Task(
            id=f"t{next(self._ids)}",
            owner=owner,
            title=title,
            created_at=created_at,
            time_limit=time_limit,
        )
        self.tasks[task.id] = task
        self._echo(ChangeEvent(ChangeKind.INSERT, task))
        return task

    async def update_task(
        self,
        task_id: str,
        *,
        owner: str,
        completed: bool | None = None,
        has_expired: bool | None = None,
    ) -> Task:
        self.calls.append(("update", task_id))
        self._maybe_fail("update")
        task = self._owned(task_id, owner)
        task = replace(
            task,
            completed=task.completed if completed is None else completed,
            has_expired=task.has_expired if has_expired is None else has_expired,
        )
        self.tasks[task_id] = task
        self._echo(ChangeEvent(ChangeKind.UPDATE, task))
        return task

    async def delete_task(self, task_id: str, *, owner: str) -> None:
        self.calls.append(("delete", task_id))
        self._maybe_fail("delete")
        old = self._owned(task_id, owner)
        del self.tasks[task_id]
        self._echo(ChangeEvent(ChangeKind.DELETE, old))

    def subscribe(self, owner: str, listener: ChangeListener) -> _FakeSubscription:
        sub = _FakeSubscription(self, owner, listener)
        self.subscriptions.append(sub)
        return sub

    def active_subscriptions(self) -> list[_FakeSubscription]:
        return [s for s in self.subscriptions if s.active]


class GatedFetchTaskService(FakeTaskService):
    """
    FakeTaskService whose fetch pauses after taking its snapshot.

    `snapshot_taken` is set once the owner's tasks were read; the fetch then
    waits for `release` before returning them.
    """

    def __init__(self, tasks: list[Task] | None = None, *, echo: bool = True) -> None:
        super().__init__(tasks, echo=echo)
        self.snapshot_taken = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch_tasks(self, owner: str) -> list[Task]:
        snapshot = await super().fetch_tasks(owner)
        self.snapshot_taken.set()
        await self.release.wait()
        return snapshot


def make_task(
    task_id: str,
    *,
    owner: str = "alice",
    title: str = "task",
    created_at: float = 1_700_000_000.0,
    time_limit: float | None = None,
    completed: bool = False,
    has_expired: bool = False,
) -> Task:
    return Task(
        id=task_id,
        owner=owner,
        title=title,
        created_at=created_at,
        time_limit=time_limit,
        completed=completed,
        has_expired=has_expired,
    )
