# src/taskminder/backend/sqlite_service.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from ..core.errors import AuthorizationError, ServiceError
from ..core.ports import ChangeListener
from ..tasks.task_models import ChangeEvent, ChangeKind, Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _FeedSubscription:
    def __init__(self, service: SqliteTaskService, owner: str, listener: ChangeListener) -> None:
        self._service = service
        self.owner = owner
        self.listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._service._remove_subscription(self)


class SqliteTaskService:
    """
    SQLite implementation of the TaskService port.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Threading / async:
    - each call opens its own SQLite connection
    - blocking work runs in a worker thread (asyncio.to_thread)
    - change events are published back on the event loop, after the write
      committed, to every subscriber of the record's owner
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._subscriptions: list[_FeedSubscription] = []
        self._ensure_schema()
        logger.info("SqliteTaskService ready db=%s total=%s", self._db_path, self.count_tasks())

    def close(self) -> None:
        """Drop every subscription (no persistent connections to close)."""
        for sub in list(self._subscriptions):
            sub.unsubscribe()

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    owner TEXT NOT NULL,
                    title TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    time_limit REAL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    has_expired INTEGER NOT NULL DEFAULT 0
                )
                """
            )

            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("SqliteTaskService migration: added column %s", name)

            add_col("time_limit", "REAL")
            add_col("completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("has_expired", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_owner_created ON tasks(owner, created_at)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task.from_record(dict(row))

    def _fetch_owned(self, cur: sqlite3.Cursor, task_id: str, owner: str) -> Task:
        cur.execute("SELECT * FROM tasks WHERE id = ?", (task_id,))
        row = cur.fetchone()
        if row is None:
            raise ServiceError(f"Task {task_id} not found")
        task = self._row_to_task(row)
        if task.owner != owner:
            raise AuthorizationError(f"Task {task_id} does not belong to {owner}")
        return task

    async def _run(self, op: str, fn: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(fn)
        except sqlite3.Error as exc:
            logger.exception("SqliteTaskService %s failed", op)
            raise ServiceError(f"{op} failed: {exc}") from exc

    def _publish(self, event: ChangeEvent) -> None:
        for sub in list(self._subscriptions):
            if not sub.active or sub.owner != event.record.owner:
                continue
            try:
                sub.listener(event)
            except Exception:
                logger.exception("Change listener failed kind=%s id=%s", event.kind, event.record.id)

    def _remove_subscription(self, sub: _FeedSubscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)
        logger.debug("Change feed unsubscribed owner=%s", sub.owner)

    # ---- public API (TaskService) ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    async def fetch_tasks(self, owner: str) -> list[Task]:
        def _q() -> list[Task]:
            conn = self._get_conn()
            try:
                cur = conn.execute(
                    """
                    SELECT *
                    FROM tasks
                    WHERE owner = ?
                    ORDER BY created_at DESC, rowid DESC
                    """,
                    (owner,),
                )
                return [self._row_to_task(r) for r in cur.fetchall()]
            finally:
                conn.close()

        return await self._run("fetch_tasks", _q)

    async def insert_task(
        self,
        *,
        owner: str,
        title: str,
        created_at: float,
        time_limit: float | None,
    ) -> Task:
        if not owner:
            raise AuthorizationError("owner is required")

        task = Task(
            id=uuid.uuid4().hex,
            owner=owner,
            title=title,
            created_at=float(created_at),
            time_limit=float(time_limit) if time_limit is not None else None,
        )

        def _q() -> None:
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO tasks(id, owner, title, created_at, time_limit, completed, has_expired)
                    VALUES (?, ?, ?, ?, ?, 0, 0)
                    """,
                    (task.id, task.owner, task.title, task.created_at, task.time_limit),
                )
                conn.commit()
            finally:
                conn.close()

        await self._run("insert_task", _q)
        logger.debug("Task inserted id=%s owner=%s time_limit=%s", task.id, owner, task.time_limit)
        self._publish(ChangeEvent(ChangeKind.INSERT, task))
        return task

    async def update_task(
        self,
        task_id: str,
        *,
        owner: str,
        completed: bool | None = None,
        has_expired: bool | None = None,
    ) -> Task:
        fields: list[str] = []
        params: list[Any] = []

        if completed is not None:
            fields.append("completed = ?")
            params.append(int(bool(completed)))

        if has_expired is not None:
            if not has_expired:
                raise ServiceError("has_expired cannot be reset")
            fields.append("has_expired = 1")

        def _q() -> Task:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                self._fetch_owned(cur, task_id, owner)
                if fields:
                    cur.execute(
                        f"UPDATE tasks SET {', '.join(fields)} WHERE id = ? AND owner = ?",
                        (*params, task_id, owner),
                    )
                    conn.commit()
                return self._fetch_owned(cur, task_id, owner)
            finally:
                conn.close()

        updated = await self._run("update_task", _q)
        self._publish(ChangeEvent(ChangeKind.UPDATE, updated))
        return updated

    async def delete_task(self, task_id: str, *, owner: str) -> None:
        def _q() -> Task:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                old = self._fetch_owned(cur, task_id, owner)
                cur.execute("DELETE FROM tasks WHERE id = ? AND owner = ?", (task_id, owner))
                conn.commit()
                return old
            finally:
                conn.close()

        old = await self._run("delete_task", _q)
        logger.debug("Task deleted id=%s owner=%s", task_id, owner)
        self._publish(ChangeEvent(ChangeKind.DELETE, old))

    def subscribe(self, owner: str, listener: ChangeListener) -> _FeedSubscription:
        sub = _FeedSubscription(self, owner, listener)
        self._subscriptions.append(sub)
        logger.debug("Change feed subscribed owner=%s", owner)
        return sub
