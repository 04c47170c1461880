# src/taskminder/cli/commands.py

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import cast

from ..core.errors import TaskminderError, describe_error
from ..core.session import OperationResult
from ..core.state import AppState
from ..tasks.task_api import format_time_remaining, partition_tasks
from ..tasks.task_models import Task

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be plain functions or coroutines.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            result = await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _ts_local(ts: float) -> str:
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M:%S")


def resolve_task(state: AppState, ref: str) -> Task | None:
    """
    Find a task by 1-based list position or by (unique) id prefix.
    """
    tasks = state.session.tasks
    ref = ref.strip()
    if not ref:
        return None

    if ref.isdigit():
        pos = int(ref)
        if 1 <= pos <= len(tasks):
            return tasks[pos - 1]

    matches = [t for t in tasks if t.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    return None


def render_task_line(task: Task, position: int, now_ts: float) -> str:
    box = "[x]" if task.completed else "[ ]"
    parts = [f"  {position}. {box} {task.title}"]

    remaining = format_time_remaining(task, now_ts)
    if remaining is not None:
        if remaining == "Time expired!" or task.has_expired:
            parts.append("(expired)")
        else:
            parts.append(f"({remaining} remaining)")

    parts.append(f"id={task.id[:8]} created {_ts_local(task.created_at)}")
    return " ".join(parts)


def render_task_list(state: AppState, now_ts: float | None = None) -> str:
    now = time.time() if now_ts is None else now_ts
    tasks = state.session.tasks
    if not tasks:
        return "No tasks yet. Add your first task with /add <title>."

    positions = {t.id: i for i, t in enumerate(tasks, start=1)}
    active, completed = partition_tasks(tasks)

    lines = ["Your tasks:"]
    if active:
        lines.append(f"Active Tasks ({len(active)})")
        lines.extend(render_task_line(t, positions[t.id], now) for t in active)
    if completed:
        lines.append(f"Completed Tasks ({len(completed)})")
        lines.extend(render_task_line(t, positions[t.id], now) for t in completed)
    return "\n".join(lines)


def _result_text(result: OperationResult, ok_text: str) -> str:
    if result.ok:
        return ok_text
    return f"Failed: {describe_error(result.error) if result.error else 'unknown error'}"


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    session = state.session
    return (
        "Status:\n"
        f"  User: {session.owner or '(signed out)'}\n"
        f"  Tasks: {len(session.active_tasks)} active, {len(session.completed_tasks)} completed\n"
        f"  Database: {getattr(settings, 'tasks_db_path', '?')}\n"
        f"  Poll interval: {getattr(settings, 'poll_interval_seconds', '?')}s"
    )


async def cmd_whoami(state: AppState, args: list[str]) -> str:
    user = await state.identity.refresh_session()
    return f"Signed in as {user}." if user else "Not signed in. Use /login <user>."


async def cmd_login(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /login <user>"
    if emit:
        emit(f"Signing in as {args[0]}...")
    try:
        user = await state.identity.sign_in(args[0])
    except TaskminderError as exc:
        return f"Sign-in failed: {describe_error(exc)}"
    await state.session.settle()
    return f"Signed in as {user}. {len(state.session.tasks)} task(s) loaded."


async def cmd_logout(state: AppState, args: list[str]) -> str:
    if state.identity.current_user() is None:
        return "Already signed out."
    await state.identity.sign_out()
    await state.session.settle()
    return "Signed out."


def cmd_list(state: AppState, args: list[str]) -> str:
    return render_task_list(state)


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title>          -> task without time limit
    /add +<minutes> <title> -> task that expires after <minutes>
    """
    minutes: str | None = None
    if args and args[0].startswith("+"):
        minutes = args[0][1:]
        args = args[1:]

    result = await state.session.add_task(" ".join(args), minutes)
    if not result.ok or result.task is None:
        return _result_text(result, "")

    task = result.task
    if task.time_limit is None:
        return f'Added "{task.title}".'
    return f'Added "{task.title}" (expires {_ts_local(task.time_limit)}).'


async def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <number|id>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    result = await state.session.toggle_completed(task.id)
    if result.ok and result.task is not None:
        state_text = "completed" if result.task.completed else "reopened"
        return f'"{result.task.title}" {state_text}.'
    return _result_text(result, "Nothing to do.")


async def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <number|id>"
    task = resolve_task(state, args[0])
    if task is None:
        return f"No task matches {args[0]!r}."

    result = await state.session.delete_task(task.id)
    return _result_text(result, f'Deleted "{task.title}".')


async def cmd_reload(state: AppState, args: list[str]) -> str:
    result = await state.session.reload()
    return _result_text(result, f"Reloaded {len(state.session.tasks)} task(s).")


def cmd_notes(state: AppState, args: list[str]) -> str:
    active = state.notifications.active
    if not active:
        return "No notifications."
    lines = ["Notifications:"]
    for n in active:
        lines.append(f"  #{n.id} [{n.kind.value}] {n.message}")
    return "\n".join(lines)


def cmd_dismiss(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /dismiss <notification id> | /dismiss all"
    if args[0].lower() == "all":
        count = 0
        for n in state.notifications.active:
            count += int(state.notifications.dismiss(n.id))
        return f"Dismissed {count} notification(s)."
    try:
        nid = int(args[0].lstrip("#"))
    except ValueError:
        return "Usage: /dismiss <notification id>"
    if state.notifications.dismiss(nid):
        return f"Dismissed #{nid}."
    return f"No notification #{nid}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current user and settings.")
registry.register("whoami", cmd_whoami, help_text="Show the signed-in user.")
registry.register("login", cmd_login, help_text="Sign in: /login <user>.")
registry.register("logout", cmd_logout, help_text="Sign out.")
registry.register("list", cmd_list, help_text="List tasks with countdowns.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add [+minutes] <title>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <number|id>.", aliases=["toggle"])
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <number|id>.", aliases=["delete"])
registry.register("reload", cmd_reload, help_text="Reload tasks from storage.")
registry.register("notes", cmd_notes, help_text="Show active notifications.")
registry.register("dismiss", cmd_dismiss, help_text="Dismiss a notification: /dismiss <id> | all.")
