# src/taskminder/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..notify.notification_models import NotificationAction, NotificationEvent, NotificationKind

logger = logging.getLogger(__name__)

_ICONS = {
    NotificationKind.SUCCESS: "[ok]",
    NotificationKind.ERROR: "[error]",
    NotificationKind.INFO: "[info]",
    NotificationKind.EXPIRED: "[time's up]",
}


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleAlertSink:
    """
    Blocking alert channel for the console.

    Writes straight to stderr (with a terminal bell) and flushes before
    returning, so the alert is on screen even if the notification line
    scrolls away.
    """

    def __init__(self, stream=None) -> None:
        self._stream = stream

    def alert(self, message: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        stream.write(f"\a[{_ts_local()}] !!! {message}\n")
        stream.flush()


def print_notification(event: NotificationEvent) -> None:
    if event.action != NotificationAction.SHOWN:
        return
    n = event.notification
    _print_ts(f"{_ICONS.get(n.kind, '[info]')} {n.message} (#{n.id})")


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (user=%s).", state.identity.current_user())
    _print_ts("[CONSOLE] Type a task title to add it. Use /help for commands. Use /exit to quit.\n")

    unsubscribe = state.notifications.subscribe(print_notification)

    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, ">>> ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            # Plain text is shorthand for /add.
            line = user_input if user_input.startswith("/") else f"/add {user_input}"

            try:
                response = await command_registry.handle(state, line, emit=_print_ts)
            except Exception:
                logger.exception("Command handler crashed.")
                response = "Internal error while handling a command."

            if response is not None:
                _print_ts(response)
    finally:
        unsubscribe()
        logger.info("Console connector finished.")
