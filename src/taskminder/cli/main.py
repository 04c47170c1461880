# src/taskminder/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the task session and then runs
the console REPL (or just waits for a signal when the console is disabled).
"""

from __future__ import annotations

import asyncio
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState) -> None:
    """Best-effort shutdown: session first (monitor + feed), then storage."""
    try:
        await state.session.close()
    except Exception:
        logger.exception("Failed to close the task session.")

    close = getattr(state.service, "close", None)
    if callable(close):
        try:
            close()
        except Exception:
            logger.debug("Service close failed.", exc_info=True)


async def _run(state: AppState) -> None:
    settings = state.settings
    stop_main = asyncio.Event()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop_main.set)
        except (NotImplementedError, RuntimeError):
            # Some platforms (Windows) do not support loop signal handlers.
            pass

    await state.session.start()
    try:
        if getattr(settings, "console_enabled", True):
            console = asyncio.create_task(run_console_loop(state))
            stopper = asyncio.create_task(stop_main.wait())
            done, _ = await asyncio.wait({console, stopper}, return_when=asyncio.FIRST_COMPLETED)
            stopper.cancel()
            if console not in done:
                logger.info("Signal received, shutting down...")
                console.cancel()
        else:
            logger.info("Console disabled. Monitoring tasks only. Press Ctrl+C to stop.")
            await stop_main.wait()
    finally:
        await _shutdown(state)


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(log_dir=settings.data_dir, console_level=settings.log_level)

    logger.info("Starting %s (log file %s)...", settings.app_name, log_file)

    state = create_initial_state(settings=settings)
    asyncio.run(_run(state))
    logger.info("Bye.")


if __name__ == "__main__":
    main()
