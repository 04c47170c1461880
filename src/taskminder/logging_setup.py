# src/taskminder/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "taskminder.log"

# Our loggers that stay below WARNING on the console.
# The REPL prints notifications itself, and the backend logs every query.
_QUIET_PREFIXES = ("taskminder.backend.", "taskminder.notify.")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the task console readable while the monitor ticks in the background:
    - taskminder logs pass, except the quiet components (WARNING+ only)
    - Python warnings and third-party loggers need ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("taskminder."):
            if name.startswith(_QUIET_PREFIXES):
                return record.levelno >= logging.WARNING
            return True

        # 'py.warnings' and everything else.
        return record.levelno >= logging.ERROR


def parse_level(level: int | str | None, default: int = logging.INFO) -> int:
    """Accept 10, "debug", "INFO"... Unknown names fall back to `default`."""
    if isinstance(level, int):
        return level
    if not level:
        return default
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else default


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskminder",
    console_level: int | str = logging.INFO,
    file_level: int | str = logging.DEBUG,
) -> Path:
    """
    Install a filtered stderr handler and a full file log under `log_dir`.

    Replaces whatever handlers the root logger had. Returns the log file path.
    """
    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(parse_level(console_level))
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    # File (full debug log)
    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(parse_level(file_level, logging.DEBUG))
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
