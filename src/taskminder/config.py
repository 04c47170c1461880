# src/taskminder/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Local, gitignored overrides via config_local.py for a handful of switches.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "TASKMINDER"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid float in %s=%r; using %s", name, raw, default)
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Identity ----
    default_user: str | None

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    # ---- Timing ----
    poll_interval_seconds: float
    notification_dismiss_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskminder").strip() or "taskminder"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        default_user = _env(_k("DEFAULT_USER"), "").strip() or None

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskminder"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        poll_interval_seconds = _env_float(_k("POLL_INTERVAL_SECONDS"), 1.0)
        if poll_interval_seconds <= 0:
            poll_interval_seconds = 1.0
        notification_dismiss_seconds = _env_float(_k("NOTIFICATION_DISMISS_SECONDS"), 5.0)
        if notification_dismiss_seconds < 0:
            notification_dismiss_seconds = 5.0

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            default_user=default_user,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            poll_interval_seconds=poll_interval_seconds,
            notification_dismiss_seconds=notification_dismiss_seconds,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env; use config_local.py only for safe overrides.
try:
    import config_local as _config_local  # type: ignore
except ImportError:
    _config_local = None

if _config_local is not None:
    if hasattr(_config_local, "CONSOLE_ENABLED"):
        object.__setattr__(SETTINGS, "console_enabled", bool(_config_local.CONSOLE_ENABLED))  # type: ignore[misc]
    if hasattr(_config_local, "DEFAULT_USER"):
        object.__setattr__(SETTINGS, "default_user", str(_config_local.DEFAULT_USER).strip() or None)  # type: ignore[misc]


def get_settings() -> Settings:
    return SETTINGS
