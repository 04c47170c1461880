# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from taskminder.logging_setup import _ConsoleNoiseFilter, parse_level, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_quiets_backend_and_notifications() -> None:
    f = _ConsoleNoiseFilter()

    assert f.filter(_record("taskminder.tasks.expiration_monitor", logging.INFO))
    assert not f.filter(_record("taskminder.backend.sqlite_service", logging.INFO))
    assert f.filter(_record("taskminder.backend.sqlite_service", logging.WARNING))
    assert not f.filter(_record("taskminder.notify.notification_center", logging.DEBUG))
    assert not f.filter(_record("py.warnings", logging.WARNING))
    assert not f.filter(_record("asyncio", logging.WARNING))
    assert f.filter(_record("asyncio", logging.ERROR))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (logging.DEBUG, logging.DEBUG),
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        ("loud", logging.INFO),
        (None, logging.INFO),
    ],
)
def test_parse_level(raw: int | str | None, expected: int) -> None:
    assert parse_level(raw) == expected


def test_setup_logging_writes_the_file_log(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        log_file = setup_logging(log_dir=tmp_path / "logs", console_level="error")
        logging.getLogger("taskminder.backend.sqlite_service").debug("schema ready")

        assert log_file == tmp_path / "logs" / "taskminder.log"
        console, file_log = root.handlers
        assert console.level == logging.ERROR
        assert file_log.level == logging.DEBUG
        for handler in root.handlers:
            handler.flush()
        assert "schema ready" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
        logging.captureWarnings(False)
