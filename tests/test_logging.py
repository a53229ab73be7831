"""Tests for log file setup."""
from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from relaynav.logging import setup_logging
from relaynav.settings import Settings


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)


def test_setup_logging_writes_rotating_file(tmp_path: Path):
    settings = Settings(RELAYNAV_LOG_DIR=tmp_path / "logs", RELAYNAV_LOG_LEVEL="debug")

    log_file = setup_logging(settings)
    logging.getLogger("relaynav.test").debug("hello from test")

    assert log_file == tmp_path / "logs" / "relaynav.log"
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler, TimedRotatingFileHandler)
    assert handler.backupCount == 7
    handler.flush()
    assert "hello from test" in log_file.read_text(encoding="utf-8")


def test_setup_logging_repeated_calls_replace_handlers(tmp_path: Path):
    settings = Settings(RELAYNAV_LOG_DIR=tmp_path, RELAYNAV_LOG_BACKUP_COUNT=2)

    setup_logging(settings)
    setup_logging(settings, console=True)

    handlers = logging.getLogger().handlers
    assert len(handlers) == 2
    assert isinstance(handlers[0], TimedRotatingFileHandler)
    assert handlers[0].backupCount == 2
    assert type(handlers[1]) is logging.StreamHandler


def test_setup_logging_unknown_level_falls_back_to_info(tmp_path: Path):
    setup_logging(Settings(RELAYNAV_LOG_DIR=tmp_path, RELAYNAV_LOG_LEVEL="chatty"))
    assert logging.getLogger().level == logging.INFO
