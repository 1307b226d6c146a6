"""Tests for logging setup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from userlist_sync.logging_utils import configure_logging


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in saved_handlers:
            handler.close()
    root_logger.handlers[:] = saved_handlers
    root_logger.setLevel(saved_level)


def test_console_only_by_default() -> None:
    logger = configure_logging()

    handler_types = [type(handler) for handler in logging.getLogger().handlers]
    assert handler_types == [logging.StreamHandler]
    assert logger.name == "userlist_sync"


def test_log_file_receives_records(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "userlist-sync.log"

    logger = configure_logging(log_file, level=logging.DEBUG)
    logger.getChild("pipeline").info("sync.start run_id=%s", "sync-abc")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "| INFO | userlist_sync.pipeline | sync.start run_id=sync-abc" in text
