"""Tests for repovend logging setup."""
from __future__ import annotations

import logging
from pathlib import Path

from repovend.core.logging import configure_logging


def test_repeated_configuration_keeps_one_handler() -> None:
    configure_logging("DEBUG")
    configure_logging("INFO")

    logger = logging.getLogger("repovend")
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
    assert logger.propagate is False


def test_unknown_level_falls_back_to_warning() -> None:
    configure_logging("chatty")
    assert logging.getLogger("repovend").level == logging.WARNING


def test_file_handler(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "repovend.log"
    configure_logging("INFO", log_file=log_file)

    logging.getLogger("repovend.core.restore").info("restored %s", "libs/foo")
    for handler in logging.getLogger("repovend").handlers:
        handler.flush()

    assert "INFO repovend.core.restore: restored libs/foo" in log_file.read_text(encoding="utf-8")
