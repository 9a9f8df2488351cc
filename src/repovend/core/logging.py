from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "repovend"
_INSTALLED_HANDLER: logging.Handler | None = None


def _level_from_name(name: str) -> int:
    value = logging.getLevelName(str(name).upper())
    return value if isinstance(value, int) else logging.WARNING


def configure_logging(level: str = "WARNING", *, log_file: Path | None = None) -> None:
    """Route ``repovend`` log records to stderr, or to ``log_file`` when given.

    Replaces a handler installed by a previous call, so repeated calls are safe.
    """
    global _INSTALLED_HANDLER

    logger = logging.getLogger(_LOGGER_NAME)
    if _INSTALLED_HANDLER is not None:
        logger.removeHandler(_INSTALLED_HANDLER)
        _INSTALLED_HANDLER.close()
        _INSTALLED_HANDLER = None

    handler: logging.Handler
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    logger.setLevel(_level_from_name(level))
    logger.addHandler(handler)
    # Diagnostics already go to stderr; don't duplicate through the root logger.
    logger.propagate = False
    _INSTALLED_HANDLER = handler


def reset_logging_for_tests() -> None:
    """Test-only: drop the installed handler and restore propagation."""
    global _INSTALLED_HANDLER
    logger = logging.getLogger(_LOGGER_NAME)
    if _INSTALLED_HANDLER is not None:
        logger.removeHandler(_INSTALLED_HANDLER)
        _INSTALLED_HANDLER.close()
    _INSTALLED_HANDLER = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


__all__ = ["configure_logging", "reset_logging_for_tests"]
