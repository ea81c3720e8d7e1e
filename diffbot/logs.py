"""Loguru setup for applications embedding the client.

The package disables its own log records on import so that it stays quiet
inside host applications; `configure_logging()` turns them back on.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger

__all__ = ["configure_logging"]

_PACKAGE = "diffbot"


def configure_logging(level: str | None = None, *, sink: TextIO | None = None) -> int:
    """Enable diffbot log records and route them to `sink` (stderr by default).

    `level` falls back to ``Settings.log_level``. Returns the loguru handler id
    so callers can remove the sink again.
    """
    if level is None:
        from diffbot.config import get_settings

        level = get_settings().log_level
    resolved = (level or "INFO").upper()

    logger.enable(_PACKAGE)
    handler_id = logger.add(
        sink or sys.stderr,
        level=resolved,
        backtrace=False,
        diagnose=False,
        filter=_PACKAGE,
    )
    logger.bind(module="logs").debug("diffbot logging initialised at level {}", resolved)
    return handler_id
