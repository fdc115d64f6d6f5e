"""Logging configuration using loguru.

Every record goes to stderr so that stdout stays reserved for the CLI's
JSON envelope.  Stdlib logging is intercepted, which covers ``dotenv``
(pulled in by pydantic-settings) reporting problems with a ``.env`` file.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from loguru import logger

# Libraries that log through stdlib ``logging`` and only matter when they warn.
QUIET_LOGGERS = ("dotenv", "dotenv.main")


class _InterceptHandler(logging.Handler):
    """Bridge stdlib logging records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", *, sink: Any = None) -> int:
    """Make loguru the only logging sink and return the new handler id.

    ``sink`` defaults to ``sys.stderr``.  The CLI calls this once, before
    any command runs.
    """
    level = level.upper()

    logger.remove()
    handler_id = logger.add(
        sink if sink is not None else sys.stderr,
        level=level,
        format=(
            "<green>{time:HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=None if sink is None else False,
    )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging initialised (level={})", level)
    return handler_id
