# site_watch/logger.py
"""Logging setup for SiteWatch.

Every pipeline component logs through a child of the ``SiteWatch`` logger
(``SiteWatch.pool``, ``SiteWatch.reporter``…), so a single :func:`configure`
call from the CLI decides where all of it goes::

    from site_watch.logger import get_logger
    log = get_logger("checker")
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteWatch"

_LevelT = Union[int, str]


def _with_format(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Send SiteWatch logs to stdout and, when *log_file* is set, to a rotating file.

    Previously attached handlers are replaced, so calling this twice is safe.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    lg.handlers.clear()
    lg.addHandler(_with_format(logging.StreamHandler(sys.stdout), log_format))
    if log_file is not None:
        rotating = RotatingFileHandler(
            filename=str(log_file), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
        lg.addHandler(_with_format(rotating, log_format))
    lg.propagate = False
    return lg


def get_logger(component: str) -> logging.Logger:
    """Child logger for one pipeline component."""
    return logging.getLogger(f"{LOGGER_NAME}.{component}")


logger: logging.Logger = logging.getLogger(LOGGER_NAME)

__all__ = ["logger", "configure", "get_logger", "DEFAULT_FORMAT", "LOGGER_NAME"]
