"""Logging setup for the expense tracker entry points.

Library modules only call ``logging.getLogger(__name__)``; the dashboard page
and the scripts call :func:`setup_logger` once to install the handler.
"""

from __future__ import annotations

import logging
import sys
from logging import Logger, StreamHandler

try:
    from .config import LOG_LEVEL
except ImportError:
    from config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_configured = False


def setup_logger(name: str = "expense_tracker", level: str | None = None) -> Logger:
    """Configure the root handler once and return a named logger.

    Args:
        name: Logger name, usually ``__name__`` of the calling module
        level: Level name such as ``"DEBUG"``; falls back to ``LOG_LEVEL``
            and then ``INFO`` for unknown values

    Returns:
        Logger ready for use in the calling module
    """
    global _configured
    log_level = _LEVELS.get((level or LOG_LEVEL).upper(), logging.INFO)
    if not _configured or level is not None:
        logging.basicConfig(
            level=log_level,
            format=LOG_FORMAT,
            handlers=[StreamHandler(sys.stdout)],
            force=True,
        )
        _configured = True
    return logging.getLogger(name)
