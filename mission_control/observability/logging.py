"""Process-wide logging setup for Mission Control.

Every module gets its logger from ``get_logger``; the first call attaches a
single stream handler to the root logger at ``MC_LOG_LEVEL``.
"""

from __future__ import annotations

import logging

from mission_control.config import LOG_FORMAT, LOG_LEVEL

_handler: logging.Handler | None = None


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; configures the root handler on first use."""
    global _handler

    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root = logging.getLogger()
        root.addHandler(_handler)
        root.setLevel(_level(LOG_LEVEL))

    return logging.getLogger(name)
