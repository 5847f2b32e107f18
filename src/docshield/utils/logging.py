"""Logging helpers.

All loggers live under the ``docshield`` namespace so applications can tune
the package with a single ``logging.getLogger("docshield")`` call.
:func:`configure_logging` is idempotent and only ever installs one handler.
"""

from __future__ import annotations

import logging
import sys

__all__ = ["ROOT_LOGGER", "get_logger", "configure_logging"]

ROOT_LOGGER = "docshield"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_HANDLER_ATTR = "_docshield_handler"


def get_logger(name: str) -> logging.Logger:
    """Return a logger for ``name`` nested under the package namespace."""

    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a stderr handler to the package logger and set its level."""

    root = logging.getLogger(ROOT_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)

    if not any(getattr(h, _HANDLER_ATTR, False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        setattr(handler, _HANDLER_ATTR, True)
        root.addHandler(handler)
    return root
