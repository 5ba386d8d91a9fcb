"""Logging helpers for JoinScout."""

from __future__ import annotations

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "joinscout"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the joinscout namespace.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Logger instance
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def setup_logging(
    level: str | int = "INFO",
    fmt: Optional[str] = None,
    stream=None,
) -> logging.Logger:
    """Configure the joinscout root logger.

    Safe to call more than once: the handler installed by a previous call
    is replaced rather than duplicated.

    Args:
        level: Logging level name or number
        fmt: Optional log format string
        stream: Output stream (defaults to stderr)

    Returns:
        The configured root logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    for handler in list(root.handlers):
        if getattr(handler, "_joinscout_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler._joinscout_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    return root
