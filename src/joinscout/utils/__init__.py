"""Shared utilities."""

from joinscout.utils.config import Config, get_config, load_config, set_config
from joinscout.utils.logging import get_logger, setup_logging

__all__ = [
    "Config",
    "get_config",
    "get_logger",
    "load_config",
    "set_config",
    "setup_logging",
]
