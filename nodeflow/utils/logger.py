"""
Logging configuration for Nodeflow Core

All module loggers hang under one "nodeflow" logger that owns the stdout
handler, so the whole engine can be turned up or down in one place.
"""
import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "nodeflow"
LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def _default_level() -> int:
    # Imported here so config can be loaded lazily (and patched in tests)
    from ..core.config import Config
    return logging.DEBUG if Config.DEBUG else logging.INFO


def setup_logger(level: Optional[int] = None, format_string: Optional[str] = None) -> logging.Logger:
    """
    Configure the "nodeflow" logger once and return it

    Args:
        level: Log level (default: INFO, or DEBUG if NODEFLOW_DEBUG is set)
        format_string: Custom format string (optional)

    Returns:
        The root "nodeflow" logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if root.handlers:
        return root

    root.setLevel(level if level is not None else _default_level())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(format_string or LOG_FORMAT))
    root.addHandler(handler)
    # Engine output stays out of the host application's root logger
    root.propagate = False
    return root


def set_log_level(level: int) -> None:
    """Change the level of every nodeflow logger at once"""
    setup_logger().setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """
    Get the logger for a module

    "nodeflow.core.execution.engine" becomes "nodeflow.execution.engine";
    the "core" segment is dropped since every engine module lives there.

    Args:
        name: Module name (typically __name__)

    Returns:
        Child logger of "nodeflow"
    """
    setup_logger()
    parts = [part for part in name.split('.') if part not in (ROOT_LOGGER_NAME, 'core')]
    if not parts:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{'.'.join(parts)}")
