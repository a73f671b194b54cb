"""
Shared utilities for Nodeflow Core
"""
from .logger import get_logger, setup_logger, set_log_level

__all__ = ["get_logger", "setup_logger", "set_log_level"]
