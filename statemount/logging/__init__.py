"""
Logging configuration and utilities for statemount.
"""
from .config import configure_logging, get_lifecycle_logger, get_logger

__all__ = ["configure_logging", "get_lifecycle_logger", "get_logger"]
