"""
Error classification for the lifecycle engine and its configuration layer.

This module provides the exception hierarchy raised while starting,
stopping and configuring states.
"""

from .lifecycle_failures import (
    LifecycleError,
    AlreadyStartedError,
    NotStartedError,
    StateNotFoundError,
    StartFailureError,
    StopFailureError,
)
from .configuration import (
    ConfigurationError,
    UnresolvedReferenceError,
    InvalidConfigError,
)

__all__ = [
    # Lifecycle Errors
    "LifecycleError",
    "AlreadyStartedError",
    "NotStartedError",
    "StateNotFoundError",
    "StartFailureError",
    "StopFailureError",
    # Configuration Errors
    "ConfigurationError",
    "UnresolvedReferenceError",
    "InvalidConfigError",
]
