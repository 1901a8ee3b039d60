"""
Configuration error classifications for the declarative adapter.

Raised before any wrapped body runs, so a bad configuration never leaves
states partially started.
"""

from typing import Any, Dict, List, Optional


class ConfigurationError(Exception):
    """Base class for configuration problems."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class UnresolvedReferenceError(ConfigurationError):
    """A configuration key or value does not resolve to what it should."""

    def __init__(self, key: Any, reason: Optional[str] = None, **kwargs):
        message = f"cannot resolve key {key}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, **kwargs)
        self.key = key
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Configuration failed validation."""

    def __init__(self, errors: List[Any], **kwargs):
        details = "; ".join(f"{e.field}: {e.message}" for e in errors)
        super().__init__(f"invalid configuration: {details}", **kwargs)
        self.errors = errors
