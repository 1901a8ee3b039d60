"""
Lifecycle error classifications.

These exceptions are raised by state entities and the lifecycle engine.
None of them is retried or rolled back by the engine; callers re-query
status() to learn what was applied before a failure.
"""

from typing import Any, Dict, Optional


class LifecycleError(Exception):
    """Base class for state lifecycle failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = False


class AlreadyStartedError(LifecycleError):
    """State is already started in the session."""

    def __init__(self, state_id: str, session_id: Optional[str] = None, **kwargs):
        super().__init__(
            f"state {state_id} already started in session {session_id}",
            **kwargs,
        )
        self.state_id = state_id
        self.session_id = session_id


class NotStartedError(LifecycleError):
    """State is not started in the session."""

    def __init__(self, state_id: str, session_id: Optional[str] = None, **kwargs):
        super().__init__(
            f"state {state_id} not started in session {session_id}",
            **kwargs,
        )
        self.state_id = state_id
        self.session_id = session_id


class StateNotFoundError(LifecycleError):
    """An up-to or down-to reference is not a registered state."""

    def __init__(self, reference: Any, **kwargs):
        super().__init__(f"{reference!r} is not a registered state", **kwargs)
        self.reference = reference


class StartFailureError(LifecycleError):
    """Starting a state raised; the cause is chained."""

    def __init__(self, state_id: str, cause: BaseException, **kwargs):
        super().__init__(f"error while starting state {state_id}: {cause}", **kwargs)
        self.state_id = state_id
        self.cause = cause


class StopFailureError(LifecycleError):
    """Stopping a state raised; the cause is chained."""

    def __init__(self, state_id: str, cause: BaseException, **kwargs):
        super().__init__(f"error while stopping state {state_id}: {cause}", **kwargs)
        self.state_id = state_id
        self.cause = cause
