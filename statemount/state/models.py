"""
State data models.

This module defines the immutable records stored per session and the
status values reported by the lifecycle engine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, NewType, Optional

StateId = NewType("StateId", str)
SessionId = NewType("SessionId", str)

ROOT_SESSION = SessionId("root")

StartFn = Callable[[], Any]
StopFn = Callable[[Any], None]


class StateStatus(str, Enum):
    """Status of a state within one session."""
    STARTED = "started"
    STOPPED = "stopped"


@dataclass(frozen=True)
class SessionEntry:
    """Value of a started state and the stop function captured at start."""

    value: Any
    stop_fn: Optional[StopFn] = None
    # set while a stop call owns the entry
    stopping: bool = False


@dataclass(frozen=True)
class Substitute:
    """Start and stop functions replacing a state's own for one start."""

    start_fn: StartFn
    stop_fn: Optional[StopFn] = None
