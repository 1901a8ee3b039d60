"""
Session model and execution context.

An ExecutionContext is the explicit, immutable record of which session a
call runs in and which substitutes and candidate filters apply to it.
Engine and state calls take it as an argument; when they are not given one
they read the ambient context, which is kept in a ContextVar and set for
the extent of a ``with use_context(...)`` block.

Threads do not inherit the ambient context on their own. Use
``propagate`` or ``spawn`` to carry it into threads started from inside a
session, so that the whole thread tree shares the session's states.
"""

import functools
import threading
import uuid
from concurrent.futures import Future
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterator, Mapping, Optional

from .state.models import ROOT_SESSION, SessionId, Substitute


def new_session_id() -> SessionId:
    """Generate a fresh session id."""
    return SessionId(uuid.uuid4().hex)


@dataclass(frozen=True)
class ExecutionContext:
    """Session id, substitution overlay and candidate filters for a call."""

    session_id: SessionId = ROOT_SESSION
    substitutes: Mapping[str, Substitute] = field(default_factory=dict)
    only: Optional[frozenset] = None
    excluded: frozenset = frozenset()
    predicate: Optional[Callable[[Mapping[str, Any]], bool]] = None
    system_map: Mapping[str, Any] = field(default_factory=dict)

    def admits(self, state: Any) -> bool:
        """Whether ``state`` is in the candidate set of this context."""
        if self.only is not None and state.id not in self.only:
            return False
        if state.id in self.excluded:
            return False
        if self.predicate is not None and not self.predicate(state.metadata):
            return False
        return True

    def substitute_for(self, state_id: str) -> Optional[Substitute]:
        return self.substitutes.get(state_id)

    def for_session(self, session_id: Optional[SessionId] = None) -> "ExecutionContext":
        """Copy of this context bound to another (by default fresh) session."""
        return replace(self, session_id=session_id or new_session_id())

    def evolve(self, **changes: Any) -> "ExecutionContext":
        return replace(self, **changes)


ROOT_CONTEXT = ExecutionContext()

_current: ContextVar[ExecutionContext] = ContextVar(
    "statemount_context", default=ROOT_CONTEXT
)


def current_context() -> ExecutionContext:
    """Return the ambient execution context."""
    return _current.get()


def resolve_context(context: Optional[ExecutionContext]) -> ExecutionContext:
    return context if context is not None else _current.get()


@contextmanager
def use_context(context: ExecutionContext) -> Iterator[ExecutionContext]:
    """Make ``context`` the ambient context for the ``with`` block."""
    token = _current.set(context)
    try:
        yield context
    finally:
        _current.reset(token)


@contextmanager
def extend_context(**changes: Any) -> Iterator[ExecutionContext]:
    """Derive a context from the ambient one and make it ambient."""
    with use_context(current_context().evolve(**changes)) as context:
        yield context


def propagate(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Bind ``fn`` to the caller's current execution context."""
    captured = current_context()

    @functools.wraps(fn)
    def bound(*args: Any, **kwargs: Any) -> Any:
        with use_context(captured):
            return fn(*args, **kwargs)

    return bound


def spawn(
    target: Callable[..., Any],
    *args: Any,
    name: Optional[str] = None,
    daemon: Optional[bool] = None,
    **kwargs: Any
) -> threading.Thread:
    """Start a thread that runs ``target`` in the caller's context."""
    thread = threading.Thread(
        target=propagate(target), args=args, kwargs=kwargs, name=name, daemon=daemon
    )
    thread.start()
    return thread


@dataclass
class SessionHandle:
    """Handle on a spawned session thread and its eventual result."""

    session_id: SessionId
    thread: threading.Thread
    result: Future = field(default_factory=Future)
    teardown_error: Optional[BaseException] = None

    def wait(self, timeout: Optional[float] = None) -> Any:
        """Block until the body finished and its states were stopped."""
        return self.result.result(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        self.thread.join(timeout)
