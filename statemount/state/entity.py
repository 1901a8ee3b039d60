"""
State entity.

A State is a named singleton with a start function, an optional stop
function and a per-session value store. Its own start and stop only know
about a single session; ordering across states is the engine's job.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

from ..errors import AlreadyStartedError, NotStartedError
from ..session import ExecutionContext, resolve_context
from ..utils.atom import Atom
from .models import SessionEntry, StartFn, StateId, StateStatus, StopFn

ANONYMOUS = "-anonymous-"


@dataclass(eq=False)
class State:
    """A singleton state, hashed and compared by identity."""

    id: StateId
    start_fn: StartFn
    stop_fn: Optional[StopFn] = None
    name: str = ANONYMOUS
    module: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    sessions: Atom = field(default_factory=lambda: Atom({}), repr=False)

    def status(self, context: Optional[ExecutionContext] = None) -> StateStatus:
        ctx = resolve_context(context)
        if self.id in ctx.system_map or ctx.session_id in self.sessions.deref():
            return StateStatus.STARTED
        return StateStatus.STOPPED

    def start(
        self,
        context: Optional[ExecutionContext] = None,
        start_fn: Optional[StartFn] = None,
        stop_fn: Optional[StopFn] = None,
    ) -> Any:
        """
        Start this state in the context's session and return its value.

        Without an explicit ``start_fn`` the state's own start and stop
        functions are used. With one, ``stop_fn`` is taken as given and
        None means stopping is a no-op.
        """
        ctx = resolve_context(context)
        session_id = ctx.session_id
        if start_fn is None:
            start_fn = self.start_fn
            stop_fn = stop_fn if stop_fn is not None else self.stop_fn

        if self.status(ctx) is not StateStatus.STOPPED:
            raise AlreadyStartedError(self.id, session_id)

        entry = SessionEntry(value=start_fn(), stop_fn=stop_fn)

        def commit(sessions: dict) -> dict:
            # another thread of the same session may have won the race
            if session_id in sessions:
                raise AlreadyStartedError(self.id, session_id)
            return {**sessions, session_id: entry}

        self.sessions.swap(commit)
        return entry.value

    def stop(self, context: Optional[ExecutionContext] = None) -> None:
        """
        Stop this state in the context's session.

        The entry is claimed before the stop function runs, so concurrent
        stops in one session call it once; the others raise NotStartedError.
        If the stop function raises, the state stays started.
        """
        ctx = resolve_context(context)
        session_id = ctx.session_id

        def claim(sessions: dict) -> dict:
            entry = sessions.get(session_id)
            if entry is None or entry.stopping:
                raise NotStartedError(self.id, session_id)
            return {**sessions, session_id: replace(entry, stopping=True)}

        claimed = self.sessions.swap(claim)[session_id]
        original = replace(claimed, stopping=False)

        try:
            if claimed.stop_fn is not None:
                claimed.stop_fn(claimed.value)
        except BaseException:
            self.sessions.swap(lambda sessions: {**sessions, session_id: original})
            raise

        self.sessions.swap(
            lambda sessions: {k: v for k, v in sessions.items() if k != session_id}
        )

    def get(self, context: Optional[ExecutionContext] = None) -> Any:
        """Return the value of this state in the context's session."""
        ctx = resolve_context(context)
        if self.id in ctx.system_map:
            return ctx.system_map[self.id]
        entry = self.sessions.deref().get(ctx.session_id)
        if entry is None:
            raise NotStartedError(self.id, ctx.session_id)
        return entry.value

    @property
    def value(self) -> Any:
        return self.get()

    def session_ids(self) -> list:
        """Sessions this state is currently started in."""
        return list(self.sessions.deref())


def state(
    start_fn: Optional[StartFn] = None,
    stop_fn: Optional[StopFn] = None,
    name: str = ANONYMOUS,
    metadata: Optional[Mapping[str, Any]] = None,
) -> State:
    """Create an unregistered state, typically used as a substitute."""
    if start_fn is None:
        raise ValueError("missing start function")
    return State(
        id=StateId(name),
        start_fn=start_fn,
        stop_fn=stop_fn,
        name=name,
        metadata=dict(metadata or {}),
    )
