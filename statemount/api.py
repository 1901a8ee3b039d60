"""
Public API.

Owns the process-wide registry and engine and exposes the functions most
code needs. Tests that want isolation can build their own ``Registry`` and
``LifecycleEngine`` instead of going through this module.

Example::

    from statemount import api

    @api.defstate(stop=lambda conn: conn.close())
    def database():
        return connect()

    api.start()
    database.value.execute(...)
    api.stop()
"""

from typing import Any, Callable, Mapping, Optional

from .engine import LifecycleEngine
from .session import ExecutionContext, SessionHandle, current_context, propagate, spawn, use_context
from .state.entity import State, state
from .state.models import StartFn, StateStatus, StopFn
from .state.registry import Registry, StateRef
from .state.substitutes import with_substitutes

registry = Registry()
engine = LifecycleEngine(registry)

__all__ = [
    "registry",
    "engine",
    "declare_state",
    "defstate",
    "state",
    "start",
    "stop",
    "status",
    "with_substitutes",
    "with_session",
    "current_context",
    "use_context",
    "propagate",
    "spawn",
]


def declare_state(
    name: str,
    start_fn: StartFn,
    stop_fn: Optional[StopFn] = None,
    *,
    module: Optional[str] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> State:
    """Declare and register a state under the fully-qualified ``name``."""
    return registry.declare(name, start_fn, stop_fn, module=module, metadata=metadata)


def defstate(
    start_fn: Optional[StartFn] = None,
    *,
    stop: Optional[StopFn] = None,
    name: Optional[str] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Any:
    """
    Decorator declaring a state whose start function is the decorated one.

    The state id is ``<module>.<qualname>`` of the function unless ``name``
    is given. The state is dropped from the registry once its module is no
    longer loaded.
    """
    def decorate(fn: StartFn) -> State:
        state_id = name or f"{fn.__module__}.{fn.__qualname__}"
        return registry.declare(
            state_id,
            fn,
            stop,
            name=fn.__name__,
            module=fn.__module__,
            metadata={"doc": fn.__doc__, **(metadata or {})} if fn.__doc__ else metadata,
        )

    if start_fn is not None:
        return decorate(start_fn)
    return decorate


def start(up_to: Optional[StateRef] = None) -> list[State]:
    """Start all stopped states, or those up to ``up_to``, in the current session."""
    return engine.start(up_to)


def stop(down_to: Optional[StateRef] = None) -> list[State]:
    """Stop all started states, or those down to ``down_to``, in the current session."""
    return engine.stop(down_to)


def status() -> dict[State, StateStatus]:
    """Status of every registered state in the current session."""
    return engine.status()


def with_session(
    body: Callable[..., Any],
    *args: Any,
    context: Optional[ExecutionContext] = None,
    **kwargs: Any
) -> SessionHandle:
    """Run ``body`` in a new thread with its own session of states."""
    return engine.with_session(body, *args, context=context, **kwargs)
