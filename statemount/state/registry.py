"""
Ordered registry of declared states.

The registry keeps the declaration order of state ids, which is the only
source of start and stop order, next to the map of id to State definition.
Both are kept in Atoms and only change through compare-and-swap, so
declarations from several threads never lose each other's entries.
"""

import sys
from typing import Any, Mapping, Optional, Union

import structlog

from ..utils.atom import Atom
from .entity import State
from .models import StartFn, StateId, StopFn

logger = structlog.get_logger(__name__)

StateRef = Union[State, str]


def state_id_of(ref: StateRef) -> StateId:
    """Return the id of a State or pass an id through."""
    if isinstance(ref, State):
        return ref.id
    return StateId(ref)


class Registry:
    """Ordered, duplicate-free set of declared states."""

    def __init__(self):
        self.logger = logger
        self._ids: Atom = Atom(())
        self._definitions: Atom = Atom({})

    def register(self, state: State) -> tuple:
        """Store the definition and append its id unless already present."""
        self._definitions.swap(lambda defs: {**defs, state.id: state})
        ids = self._ids.swap(
            lambda ids: ids if state.id in ids else ids + (state.id,)
        )
        self.logger.debug("Registered state", state_id=state.id, position=ids.index(state.id))
        return ids

    def declare(
        self,
        state_id: str,
        start_fn: StartFn,
        stop_fn: Optional[StopFn] = None,
        *,
        name: Optional[str] = None,
        module: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> State:
        """
        Declare a state, returning the one State object for ``state_id``.

        Declaring an id again (a reloaded module, say) updates the existing
        State in place so its started sessions and position survive.
        """
        candidate = State(
            id=StateId(state_id),
            start_fn=start_fn,
            stop_fn=stop_fn,
            name=name or state_id,
            module=module,
            metadata=dict(metadata or {}),
        )
        definitions = self._definitions.swap(
            lambda defs: defs if state_id in defs else {**defs, state_id: candidate}
        )
        state = definitions[state_id]
        if state is not candidate:
            state.start_fn = start_fn
            state.stop_fn = stop_fn
            state.name = candidate.name
            state.module = module
            state.metadata = candidate.metadata
            self.logger.debug("Redeclared state", state_id=state_id)
        self.register(state)
        return state

    def unregister(self, ref: StateRef) -> bool:
        """Drop a definition; its id disappears at the next prune."""
        state_id = state_id_of(ref)
        removed = state_id in self._definitions.deref()
        self._definitions.swap(
            lambda defs: {k: v for k, v in defs.items() if k != state_id}
        )
        if removed:
            self.logger.debug("Unregistered state", state_id=state_id)
        return removed

    def resolve(self, ref: StateRef) -> Optional[State]:
        """Return the live definition for ``ref``, or None."""
        state = self._definitions.deref().get(state_id_of(ref))
        if state is None:
            return None
        if state.module is not None and state.module not in sys.modules:
            return None
        return state

    def prune(self) -> list[State]:
        """Drop ids that no longer resolve and return the states in order."""
        before = self._ids.deref()
        ids = self._ids.swap(
            lambda ids: tuple(i for i in ids if self.resolve(i) is not None)
        )
        if len(ids) != len(before):
            self.logger.debug(
                "Pruned unresolved states",
                pruned=[i for i in before if i not in ids]
            )
        states = [self.resolve(i) for i in ids]
        return [s for s in states if s is not None]

    def ids(self) -> tuple:
        return self._ids.deref()

    def clear(self) -> None:
        """Forget every declaration. Started values are not stopped."""
        self._ids.reset(())
        self._definitions.reset({})

    def __contains__(self, ref: object) -> bool:
        if not isinstance(ref, (State, str)):
            return False
        return self.resolve(ref) is not None

    def __len__(self) -> int:
        return len(self._ids.deref())
