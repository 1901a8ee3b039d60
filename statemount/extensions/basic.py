"""Restrict which states start() and stop() consider."""

from contextlib import contextmanager
from typing import Iterable, Iterator

from ..session import ExecutionContext, current_context, extend_context
from ..state.registry import StateRef, state_id_of


@contextmanager
def with_only(states: Iterable[StateRef]) -> Iterator[ExecutionContext]:
    """Only consider ``states`` inside the block. Nested blocks intersect."""
    ids = frozenset(state_id_of(s) for s in states)
    outer = current_context().only
    only = ids if outer is None else outer & ids
    with extend_context(only=only) as context:
        yield context


@contextmanager
def with_except(states: Iterable[StateRef]) -> Iterator[ExecutionContext]:
    """Ignore ``states`` inside the block. Nested blocks add up."""
    ids = frozenset(state_id_of(s) for s in states)
    with extend_context(excluded=current_context().excluded | ids) as context:
        yield context
