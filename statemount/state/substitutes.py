"""
Substitution overlay.

Replaces the start and stop functions of states for the dynamic extent of
a ``with`` block. Nested overlays merge, the inner one winning per state.
"""

from contextlib import contextmanager
from typing import Iterable, Iterator, Mapping, Tuple, Union

import structlog

from ..session import ExecutionContext, current_context, extend_context
from .entity import State
from .models import Substitute
from .registry import StateRef, state_id_of

logger = structlog.get_logger(__name__)

SubstitutePairs = Union[Mapping[StateRef, State], Iterable[Tuple[StateRef, State]]]


def build_overlay(pairs: SubstitutePairs) -> dict:
    """Turn target/substitute pairs into an id keyed overlay."""
    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    overlay = {}
    for target, substitute in items:
        if not isinstance(substitute, State):
            raise TypeError(
                f"substitute for {state_id_of(target)} must be a State, "
                f"got {type(substitute).__name__}"
            )
        overlay[state_id_of(target)] = Substitute(
            start_fn=substitute.start_fn, stop_fn=substitute.stop_fn
        )
    return overlay


@contextmanager
def with_substitutes(pairs: SubstitutePairs) -> Iterator[ExecutionContext]:
    """
    Use substitutes when starting the given states inside the block.

    Args:
        pairs: Mapping or iterable of (target, substitute) pairs. Targets are
            States or state ids, substitutes are States (usually anonymous
            ones made with ``state()``).
    """
    overlay = build_overlay(pairs)
    merged = {**current_context().substitutes, **overlay}
    logger.debug("Applying substitutes", state_ids=sorted(overlay))
    with extend_context(substitutes=merged) as context:
        yield context
