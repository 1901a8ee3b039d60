"""
Independent systems of states within one thread.

``with_system_key`` runs a block against an explicitly named session, so a
single thread can drive several systems. ``with_system_map`` supplies ready
made values for states, which then count as started and are neither started
nor stopped by the engine.
"""

from contextlib import contextmanager
from typing import Any, Hashable, Iterator, Mapping

import structlog

from ..session import ExecutionContext, current_context, extend_context
from ..state.models import SessionId
from ..state.registry import StateRef, state_id_of

logger = structlog.get_logger(__name__)


def system_session_id(key: Hashable) -> SessionId:
    """Session id for a system key, kept apart from root and spawned sessions."""
    return SessionId(f"system:{key!r}")


@contextmanager
def with_system_key(key: Hashable) -> Iterator[ExecutionContext]:
    """Use the session named ``key`` inside the block."""
    with extend_context(session_id=system_session_id(key)) as context:
        yield context


@contextmanager
def with_system_map(system_map: Mapping[StateRef, Any]) -> Iterator[ExecutionContext]:
    """Treat the mapped states as started with the given values."""
    values = {state_id_of(ref): value for ref, value in system_map.items()}
    logger.debug("Applying system map", state_ids=sorted(values))
    with extend_context(system_map={**current_context().system_map, **values}) as context:
        yield context
