"""
Declare how states are started using plain data.

A configuration is a mapping whose keys name wrappers and whose values
configure them. The predefined keys are::

    only         list of states (or ids) to restrict to
    except       list of states (or ids) to ignore
    substitutes  mapping of state to substitute state
    system_map   mapping of state to a ready made value
    system_key   name of the session to use
    metadata     predicate over state metadata

Any other key must be a dotted reference (``pkg.module.func`` or
``pkg.module:func``) to a wrapper function ``wrapper(fn, value)`` that
returns a zero-argument function calling ``fn``. State references may be
State objects, registered ids, or dotted references to State objects.

Everything is resolved before the body runs.
"""

import functools
import importlib
from typing import Any, Callable, Mapping, Optional

import structlog

from ..config.validation import ConfigValidator
from ..errors import InvalidConfigError, UnresolvedReferenceError
from ..state.entity import State
from ..state.registry import Registry
from ..state.substitutes import with_substitutes
from .basic import with_except, with_only
from .metadata import with_metadata
from .systems import with_system_key, with_system_map

logger = structlog.get_logger(__name__)

Body = Callable[[], Any]
Wrapper = Callable[[Body, Any], Body]


def resolve_reference(reference: str) -> Any:
    """Import the object named by a dotted or ``module:attr`` reference."""
    if ":" in reference:
        module_name, _, attr_path = reference.partition(":")
    else:
        module_name, _, attr_path = reference.rpartition(".")
    if not module_name or not attr_path:
        raise UnresolvedReferenceError(reference, "not a qualified name")

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise UnresolvedReferenceError(reference, str(exc)) from exc

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as exc:
            raise UnresolvedReferenceError(reference, str(exc)) from exc
    return obj


def _resolve_state(ref: Any, registry: Registry) -> State:
    if isinstance(ref, State):
        return ref
    if isinstance(ref, str):
        registered = registry.resolve(ref)
        if registered is not None:
            return registered
        resolved = resolve_reference(ref)
        if isinstance(resolved, State):
            return resolved
    raise UnresolvedReferenceError(ref, "does not resolve to a state")


def _wrap_with_only(registry: Registry, f: Body, states: Any) -> Body:
    resolved = [_resolve_state(s, registry) for s in states]

    def wrapped() -> Any:
        with with_only(resolved):
            return f()

    return wrapped


def _wrap_with_except(registry: Registry, f: Body, states: Any) -> Body:
    resolved = [_resolve_state(s, registry) for s in states]

    def wrapped() -> Any:
        with with_except(resolved):
            return f()

    return wrapped


def _wrap_with_substitutes(registry: Registry, f: Body, substitutes: Mapping) -> Body:
    resolved = {
        _resolve_state(target, registry): _resolve_state(sub, registry)
        for target, sub in substitutes.items()
    }

    def wrapped() -> Any:
        with with_substitutes(resolved):
            return f()

    return wrapped


def _wrap_with_system_map(registry: Registry, f: Body, system_map: Mapping) -> Body:
    resolved = {_resolve_state(ref, registry): value for ref, value in system_map.items()}

    def wrapped() -> Any:
        with with_system_map(resolved):
            return f()

    return wrapped


def _wrap_with_system_key(registry: Registry, f: Body, system_key: Any) -> Body:
    def wrapped() -> Any:
        with with_system_key(system_key):
            return f()

    return wrapped


def _wrap_with_metadata(registry: Registry, f: Body, predicate: Any) -> Body:
    if isinstance(predicate, str):
        predicate = resolve_reference(predicate)
    if not callable(predicate):
        raise UnresolvedReferenceError("metadata", "does not resolve to a function")

    def wrapped() -> Any:
        with with_metadata(predicate):
            return f()

    return wrapped


PREDEFINED_WRAPPERS = {
    "only": _wrap_with_only,
    "except": _wrap_with_except,
    "substitutes": _wrap_with_substitutes,
    "system_map": _wrap_with_system_map,
    "system_key": _wrap_with_system_key,
    "metadata": _wrap_with_metadata,
}


def _key_to_wrapper(key: str, registry: Registry) -> Wrapper:
    predefined = PREDEFINED_WRAPPERS.get(key)
    if predefined is not None:
        return functools.partial(predefined, registry)

    wrapper = resolve_reference(key)
    if not callable(wrapper):
        raise UnresolvedReferenceError(key, "does not resolve to a function")
    return wrapper


def _default_registry() -> Registry:
    from .. import api
    return api.registry


def wrap_with_config(
    config: Mapping[str, Any],
    body: Body,
    registry: Optional[Registry] = None
) -> Body:
    """
    Compose the wrappers named by ``config`` around ``body``.

    Keys are applied in order, so the first key wraps ``body`` directly and
    the last one is outermost.

    Raises:
        InvalidConfigError: the configuration has the wrong shape
        UnresolvedReferenceError: a key or reference cannot be resolved
    """
    errors = ConfigValidator.validate_system_config(config)
    if errors:
        raise InvalidConfigError(errors)

    registry = registry if registry is not None else _default_registry()

    wrapped = body
    for key, value in config.items():
        wrapper = _key_to_wrapper(key, registry)
        wrapped = wrapper(wrapped, value)

    logger.debug("Composed configuration wrappers", keys=list(config))
    return wrapped


def with_config(
    config: Mapping[str, Any],
    body: Body,
    registry: Optional[Registry] = None
) -> Any:
    """Run ``body`` inside the wrappers declared by ``config``."""
    return wrap_with_config(config, body, registry)()
