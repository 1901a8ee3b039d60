"""
Lifecycle engine.

Walks the registry in declaration order to start states, and in reverse
order to stop them, for the session of the execution context. Failures
are wrapped with the id of the failing state and raised at once; states
started or stopped earlier in the same call stay as they are.
"""

import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional

import structlog

from .config.defaults import SessionParams
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .errors import InvalidConfigError, StartFailureError, StateNotFoundError, StopFailureError
from .logging.config import configure_logging, get_lifecycle_logger, log_state_transition
from .session import ExecutionContext, SessionHandle, resolve_context, use_context
from .state.entity import State
from .state.models import StartFn, StateStatus, StopFn
from .state.registry import Registry, StateRef, state_id_of

logger = structlog.get_logger(__name__)
lifecycle_logger = get_lifecycle_logger(__name__)


class LifecycleEngine:
    """
    Coordinator for ordered start and stop of registered states.

    Every operation takes an optional ExecutionContext; without one the
    ambient context of the calling thread is used.
    """

    def __init__(
        self,
        registry: Optional[Registry] = None,
        config: Optional[dict[str, Any]] = None
    ) -> None:
        self.logger = logger
        self.lifecycle_logger = lifecycle_logger
        self.registry = registry if registry is not None else Registry()

        session_config = (config or {}).get("session", {})
        self.session_params = SessionParams(
            thread_name_prefix=session_config.get(
                "thread_name_prefix", SessionParams.thread_name_prefix
            ),
            daemon=session_config.get("daemon", SessionParams.daemon),
        )

    @classmethod
    def from_config(
        cls,
        config_dir: Optional[str] = None,
        registry: Optional[Registry] = None,
        overrides: Optional[dict[str, Any]] = None
    ) -> "LifecycleEngine":
        """Build an engine from YAML configuration and apply its logging settings."""
        loader = ConfigLoader.create(config_dir)
        config = loader.merge_config(overrides)

        errors = ConfigValidator.validate_config(config)
        if errors:
            raise InvalidConfigError(errors)

        log_config = config["logging"]
        configure_logging(
            level=log_config["level"],
            format_json=log_config["format_json"],
            include_timestamp=log_config["include_timestamp"],
            include_caller=log_config["include_caller"],
        )
        return cls(registry=registry, config=config)

    def start(
        self,
        up_to: Optional[StateRef] = None,
        context: Optional[ExecutionContext] = None
    ) -> list[State]:
        """
        Start stopped states in registry order, up to and including ``up_to``.

        Args:
            up_to: Last state to consider; defaults to the last registered one
            context: Execution context; defaults to the ambient one

        Returns:
            The states that were started by this call, in start order

        Raises:
            StateNotFoundError: ``up_to`` is not a registered state
            StartFailureError: a start function raised
        """
        ctx = resolve_context(context)
        states = self.registry.prune()
        if up_to is None and not states:
            return []

        index = len(states) - 1 if up_to is None else self._find_index(up_to, states)
        candidates = [
            state for state in states[:index + 1]
            if ctx.admits(state) and state.status(ctx) is StateStatus.STOPPED
        ]

        started: list[State] = []
        for state in candidates:
            start_fn, stop_fn, substituted = self._effective_functions(state, ctx)
            try:
                state.start(ctx, start_fn, stop_fn)
            except Exception as exc:
                self.logger.error(
                    "Failed to start state",
                    state_id=state.id,
                    session_id=ctx.session_id,
                    error=str(exc),
                    started=[s.id for s in started]
                )
                raise StartFailureError(state.id, exc) from exc

            log_state_transition(
                self.lifecycle_logger,
                state_id=state.id,
                session_id=ctx.session_id,
                from_status=StateStatus.STOPPED.value,
                to_status=StateStatus.STARTED.value,
                trigger="start",
                context={"substituted": True} if substituted else None
            )
            started.append(state)

        return started

    def stop(
        self,
        down_to: Optional[StateRef] = None,
        context: Optional[ExecutionContext] = None
    ) -> list[State]:
        """
        Stop started states in reverse registry order, down to ``down_to``.

        Args:
            down_to: Earliest state to consider; defaults to the first registered one
            context: Execution context; defaults to the ambient one

        Returns:
            The states that were stopped by this call, in stop order

        Raises:
            StateNotFoundError: ``down_to`` is not a registered state
            StopFailureError: a stop function raised
        """
        ctx = resolve_context(context)
        states = self.registry.prune()
        if down_to is None and not states:
            return []

        index = 0 if down_to is None else self._find_index(down_to, states)
        candidates = [
            state for state in states[index:]
            if ctx.admits(state)
            and state.id not in ctx.system_map
            and state.status(ctx) is StateStatus.STARTED
        ]
        candidates.reverse()

        stopped: list[State] = []
        for state in candidates:
            try:
                state.stop(ctx)
            except Exception as exc:
                self.logger.error(
                    "Failed to stop state",
                    state_id=state.id,
                    session_id=ctx.session_id,
                    error=str(exc),
                    stopped=[s.id for s in stopped]
                )
                raise StopFailureError(state.id, exc) from exc

            log_state_transition(
                self.lifecycle_logger,
                state_id=state.id,
                session_id=ctx.session_id,
                from_status=StateStatus.STARTED.value,
                to_status=StateStatus.STOPPED.value,
                trigger="stop"
            )
            stopped.append(state)

        return stopped

    def status(self, context: Optional[ExecutionContext] = None) -> dict[State, StateStatus]:
        """Status of every registered state in the context's session, in registry order."""
        ctx = resolve_context(context)
        return {state: state.status(ctx) for state in self.registry.prune()}

    def with_session(
        self,
        body: Callable[..., Any],
        *args: Any,
        context: Optional[ExecutionContext] = None,
        **kwargs: Any
    ) -> SessionHandle:
        """
        Run ``body`` in a new thread with a fresh session.

        States start stopped in the new session regardless of the caller's
        session. Substitutes and candidate filters of ``context`` (default:
        the ambient one) are carried over. When ``body`` returns or raises,
        every state started in the session is stopped, and only then is the
        result published on the returned handle. Returns without waiting
        for ``body``.
        """
        session_ctx = resolve_context(context).for_session()
        future: Future = Future()

        def run() -> None:
            result = None
            failure: Optional[BaseException] = None
            teardown_error: Optional[BaseException] = None

            try:
                with use_context(session_ctx):
                    try:
                        result = body(*args, **kwargs)
                    except BaseException as exc:
                        failure = exc
                        self.logger.warning(
                            "Session body failed",
                            session_id=session_ctx.session_id,
                            error=str(exc)
                        )

                teardown_error = self._teardown(session_ctx)
            finally:
                handle.teardown_error = teardown_error
                if failure is not None:
                    future.set_exception(failure)
                elif teardown_error is not None:
                    future.set_exception(teardown_error)
                else:
                    future.set_result(result)

        thread = threading.Thread(
            target=run,
            name=f"{self.session_params.thread_name_prefix}-{session_ctx.session_id[:8]}",
            daemon=self.session_params.daemon
        )
        handle = SessionHandle(session_id=session_ctx.session_id, thread=thread, result=future)
        thread.start()

        self.logger.info(
            "Spawned session",
            session_id=session_ctx.session_id,
            thread=thread.name
        )
        return handle

    def _teardown(self, session_ctx: ExecutionContext) -> Optional[BaseException]:
        """Stop everything started in a finished session."""
        # filters only narrow what callers start; teardown covers the whole session
        teardown_ctx = session_ctx.evolve(only=None, excluded=frozenset(), predicate=None)
        try:
            stopped = self.stop(context=teardown_ctx)
        except StopFailureError as exc:
            self.logger.error(
                "Session teardown failed",
                session_id=session_ctx.session_id,
                state_id=exc.state_id,
                error=str(exc.cause)
            )
            return exc
        except BaseException as exc:
            self.logger.error(
                "Session teardown interrupted",
                session_id=session_ctx.session_id,
                error=repr(exc)
            )
            return exc

        self.logger.info(
            "Session torn down",
            session_id=session_ctx.session_id,
            stopped=[s.id for s in stopped]
        )
        return None

    def _effective_functions(
        self,
        state: State,
        ctx: ExecutionContext
    ) -> tuple[StartFn, Optional[StopFn], bool]:
        substitute = ctx.substitute_for(state.id)
        if substitute is not None:
            return substitute.start_fn, substitute.stop_fn, True
        return state.start_fn, state.stop_fn, False

    @staticmethod
    def _find_index(ref: StateRef, states: list[State]) -> int:
        state_id = state_id_of(ref)
        for index, state in enumerate(states):
            if state.id == state_id:
                return index
        raise StateNotFoundError(ref)
