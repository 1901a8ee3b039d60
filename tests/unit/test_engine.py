"""Unit tests for the lifecycle engine."""

import pytest

from statemount.engine import LifecycleEngine
from statemount.errors import (
    AlreadyStartedError,
    NotStartedError,
    StartFailureError,
    StateNotFoundError,
    StopFailureError,
)
from statemount.state.models import StateStatus
from statemount.state.registry import Registry


class TestLifecycleEngineStart:
    """Test ordered start."""

    def test_start_all_in_order(self, engine, abc_states, recorder):
        """Test start returns and starts every state in registry order."""
        a, b, c = abc_states

        started = engine.start()

        assert started == [a, b, c]
        assert [call[1] for call in recorder.calls] == ["a", "b", "c"]
        assert a.value == 1 and b.value == 2 and c.value == 3

    def test_start_twice_returns_empty(self, engine, abc_states):
        """Test a second start has nothing left to start."""
        engine.start()

        assert engine.start() == []

    def test_start_up_to(self, engine, abc_states):
        """Test start(up_to) only starts states up to and including it."""
        a, b, c = abc_states

        assert engine.start(a) == [a]
        assert engine.status() == {
            a: StateStatus.STARTED,
            b: StateStatus.STOPPED,
            c: StateStatus.STOPPED,
        }

    def test_start_up_to_by_id(self, engine, abc_states):
        """Test up_to can be a state id."""
        assert [s.id for s in engine.start("tests.b")] == ["tests.a", "tests.b"]

    def test_start_skips_started(self, engine, abc_states):
        """Test already started states are skipped."""
        a, b, c = abc_states
        engine.start(b)

        assert engine.start() == [c]

    def test_start_fills_gaps_in_order(self, engine, abc_states):
        """Test states stopped out of band are started again in registry order."""
        a, b, c = abc_states
        engine.start()
        c.stop()
        a.stop()

        assert engine.start() == [a, c]

    def test_start_empty_registry(self, engine):
        """Test start with nothing registered is a no-op."""
        assert engine.start() == []

    def test_start_unknown_up_to(self, engine, abc_states):
        """Test an unknown up_to raises StateNotFoundError."""
        with pytest.raises(StateNotFoundError) as exc_info:
            engine.start("tests.missing")

        assert exc_info.value.reference == "tests.missing"
        assert set(engine.status().values()) == {StateStatus.STOPPED}

    def test_start_unknown_up_to_on_empty_registry(self, engine):
        """Test an explicit up_to still has to exist when nothing is registered."""
        with pytest.raises(StateNotFoundError):
            engine.start("tests.missing")

    def test_start_failure_no_rollback(self, engine, registry, abc_states, recorder):
        """Test a failing start is wrapped and earlier starts are kept."""
        a, b, c = abc_states

        def explode():
            raise ConnectionError("refused")

        registry.declare("tests.b", explode, recorder.stopper("b"))

        with pytest.raises(StartFailureError) as exc_info:
            engine.start()

        error = exc_info.value
        assert error.state_id == "tests.b"
        assert isinstance(error.cause, ConnectionError)
        assert error.__cause__ is error.cause
        assert engine.status() == {
            a: StateStatus.STARTED,
            b: StateStatus.STOPPED,
            c: StateStatus.STOPPED,
        }

    def test_start_failure_not_retried(self, engine, registry):
        """Test a failing start function is called once per start call."""
        attempts = []

        def flaky():
            attempts.append(1)
            raise RuntimeError("flaky")

        registry.declare("tests.flaky", flaky)

        with pytest.raises(StartFailureError):
            engine.start()

        assert attempts == [1]


class TestLifecycleEngineStop:
    """Test ordered stop."""

    def test_stop_reverse_order(self, engine, abc_states, recorder):
        """Test stop is the exact reverse of start."""
        a, b, c = abc_states
        started = engine.start()

        stopped = engine.stop()

        assert stopped == list(reversed(started))
        stops = [call[1] for call in recorder.calls if call[0] == "stop"]
        assert stops == ["c", "b", "a"]

    def test_stop_down_to(self, engine, abc_states):
        """Test stop(down_to) only stops states from it onwards."""
        a, b, c = abc_states
        engine.start()

        assert engine.stop(b) == [c, b]
        assert engine.status()[a] is StateStatus.STARTED

    def test_stop_nothing_started(self, engine, abc_states):
        """Test stop with nothing started returns empty."""
        assert engine.stop() == []

    def test_stop_unknown_down_to(self, engine, abc_states):
        """Test an unknown down_to raises StateNotFoundError."""
        with pytest.raises(StateNotFoundError):
            engine.stop("tests.missing")

    def test_stop_failure_no_rollback(self, engine, registry, recorder):
        """Test a failing stop is wrapped, stops halt and the state stays started."""
        first = registry.declare("tests.first", lambda: 1, recorder.stopper("first"))

        def explode(value):
            raise OSError("close failed")

        middle = registry.declare("tests.middle", lambda: 2, explode)
        last = registry.declare("tests.last", lambda: 3, recorder.stopper("last"))
        engine.start()

        with pytest.raises(StopFailureError) as exc_info:
            engine.stop()

        assert exc_info.value.state_id == "tests.middle"
        assert isinstance(exc_info.value.__cause__, OSError)
        assert engine.status() == {
            first: StateStatus.STARTED,
            middle: StateStatus.STARTED,
            last: StateStatus.STOPPED,
        }

    def test_direct_stop_of_stopped_state(self, engine, abc_states):
        """Test stopping a stopped state directly raises NotStartedError."""
        with pytest.raises(NotStartedError):
            abc_states[0].stop()


class TestLifecycleEngineStatus:
    """Test status reporting."""

    def test_status_lifecycle(self, engine, abc_states):
        """Test status before, during and after a start/stop cycle."""
        assert set(engine.status().values()) == {StateStatus.STOPPED}

        engine.start()
        assert set(engine.status().values()) == {StateStatus.STARTED}

        engine.stop()
        assert set(engine.status().values()) == {StateStatus.STOPPED}

    def test_status_in_registry_order(self, engine, abc_states):
        """Test status keys follow registry order."""
        assert list(engine.status()) == abc_states

    def test_status_after_unregister(self, engine, registry, abc_states):
        """Test unregistered states drop out of status and start."""
        a, b, c = abc_states
        registry.unregister(b)

        assert list(engine.status()) == [a, c]
        assert engine.start() == [a, c]


class TestScenario:
    """Concrete start/stop scenario with two states."""

    def test_two_state_scenario(self):
        """Test A(1) then B(2) start, read and stop."""
        registry = Registry()
        engine = LifecycleEngine(registry)
        a = registry.declare("scenario.A", lambda: 1, lambda value: None)
        b = registry.declare("scenario.B", lambda: 2)

        assert engine.start() == [a, b]
        assert engine.status() == {a: StateStatus.STARTED, b: StateStatus.STARTED}
        assert a.value == 1

        assert engine.stop() == [b, a]
        assert engine.status() == {a: StateStatus.STOPPED, b: StateStatus.STOPPED}

    def test_direct_double_start(self, engine, abc_states):
        """Test starting a started state directly raises AlreadyStartedError."""
        engine.start()

        with pytest.raises(AlreadyStartedError):
            abc_states[0].start()


class TestEngineConfiguration:
    """Test engine construction from configuration."""

    def test_default_session_params(self, engine):
        assert engine.session_params.thread_name_prefix == "statemount-session"
        assert engine.session_params.daemon is False

    def test_session_params_from_config(self, registry):
        engine = LifecycleEngine(registry, {"session": {"thread_name_prefix": "worker", "daemon": True}})

        assert engine.session_params.thread_name_prefix == "worker"
        assert engine.session_params.daemon is True

    def test_from_config_reads_yaml(self, tmp_path, registry):
        """Test from_config merges statemount.yaml and overrides."""
        (tmp_path / "statemount.yaml").write_text(
            "session:\n  thread_name_prefix: from-file\nlogging:\n  level: WARNING\n"
        )

        engine = LifecycleEngine.from_config(str(tmp_path), registry=registry, overrides={"session": {"daemon": True}})

        assert engine.registry is registry
        assert engine.session_params.thread_name_prefix == "from-file"
        assert engine.session_params.daemon is True

    def test_from_config_rejects_invalid(self, tmp_path):
        """Test invalid configuration raises before building the engine."""
        from statemount.errors import InvalidConfigError

        with pytest.raises(InvalidConfigError) as exc_info:
            LifecycleEngine.from_config(str(tmp_path), overrides={"logging": {"level": "LOUD"}})

        assert exc_info.value.errors[0].field == "logging.level"
