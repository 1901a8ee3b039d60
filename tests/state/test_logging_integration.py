"""Tests for logging integration in the lifecycle engine."""

from unittest.mock import Mock

import pytest

from statemount.errors import StartFailureError
from statemount.logging.config import (
    configure_logging,
    get_lifecycle_logger,
    log_state_transition,
)
from statemount.state.entity import state
from statemount.state.substitutes import with_substitutes


class TestLoggingIntegration:
    """Test transitions and failures are logged with structured fields."""

    def setup_method(self):
        """Set up test environment with logging capture."""
        configure_logging(level="DEBUG", format_json=True)

    def test_start_and_stop_transitions_logged(self, engine, abc_states):
        """Test every transition is logged with state and session ids."""
        engine.lifecycle_logger = Mock()

        engine.start()
        engine.stop()

        binds = [call.kwargs for call in engine.lifecycle_logger.bind.call_args_list]
        assert [(b["state_id"], b["trigger"]) for b in binds] == [
            ("tests.a", "start"), ("tests.b", "start"), ("tests.c", "start"),
            ("tests.c", "stop"), ("tests.b", "stop"), ("tests.a", "stop"),
        ]
        assert {b["session_id"] for b in binds} == {"root"}
        assert binds[0]["from_status"] == "stopped"
        assert binds[0]["to_status"] == "started"
        engine.lifecycle_logger.bind.return_value.info.assert_called_with("State transition")

    def test_substituted_start_logged_with_context(self, engine, abc_states):
        """Test substituted starts carry a substituted flag."""
        engine.lifecycle_logger = Mock()
        a = abc_states[0]

        with with_substitutes({a: state(lambda: 0)}):
            engine.start(a)

        bound = engine.lifecycle_logger.bind.return_value
        bound.bind.assert_called_once_with(context={"substituted": True})

    def test_start_failure_logged(self, engine, registry):
        """Test a failing start is logged as an error before raising."""
        engine.logger = Mock()
        registry.declare("tests.bad", lambda: 1 / 0)

        with pytest.raises(StartFailureError):
            engine.start()

        engine.logger.error.assert_called_once()
        args, kwargs = engine.logger.error.call_args
        assert args == ("Failed to start state",)
        assert kwargs["state_id"] == "tests.bad"
        assert kwargs["started"] == []

    def test_log_state_transition_helper(self):
        """Test the helper binds fields and optional context."""
        logger = Mock()

        log_state_transition(
            logger,
            state_id="app.db",
            session_id="root",
            from_status="stopped",
            to_status="started",
            trigger="start",
            context={"attempt": 1},
        )

        logger.bind.assert_called_once_with(
            state_id="app.db",
            session_id="root",
            from_status="stopped",
            to_status="started",
            trigger="start",
        )
        logger.bind.return_value.bind.assert_called_once_with(context={"attempt": 1})
        logger.bind.return_value.bind.return_value.info.assert_called_once_with("State transition")

    def test_lifecycle_logger_usable(self):
        """Test the lifecycle logger can log after configuration."""
        logger = get_lifecycle_logger("tests.lifecycle")
        logger.info("lifecycle logger ready", check=True)
