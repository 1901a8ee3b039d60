"""Pytest configuration and shared fixtures."""

import threading

import pytest

from statemount.engine import LifecycleEngine
from statemount.state.registry import Registry


class CallRecorder:
    """Records start and stop calls across threads."""

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()

    def record(self, *event):
        with self._lock:
            self.calls.append(event)

    def starter(self, name, value):
        def start_fn():
            self.record("start", name)
            return value
        return start_fn

    def stopper(self, name):
        def stop_fn(value):
            self.record("stop", name, value)
        return stop_fn


@pytest.fixture
def registry() -> Registry:
    """Fresh registry per test."""
    return Registry()


@pytest.fixture
def engine(registry) -> LifecycleEngine:
    """Engine over the fresh registry."""
    return LifecycleEngine(registry)


@pytest.fixture
def recorder() -> CallRecorder:
    return CallRecorder()


@pytest.fixture
def abc_states(registry, recorder):
    """Three states a, b, c declared in that order, with values 1, 2, 3."""
    return [
        registry.declare(
            f"tests.{name}",
            recorder.starter(name, value),
            recorder.stopper(name),
        )
        for name, value in (("a", 1), ("b", 2), ("c", 3))
    ]
