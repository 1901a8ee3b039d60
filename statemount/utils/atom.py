"""Compare-and-swap reference cell for shared bookkeeping."""

import threading
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


class Atom(Generic[T]):
    """
    Holds an immutable value that is replaced through compare-and-swap.

    Update functions run outside the internal lock and are retried when
    another thread committed in between, so they must be free of side
    effects. Values should be treated as immutable (tuples, fresh dicts).
    """

    def __init__(self, value: T):
        self._value = value
        self._lock = threading.Lock()

    def deref(self) -> T:
        """Return the current value."""
        return self._value

    def compare_and_set(self, expected: T, new: T) -> bool:
        """Set ``new`` only if the current value is still ``expected``."""
        with self._lock:
            if self._value is not expected:
                return False
            self._value = new
            return True

    def swap(self, fn: Callable[..., T], *args: Any) -> T:
        """Apply ``fn(current, *args)`` atomically and return the new value."""
        while True:
            old = self._value
            new = fn(old, *args)
            if self.compare_and_set(old, new):
                return new

    def reset(self, value: T) -> T:
        """Unconditionally replace the value."""
        with self._lock:
            self._value = value
        return value

    def __repr__(self) -> str:
        return f"Atom({self._value!r})"
