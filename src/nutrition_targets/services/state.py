"""Observable state shared with the presentation layer."""

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateHolder(Generic[T]):
    """Holds one value, notifying subscribers whenever it is replaced."""

    def __init__(self, initial: T) -> None:
        self._initial = initial
        self._value = initial
        self._listeners: list[Callable[[T], None]] = []

    @property
    def current(self) -> T:
        """Return the latest published value."""
        return self._value

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register a listener and return a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, value: T) -> None:
        """Replace the value and notify listeners."""
        self._value = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                _logger.exception("State listener %r failed", listener)

    def reset(self) -> None:
        """Restore the initial value and notify listeners."""
        self.publish(self._initial)
