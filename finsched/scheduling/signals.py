"""
Signals

Explicit listener lists used for every notification channel of the
scheduler (raised occurrences, field changes, collection lifecycle).
"""

from typing import Any, Callable

Listener = Callable[..., Any]


class Signal:
    """
    A named list of listeners called in subscription order.

    Listeners removed while a dispatch is running are not called by that
    dispatch. Exceptions raised by a listener propagate to the emitter.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._listeners: list[Listener] = []

    def connect(self, listener: Listener) -> None:
        """Subscribe ``listener``; subscribing twice is a no-op."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def disconnect(self, listener: Listener) -> bool:
        """Unsubscribe ``listener``. Returns False if it was not subscribed."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            return False
        return True

    def emit(self, *args: Any) -> None:
        for listener in tuple(self._listeners):
            if listener in self._listeners:
                listener(*args)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return f"Signal({self.name!r}, listeners={len(self._listeners)})"
