"""Change notification shared by the stateful studio components."""

from __future__ import annotations

from typing import Callable

Listener = Callable[[str], None]


class Observable:
    """Keeps listeners and calls them with an event name after each mutation."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event)
