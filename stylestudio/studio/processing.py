"""Global loading flag shared by uploads, profile and generation."""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from typing import Iterator

from stylestudio.events import Observable


@dataclass(slots=True, frozen=True)
class ProcessingState:
    is_loading: bool = False
    status_message: str = ""


IDLE = ProcessingState()


class ProcessingTracker(Observable):
    """Advisory single in-flight flag; callers check ``is_loading`` before starting work."""

    def __init__(self) -> None:
        super().__init__()
        self._state = IDLE

    @property
    def state(self) -> ProcessingState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    def begin(self, message: str) -> None:
        self._set(ProcessingState(is_loading=True, status_message=message))

    def update(self, message: str) -> None:
        """Change the status text of the running operation."""

        if self._state.is_loading:
            self._set(ProcessingState(is_loading=True, status_message=message))

    def finish(self) -> None:
        self._set(IDLE)

    @contextlib.contextmanager
    def track(self, message: str) -> Iterator[None]:
        """Mark the system busy for the duration of the block, resetting on every exit path."""

        self.begin(message)
        try:
            yield
        finally:
            self.finish()

    def _set(self, state: ProcessingState) -> None:
        self._state = state
        self._notify("processing.changed")
