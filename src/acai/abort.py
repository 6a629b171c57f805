"""Cancellation primitives shared by the session and its tools."""
from __future__ import annotations

import threading


class AbortSignal:
    """An observable flag indicating whether a session has been aborted."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = ""

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; returns True early if aborted."""
        return self._event.wait(timeout)

    def _abort(self, reason: str) -> None:
        self.reason = reason
        self._event.set()


class AbortController:
    """Controls an :class:`AbortSignal`. Safe to call from any thread."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: str = "Session aborted") -> None:
        self.signal._abort(reason)
