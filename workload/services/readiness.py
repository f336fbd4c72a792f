from __future__ import annotations

from threading import Event


class ReadinessFlag:
    """Process readiness shared between the readiness routes and shutdown.

    Starts out ready. Backed by ``threading.Event`` so reads and writes are safe
    from both the event loop and the handler thread pool.
    """

    def __init__(self, ready: bool = True) -> None:
        self._event = Event()
        if ready:
            self._event.set()

    def is_ready(self) -> bool:
        return self._event.is_set()

    def mark_ready(self) -> None:
        self._event.set()

    def mark_not_ready(self) -> None:
        self._event.clear()
