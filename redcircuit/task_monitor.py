"""Thread-safe progress and cancellation tracking for a long-running compile."""

from __future__ import annotations

import threading
from typing import Optional


class TaskMonitor:
    """Shared between the worker running a task and anyone watching it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._progress = 0
        self._max_progress = 0
        self._message: Optional[str] = None

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True

    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def set_progress(self, progress: int) -> None:
        with self._lock:
            self._progress = progress

    def inc_progress(self) -> None:
        with self._lock:
            self._progress += 1

    def set_max_progress(self, max_progress: int) -> None:
        with self._lock:
            self._max_progress = max_progress

    def progress(self) -> int:
        with self._lock:
            return self._progress

    def max_progress(self) -> int:
        with self._lock:
            return self._max_progress

    def set_message(self, message: str) -> None:
        with self._lock:
            self._message = message

    def message(self) -> Optional[str]:
        with self._lock:
            return self._message