"""In-memory fixed-window rate limiter for outbound API calls."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Admit at most ``max_requests`` calls per key per window.

    Denied callers are expected to skip and try again later; nothing here
    waits or queues.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + sweep_interval_seconds

    def allow(self, key: str, max_requests: int = 60, window_seconds: float = 60) -> bool:
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep:
                self._sweep(now)

            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + window_seconds)
                return True
            if window.count >= max_requests:
                logger.debug("Rate limited key=%s count=%s", key, window.count)
                return False
            window.count += 1
            return True

    def remaining(self, key: str, max_requests: int = 60) -> int:
        with self._lock:
            window = self._windows.get(key)
            if window is None or self._clock() >= window.reset_at:
                return max_requests
            return max(0, max_requests - window.count)

    def cleanup(self) -> int:
        """Drop expired windows. Returns how many were removed."""
        with self._lock:
            return self._sweep(self._clock())

    def __len__(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float) -> int:
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        self._next_sweep = now + self._sweep_interval
        return len(expired)
