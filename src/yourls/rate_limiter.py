"""Minimum-interval limiter for sequential backend calls."""

from __future__ import annotations

import threading
import time


class RateLimiter:
    """Thread-safe limiter enforcing a minimum gap between calls.

    Args:
        min_interval_seconds: Minimum seconds between two ``wait()`` returns.
            0 disables spacing.
    """

    def __init__(self, min_interval_seconds: float = 0.1) -> None:
        self._interval = max(min_interval_seconds, 0.0)
        self._last_request_time: float | None = None
        self._lock = threading.Lock()

    @classmethod
    def per_minute(cls, requests_per_minute: int) -> RateLimiter:
        return cls(60.0 / max(requests_per_minute, 1))

    @property
    def interval(self) -> float:
        return self._interval

    def wait(self) -> None:
        """Block until the next call is allowed."""
        with self._lock:
            now = time.monotonic()
            if self._last_request_time is not None:
                elapsed = now - self._last_request_time
                if elapsed < self._interval:
                    time.sleep(self._interval - elapsed)
            self._last_request_time = time.monotonic()
