"""Sliding-window request budget for the geocoding endpoints."""
from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` acquisitions in any ``window_s`` seconds.

    Owned by the application and shared by every geocoding call it makes.
    ``time_fn`` is injectable so tests can drive a fake clock.
    """

    def __init__(self, max_requests: int = 10, window_s: float = 60.0, time_fn: Callable[[], float] = time.monotonic):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_s <= 0:
            raise ValueError("window_s must be positive")
        self.max_requests = max_requests
        self.window_s = window_s
        self._time_fn = time_fn
        self._stamps: Deque[float] = deque()

    def _evict(self, now: float) -> None:
        while self._stamps and now - self._stamps[0] >= self.window_s:
            self._stamps.popleft()

    def remaining(self) -> int:
        self._evict(self._time_fn())
        return self.max_requests - len(self._stamps)

    def try_acquire(self) -> bool:
        """Record one request if the budget allows it."""
        now = self._time_fn()
        self._evict(now)
        if len(self._stamps) >= self.max_requests:
            return False
        self._stamps.append(now)
        return True


__all__ = ["SlidingWindowRateLimiter"]
