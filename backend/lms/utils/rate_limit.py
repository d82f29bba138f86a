"""In-memory rate limiter used to throttle login attempts."""

from __future__ import annotations

import threading
import time
from collections import defaultdict, deque

from ..errors import RateLimited


class InMemoryRateLimiter:
    """Fixed-window limiter per key (e.g. client address + path).

    State lives in the process, so limits are per worker.
    """

    def __init__(self, clock=time.monotonic):
        self._hits: dict[str, deque] = defaultdict(deque)
        self._lock = threading.Lock()
        self._clock = clock

    def allow(self, key: str, max_requests: int, window_seconds: int) -> tuple[bool, int]:
        """Record a hit for `key`; return (allowed, retry_after_seconds)."""
        now = self._clock()
        with self._lock:
            q = self._hits[key]
            cutoff = now - window_seconds
            while q and q[0] <= cutoff:
                q.popleft()
            if len(q) >= max_requests:
                return False, max(1, int(window_seconds - (now - q[0])))
            q.append(now)
        return True, 0

    def check(self, key: str, max_requests: int, window_seconds: int) -> None:
        """Like `allow` but raises `RateLimited` when over the limit."""
        allowed, retry_after = self.allow(key, max_requests, window_seconds)
        if not allowed:
            raise RateLimited(retry_after)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)
