"""In-process fixed-window rate limiter for the login endpoint."""

import time
from dataclasses import dataclass
from threading import Lock


@dataclass
class _Bucket:
    reset_at: float
    count: int


class RateLimiter:
    """
    Fixed-window counter keyed by an arbitrary string (e.g. "login:<client address>").

    Safe to call from the FastAPI threadpool: all bucket access happens under one lock.
    Expired buckets are evicted on access so the map does not grow with every client seen.
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._lock = Lock()
        self._buckets: dict[str, _Bucket] = {}
        self._clock = clock

    def hit(self, key: str, *, limit: int, window_seconds: int) -> tuple[bool, int]:
        """
        Count one attempt. Returns (allowed, retry_after_seconds).
        """
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            b = self._buckets.get(key)
            if b is None:
                self._buckets[key] = _Bucket(reset_at=now + window_seconds, count=1)
                return True, 0
            if b.count >= limit:
                retry = max(1, int(b.reset_at - now))
                return False, retry
            b.count += 1
            return True, 0

    def reset(self, key: str | None = None) -> None:
        """Drop one bucket, or all of them when key is None."""
        with self._lock:
            if key is None:
                self._buckets.clear()
            else:
                self._buckets.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, b in self._buckets.items() if now >= b.reset_at]
        for k in expired:
            del self._buckets[k]


login_limiter = RateLimiter()
