"""Sliding-window rate limiting per caller identity."""

import time
from collections import deque
from collections.abc import Callable
from threading import Lock


class RateLimiter:
    """Bound the number of requests per identity over a trailing window.

    Each identity owns a deque of admission timestamps. The prune, check and
    append steps for one identity run under that identity's lock; different
    identities never contend. Identities whose window has emptied are
    dropped at most once per window.
    """

    def __init__(
        self,
        limit: int,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window = window
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._locks: dict[str, Lock] = {}
        self._registry_lock = Lock()
        self._last_sweep = clock()

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    def admit(self, identity: str) -> bool:
        """Record and admit a request, or refuse it without recording."""
        if not self.enabled:
            return True
        self._maybe_sweep(self._clock())
        while True:
            lock = self._lock_for(identity)
            with lock:
                if self._locks.get(identity) is not lock:
                    # Swept while we waited; take the fresh lock
                    continue
                now = self._clock()
                timestamps = self._windows.setdefault(identity, deque())
                self._prune(timestamps, now)
                if len(timestamps) >= self.limit:
                    return False
                timestamps.append(now)
                return True

    def retry_after(self, identity: str) -> float:
        """Seconds until the identity can be admitted again."""
        if not self.enabled:
            return 0.0
        with self._lock_for(identity):
            timestamps = self._windows.get(identity)
            if not timestamps or len(timestamps) < self.limit:
                return 0.0
            return max(0.0, timestamps[0] + self.window - self._clock())

    def reset(self) -> None:
        with self._registry_lock:
            self._windows.clear()
            self._locks.clear()

    def stats(self) -> dict:
        """Get rate limiter statistics."""
        return {
            "requests_per_window": self.limit,
            "window_seconds": self.window,
            "active_identities": len(self._windows),
        }

    def _lock_for(self, identity: str) -> Lock:
        with self._registry_lock:
            lock = self._locks.get(identity)
            if lock is None:
                lock = self._locks[identity] = Lock()
            return lock

    def _maybe_sweep(self, now: float) -> None:
        """Drop identities with nothing left in their window, once per window."""
        if now - self._last_sweep < self.window:
            return
        with self._registry_lock:
            if now - self._last_sweep < self.window:
                return
            self._last_sweep = now
            cutoff = now - self.window
            for identity, lock in list(self._locks.items()):
                if not lock.acquire(blocking=False):
                    continue
                try:
                    timestamps = self._windows.get(identity)
                    if not timestamps or timestamps[-1] <= cutoff:
                        self._windows.pop(identity, None)
                        del self._locks[identity]
                finally:
                    lock.release()

    def _prune(self, timestamps: deque[float], now: float) -> None:
        cutoff = now - self.window
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()
