"""In-memory sliding-window limiter used to throttle discount evaluation per organization."""

import time
from collections import defaultdict, deque
from threading import Lock


class RateLimiter:
    """Allows at most ``max_requests`` calls per key within ``window_seconds``.

    State lives in process memory, so each worker process enforces its own limit.
    """

    def __init__(self, max_requests: int, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._calls: dict[str, deque[float]] = defaultdict(deque)
        self._lock = Lock()

    def _prune(self, calls: deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while calls and calls[0] <= cutoff:
            calls.popleft()

    def is_allowed(self, key: str) -> bool:
        """Record a call for ``key`` and return whether it fits in the window."""
        now = time.monotonic()
        with self._lock:
            calls = self._calls[key]
            self._prune(calls, now)
            if len(calls) >= self.max_requests:
                return False
            calls.append(now)
            return True

    def retry_after(self, key: str) -> int:
        """Seconds until ``key`` may call again; 0 if it may call now."""
        now = time.monotonic()
        with self._lock:
            calls = self._calls[key]
            self._prune(calls, now)
            if len(calls) < self.max_requests:
                return 0
            return max(1, int(calls[0] + self.window_seconds - now) + 1)

    def reset(self) -> None:
        with self._lock:
            self._calls.clear()
