import math
import threading
import time
from collections import deque


class SlidingWindowLimiter:
    """Per-key request budget over a rolling window."""

    def __init__(self, max_requests: int, window_seconds: int) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._lock = threading.Lock()
        self._hits: dict[str, deque[float]] = {}

    def _prune(self, key: str, now: float) -> deque[float]:
        hits = self._hits.setdefault(key, deque())
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()
        return hits

    def allow(self, key: str, now: float | None = None) -> bool:
        now = time.time() if now is None else now
        with self._lock:
            hits = self._prune(key, now)
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    def retry_after(self, key: str, now: float | None = None) -> int:
        now = time.time() if now is None else now
        with self._lock:
            hits = self._prune(key, now)
            if len(hits) < self.max_requests:
                return 0
            return max(1, math.ceil(hits[0] + self.window_seconds - now))

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
