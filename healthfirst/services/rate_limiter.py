import time
from threading import Lock
from typing import Callable


class SlidingWindowRateLimiter:
    """Per-key attempt counter over a sliding time window.

    Instances hold their own state; callers decide the scope (one per
    endpoint group, one per test).
    """

    def __init__(self, max_attempts: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        if max_attempts < 1:
            raise ValueError('max_attempts must be at least 1')
        if window_seconds < 1:
            raise ValueError('window_seconds must be at least 1')
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.clock = clock
        self._attempts: dict[str, list[float]] = {}
        self._lock = Lock()

    def _recent(self, key: str, now: float) -> list[float]:
        window_start = now - self.window_seconds
        attempts = [attempt for attempt in self._attempts.get(key, []) if attempt > window_start]
        if attempts:
            self._attempts[key] = attempts
        else:
            self._attempts.pop(key, None)
        return attempts

    def is_allowed(self, key: str) -> bool:
        """Record an attempt for ``key`` and report whether it fits the window."""
        with self._lock:
            now = self.clock()
            attempts = self._recent(key, now)
            if len(attempts) >= self.max_attempts:
                return False
            attempts.append(now)
            self._attempts[key] = attempts
            return True

    def remaining(self, key: str) -> int:
        with self._lock:
            return max(0, self.max_attempts - len(self._recent(key, self.clock())))

    def reset(self, key: str) -> None:
        with self._lock:
            self._attempts.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()
