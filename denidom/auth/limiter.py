import threading
import time


class TokenBucket:
    """Token bucket that refuses instead of sleeping when empty."""

    def __init__(self, capacity: int, window_seconds: int) -> None:
        self.capacity = capacity
        self.tokens = float(capacity)
        self.refill_rate = capacity / float(window_seconds)
        self.last = time.monotonic()
        self.lock = threading.Lock()

    def try_acquire(self, tokens: int = 1) -> bool:
        with self.lock:
            now = time.monotonic()
            self.tokens = min(
                self.capacity,
                self.tokens + (now - self.last) * self.refill_rate,
            )
            self.last = now
            if self.tokens >= tokens:
                self.tokens -= tokens
                return True
            return False


class RateLimiter:
    """One bucket per client key (usually the remote address)."""

    def __init__(self, capacity: int, window_seconds: int) -> None:
        self.capacity = capacity
        self.window_seconds = window_seconds
        self._buckets: dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    def allow(self, key: str) -> bool:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = TokenBucket(self.capacity, self.window_seconds)
                self._buckets[key] = bucket
        return bucket.try_acquire()

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()
