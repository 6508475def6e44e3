# core/rate_limiter.py
"""
Call spacing for the Face++ API.

Face++ rejects bursts per API key regardless of how many callers we run, so
every comparison issued with one credential has to go through one limiter:

- IntervalRateLimiter: single process, lock + last-call timestamp
- RedisIntervalRateLimiter: several workers, one Redis key per credential
"""
import hashlib
import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL = 1.1


class IntervalRateLimiter:
    """
    Lets callers through one at a time, at least `min_interval` seconds apart.

    The wait happens while holding the lock, so a second caller cannot read
    the timestamp until the first one has been let through and updated it.
    """

    def __init__(
        self,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_call: Optional[float] = None

    def wait_turn(self) -> float:
        """
        Block until the caller may issue its request.

        Returns:
            Clock value at which the caller was let through
        """
        with self._lock:
            now = self._clock()
            if self._last_call is not None:
                remaining = self._last_call + self.min_interval - now
                if remaining > 0:
                    self._sleep(remaining)
                    now = self._clock()
            self._last_call = now
            return now

    def reset(self) -> None:
        with self._lock:
            self._last_call = None


class RedisIntervalRateLimiter:
    """
    Redis-backed variant for workers spread over several processes.

    A turn is the right to create `key` (SET NX) with a TTL equal to the
    interval; while the key lives, everybody else sleeps for its PTTL.
    """

    def __init__(
        self,
        client,
        key: str,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        poll_interval: float = 0.05,
    ):
        self.client = client
        self.key = key
        self.min_interval = min_interval
        self._sleep = sleep
        self._poll_interval = poll_interval
        self._interval_ms = max(1, int(round(min_interval * 1000)))

    def wait_turn(self) -> float:
        while True:
            if self.client.set(self.key, "1", nx=True, px=self._interval_ms):
                return time.monotonic()

            ttl_ms = self.client.pttl(self.key)
            # -2: expired between SET and PTTL, -1: key without TTL (should not happen)
            if ttl_ms == -1:
                logger.warning(f"Rate limit key {self.key} has no TTL, restoring it")
                self.client.pexpire(self.key, self._interval_ms)
                ttl_ms = self._interval_ms
            wait = ttl_ms / 1000.0 if ttl_ms and ttl_ms > 0 else self._poll_interval
            self._sleep(wait)

    def reset(self) -> None:
        self.client.delete(self.key)


def credential_key(api_key: str, prefix: str = "rate_limit:facepp") -> str:
    """Redis key shared by every worker using the same Face++ credential."""
    digest = hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:16]
    return f"{prefix}:{digest}"
