import threading
from unittest.mock import MagicMock

import pytest

from src.core.rate_limiter import IntervalRateLimiter, RedisIntervalRateLimiter, credential_key


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def test_first_call_is_not_delayed(clock):
    limiter = IntervalRateLimiter(min_interval=1.1, clock=clock, sleep=clock.sleep)

    assert limiter.wait_turn() == 100.0
    assert clock.sleeps == []


def test_back_to_back_calls_are_spaced(clock):
    limiter = IntervalRateLimiter(min_interval=1.1, clock=clock, sleep=clock.sleep)

    times = [limiter.wait_turn() for _ in range(4)]

    gaps = [b - a for a, b in zip(times, times[1:])]
    assert all(gap == pytest.approx(1.1) for gap in gaps)


def test_no_wait_when_interval_already_elapsed(clock):
    limiter = IntervalRateLimiter(min_interval=1.1, clock=clock, sleep=clock.sleep)

    limiter.wait_turn()
    clock.now += 5.0
    limiter.wait_turn()

    assert clock.sleeps == []


def test_reset_forgets_last_call(clock):
    limiter = IntervalRateLimiter(min_interval=1.1, clock=clock, sleep=clock.sleep)

    limiter.wait_turn()
    limiter.reset()
    limiter.wait_turn()

    assert clock.sleeps == []


def test_negative_interval_rejected():
    with pytest.raises(ValueError):
        IntervalRateLimiter(min_interval=-1)


def test_concurrent_callers_are_serialized():
    """Real clock: threads sharing one limiter never get through closer than the interval."""
    limiter = IntervalRateLimiter(min_interval=0.05)
    times = []
    times_lock = threading.Lock()

    def worker():
        for _ in range(3):
            t = limiter.wait_turn()
            with times_lock:
                times.append(t)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    times.sort()
    assert len(times) == 12
    gaps = [b - a for a, b in zip(times, times[1:])]
    assert min(gaps) >= 0.05 - 1e-3


# ============================================================================
# Redis limiter
# ============================================================================

def test_redis_limiter_takes_free_slot_immediately():
    client = MagicMock()
    client.set.return_value = True
    sleep = MagicMock()
    limiter = RedisIntervalRateLimiter(client, key="rl:test", min_interval=1.1, sleep=sleep)

    limiter.wait_turn()

    client.set.assert_called_once_with("rl:test", "1", nx=True, px=1100)
    sleep.assert_not_called()


def test_redis_limiter_waits_for_key_ttl():
    client = MagicMock()
    client.set.side_effect = [None, True]
    client.pttl.return_value = 300
    sleep = MagicMock()
    limiter = RedisIntervalRateLimiter(client, key="rl:test", min_interval=1.1, sleep=sleep)

    limiter.wait_turn()

    sleep.assert_called_once_with(0.3)
    assert client.set.call_count == 2


def test_redis_limiter_restores_missing_ttl():
    client = MagicMock()
    client.set.side_effect = [None, True]
    client.pttl.return_value = -1
    sleep = MagicMock()
    limiter = RedisIntervalRateLimiter(client, key="rl:test", min_interval=1.1, sleep=sleep)

    limiter.wait_turn()

    client.pexpire.assert_called_once_with("rl:test", 1100)
    sleep.assert_called_once_with(1.1)


def test_redis_limiter_polls_when_key_just_expired():
    client = MagicMock()
    client.set.side_effect = [None, True]
    client.pttl.return_value = -2
    sleep = MagicMock()
    limiter = RedisIntervalRateLimiter(client, key="rl:test", sleep=sleep, poll_interval=0.05)

    limiter.wait_turn()

    sleep.assert_called_once_with(0.05)


def test_credential_key_is_stable_and_hides_the_key():
    key = credential_key("secret-api-key")

    assert key == credential_key("secret-api-key")
    assert key != credential_key("another-key")
    assert key.startswith("rate_limit:facepp:")
    assert "secret-api-key" not in key
