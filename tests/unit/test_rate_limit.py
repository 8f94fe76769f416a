"""Unit tests for the fixed-interval rate limiter."""

import pytest

from manual_rag.ingestion.rate_limit import RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_first_call_does_not_wait() -> None:
    clock = FakeClock()
    limiter = RateLimiter(0.2, clock=clock, sleep=clock.sleep)
    assert limiter.wait() == 0.0
    assert clock.sleeps == []


def test_back_to_back_calls_are_spaced() -> None:
    clock = FakeClock()
    limiter = RateLimiter(0.2, clock=clock, sleep=clock.sleep)
    limiter.wait()
    assert limiter.wait() == pytest.approx(0.2)
    clock.now += 0.05
    assert limiter.wait() == pytest.approx(0.15)


def test_no_wait_after_interval_elapsed() -> None:
    clock = FakeClock()
    limiter = RateLimiter(0.2, clock=clock, sleep=clock.sleep)
    limiter.wait()
    clock.now += 1.0
    assert limiter.wait() == 0.0


def test_reset_forgets_last_call() -> None:
    clock = FakeClock()
    limiter = RateLimiter(0.2, clock=clock, sleep=clock.sleep)
    limiter.wait()
    limiter.reset()
    assert limiter.wait() == 0.0


def test_negative_interval_rejected() -> None:
    with pytest.raises(ValueError):
        RateLimiter(-1)
