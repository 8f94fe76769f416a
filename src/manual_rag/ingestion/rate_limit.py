"""Fixed-interval request scheduling for rate-limited providers."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable


class RateLimiter:
    """Let at most one caller through every *interval* seconds.

    ``wait()`` blocks until the interval since the previous permitted call
    has elapsed.  The first call never waits.  Clock and sleep are
    injectable so the policy can be tested without real delays.
    """

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None
        self._lock = threading.Lock()

    def wait(self) -> float:
        """Block until the next slot; return the seconds spent waiting."""
        with self._lock:
            waited = 0.0
            if self._last is not None:
                remaining = self._last + self.interval - self._clock()
                if remaining > 0:
                    self._sleep(remaining)
                    waited = remaining
            self._last = self._clock()
            return waited

    def reset(self) -> None:
        with self._lock:
            self._last = None
