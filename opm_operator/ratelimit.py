"""Work-queue rate limiters used to pace controller requeues."""

from __future__ import annotations

import threading
import time
from collections import Counter
from datetime import timedelta
from typing import Callable, Hashable

_MAX_EXPONENT = 62


class ItemExponentialFailureRateLimiter:
    """Per-item exponential backoff: base * 2**failures, capped at max_delay."""

    def __init__(self, base_delay: timedelta, max_delay: timedelta) -> None:
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._failures: Counter[Hashable] = Counter()
        self._lock = threading.Lock()

    def when(self, item: Hashable) -> timedelta:
        """Delay before retrying ``item``; each call counts as one more failure."""
        with self._lock:
            exponent = self._failures[item]
            self._failures[item] += 1
        if exponent > _MAX_EXPONENT:
            return self.max_delay
        seconds = self.base_delay.total_seconds() * (2.0 ** exponent)
        if seconds > self.max_delay.total_seconds():
            return self.max_delay
        return self.base_delay * (1 << exponent)

    def forget(self, item: Hashable) -> None:
        """Clear the failure history of ``item``."""
        with self._lock:
            self._failures.pop(item, None)

    def num_requeues(self, item: Hashable) -> int:
        """Number of failures recorded for ``item``."""
        with self._lock:
            return self._failures.get(item, 0)


class BucketRateLimiter:
    """Overall token bucket: ``rate`` tokens per second, up to ``burst`` stored.

    The delay depends only on the shared bucket; reservations are also
    counted per item so that ``num_requeues`` reports them until forgotten.
    """

    def __init__(
        self,
        rate: float,
        burst: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.rate = float(rate)
        self.burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._last = clock()
        self._reservations: Counter[Hashable] = Counter()
        self._lock = threading.Lock()

    def when(self, item: Hashable) -> timedelta:
        """Reserve one token and return how long to wait for it."""
        with self._lock:
            now = self._clock()
            elapsed = max(0.0, now - self._last)
            self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
            self._last = now
            self._tokens -= 1.0
            self._reservations[item] += 1
            if self._tokens >= 0:
                return timedelta(0)
            return timedelta(seconds=-self._tokens / self.rate)

    def forget(self, item: Hashable) -> None:
        """Clear the reservation count of ``item``; the bucket itself is shared."""
        with self._lock:
            self._reservations.pop(item, None)

    def num_requeues(self, item: Hashable) -> int:
        """Number of tokens reserved for ``item`` since it was last forgotten."""
        with self._lock:
            return self._reservations.get(item, 0)


class MaxOfRateLimiter:
    """Combines limiters, always taking the longest delay."""

    def __init__(self, *limiters) -> None:
        if not limiters:
            raise ValueError("at least one rate limiter is required")
        self.limiters = limiters

    def when(self, item: Hashable) -> timedelta:
        """Longest delay any of the limiters asks for."""
        return max(limiter.when(item) for limiter in self.limiters)

    def forget(self, item: Hashable) -> None:
        """Forget ``item`` in every limiter."""
        for limiter in self.limiters:
            limiter.forget(item)

    def num_requeues(self, item: Hashable) -> int:
        """Highest requeue count any of the limiters reports."""
        return max(limiter.num_requeues(item) for limiter in self.limiters)


def default_controller_rate_limiter() -> MaxOfRateLimiter:
    """Per-item backoff from 1s to 5m combined with a 10/s, burst 100 bucket."""
    return MaxOfRateLimiter(
        ItemExponentialFailureRateLimiter(timedelta(seconds=1), timedelta(minutes=5)),
        BucketRateLimiter(rate=10, burst=100),
    )