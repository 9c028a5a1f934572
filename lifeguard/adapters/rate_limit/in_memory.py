"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit,
  and restarting the process clears all state.
- Thread-safe: the read-prune-append sequence runs under a lock so concurrent
  callers on the same key can never over-admit.
"""

from __future__ import annotations

import math
import threading
import time
from typing import Callable

from lifeguard.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting calls per key over a trailing time window.

    Every check looks back ``window_ms`` milliseconds from "now" instead of
    resetting on fixed boundaries. Timestamps older than the window are pruned
    lazily on access; a key's entry is only removed by :meth:`reset` or
    :meth:`reset_all`.

    Example:
        >>> limiter = InMemorySlidingWindowRateLimiter(max_requests=10, window_ms=60000)
        >>> if limiter.try_request("search"):
        ...     run_search()
    """

    def __init__(
        self,
        *,
        max_requests: int = 10,
        window_ms: int = 60000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            max_requests: Maximum number of admissions per window.
            window_ms: Size of the sliding window in milliseconds.
            clock: Time source returning UNIX time in seconds.

        Raises:
            ValueError: If max_requests or window_ms are invalid.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        self._max_requests = max_requests
        self._window_ms = window_ms
        self._clock = clock
        self._lock = threading.RLock()
        self._requests_by_key: dict[str, list[float]] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemorySlidingWindowRateLimiter(max_requests={self._max_requests}, "
            f"window_ms={self._window_ms}, keys={len(self._requests_by_key)})"
        )

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _pruned(self, key: str, now_ms: float) -> list[float]:
        """Return the timestamps for key that are still inside the window.

        The stored list is left untouched; callers decide whether to persist.
        """
        return [
            ts for ts in self._requests_by_key.get(key, ()) if now_ms - ts < self._window_ms
        ]

    def _time_until_reset(self, valid: list[float], now_ms: float) -> int:
        if len(valid) < self._max_requests:
            return 0
        oldest = min(valid)
        wait_ms = self._window_ms - (now_ms - oldest)
        return max(0, min(self._window_ms, int(math.ceil(wait_ms))))

    def try_request(self, key: str) -> bool:
        return self.consume(key).allowed

    def get_remaining_requests(self, key: str) -> int:
        with self._lock:
            valid = self._pruned(key, self._now_ms())
        return max(0, self._max_requests - len(valid))

    def get_time_until_reset(self, key: str) -> int:
        with self._lock:
            now_ms = self._now_ms()
            valid = self._pruned(key, now_ms)
        return self._time_until_reset(valid, now_ms)

    def reset(self, key: str) -> None:
        with self._lock:
            self._requests_by_key.pop(key, None)

    def reset_all(self) -> None:
        with self._lock:
            self._requests_by_key.clear()

    def consume(self, key: str) -> RateLimitResult:
        """Try one call for the provided key.

        This method both checks the current window usage and records the call
        if it is admitted. A rejected call still persists the pruned history.

        Args:
            key: Unique identifier for rate limiting (e.g., API key).

        Returns:
            RateLimitResult with allowance decision and metadata.
        """
        with self._lock:
            now_ms = self._now_ms()
            valid = self._pruned(key, now_ms)

            if len(valid) < self._max_requests:
                valid.append(now_ms)
                self._requests_by_key[key] = valid
                return RateLimitResult(
                    allowed=True,
                    limit=self._max_requests,
                    remaining=max(0, self._max_requests - len(valid)),
                    reset_after_ms=self._time_until_reset(valid, now_ms),
                    retry_after_seconds=None,
                )

            self._requests_by_key[key] = valid
            reset_after_ms = self._time_until_reset(valid, now_ms)
            return RateLimitResult(
                allowed=False,
                limit=self._max_requests,
                remaining=0,
                reset_after_ms=reset_after_ms,
                retry_after_seconds=int(math.ceil(reset_after_ms / 1000)),
            )
