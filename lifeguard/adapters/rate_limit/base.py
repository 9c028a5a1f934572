"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_after_ms: Milliseconds until the next request would be admitted
            (0 while budget remains).
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_after_ms: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for per-key rate limiters."""

    @property
    @abstractmethod
    def max_requests(self) -> int:
        """Maximum number of admissions per window."""

    @property
    @abstractmethod
    def window_ms(self) -> int:
        """Window length in milliseconds."""

    @abstractmethod
    def try_request(self, key: str) -> bool:
        """Admit or reject one call for ``key``.

        Args:
            key: Identifier for the limited action (endpoint, user action, caller).

        Returns:
            True when the call is admitted and recorded, False when rate limited.
        """
        raise NotImplementedError

    @abstractmethod
    def get_remaining_requests(self, key: str) -> int:
        """Return how many more calls ``key`` may make in the current window."""
        raise NotImplementedError

    @abstractmethod
    def get_time_until_reset(self, key: str) -> int:
        """Return milliseconds until ``key`` may be admitted again (0 if now)."""
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str) -> None:
        """Discard the recorded calls for ``key``."""
        raise NotImplementedError

    @abstractmethod
    def reset_all(self) -> None:
        """Discard the recorded calls for every key."""
        raise NotImplementedError

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Try one call for ``key`` and describe the outcome.

        Args:
            key: Unique identifier (e.g., API key, IP address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError
