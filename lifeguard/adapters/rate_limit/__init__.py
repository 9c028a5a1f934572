"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
an in-memory sliding-window limiter and later migrate to Redis or another
shared store without changing the API layer.
"""

from lifeguard.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from lifeguard.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from lifeguard.adapters.rate_limit.registry import RateLimiterRegistry

__all__ = [
    "AbstractRateLimiter",
    "InMemorySlidingWindowRateLimiter",
    "RateLimitResult",
    "RateLimiterRegistry",
]
