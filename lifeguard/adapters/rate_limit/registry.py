"""Named rate limiter scopes.

A registry is built once by the application factory and handed to the call
sites that need it (via ``app.state``), so there is no process-wide limiter
hidden in a module global.
"""

from __future__ import annotations

from typing import Callable, ItemsView, Iterator, Mapping

from lifeguard.adapters.rate_limit.base import AbstractRateLimiter
from lifeguard.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from lifeguard.core.config import AppSettings
from lifeguard.core.errors import ValidationAppError

DEFAULT_SCOPE = "default"


class RateLimiterRegistry:
    """Lookup of independent limiters by scope name (e.g. ``api``, ``upload``)."""

    def __init__(self, limiters: Mapping[str, AbstractRateLimiter]) -> None:
        if not limiters:
            raise ValueError("at least one rate limiter scope is required")
        self._limiters = dict(limiters)

    def __contains__(self, scope: object) -> bool:
        return scope in self._limiters

    def __iter__(self) -> Iterator[str]:
        return iter(self._limiters)

    def items(self) -> ItemsView[str, AbstractRateLimiter]:
        return self._limiters.items()

    def get(self, scope: str) -> AbstractRateLimiter:
        """Return the limiter for ``scope``.

        Raises:
            ValidationAppError: If the scope is not configured.
        """
        limiter = self._limiters.get(scope)
        if limiter is None:
            raise ValidationAppError(
                code="unknown_rate_limit_scope",
                message=f"Unknown rate limit scope: {scope}",
                details={"scope": scope, "available_scopes": sorted(self._limiters)},
            )
        return limiter

    def reset_all(self) -> None:
        """Clear recorded calls in every scope."""
        for limiter in self._limiters.values():
            limiter.reset_all()

    @classmethod
    def from_settings(
        cls,
        app_settings: AppSettings,
        *,
        clock: Callable[[], float] | None = None,
    ) -> "RateLimiterRegistry":
        """Build the standard scopes from application settings.

        Args:
            app_settings: Resolved ``APP_*`` settings.
            clock: Optional time source shared by every limiter (tests).

        Returns:
            Registry with ``default``, ``api``, ``search`` and ``upload`` scopes.
        """
        limits = {
            DEFAULT_SCOPE: app_settings.rate_limit_requests,
            "api": app_settings.rate_limit_api_requests,
            "search": app_settings.rate_limit_search_requests,
            "upload": app_settings.rate_limit_upload_requests,
        }
        extra = {"clock": clock} if clock is not None else {}
        return cls(
            {
                scope: InMemorySlidingWindowRateLimiter(
                    max_requests=limit,
                    window_ms=app_settings.rate_limit_window_ms,
                    **extra,
                )
                for scope, limit in limits.items()
            }
        )
