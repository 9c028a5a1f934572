"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limiting adapters into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency factory only.
- Explicit ownership: the limiter registry is created by the app factory and
  stored on ``app.state``; nothing here keeps a module-level limiter.
- Safe defaults: disabled via settings when needed (e.g. behind a gateway).

Rate limiting strategy:
- Sliding window per caller and scope (``default``, ``api``, ``search``, ``upload``).
- Caller is the API key; if missing (e.g., auth disabled), the client IP.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated, Awaitable, Callable

from fastapi import Header, Request

from lifeguard.adapters.rate_limit.registry import DEFAULT_SCOPE, RateLimiterRegistry
from lifeguard.core.errors import RateLimitAppError
from lifeguard.core.state import get_app_settings

logger = logging.getLogger(__name__)


def get_rate_limiters(request: Request) -> RateLimiterRegistry:
    """Return the registry owned by the running application.

    Raises:
        RuntimeError: If the app was not built by ``create_app``.
    """

    registry = getattr(request.app.state, "rate_limiters", None)
    if registry is None:
        raise RuntimeError("rate limiter registry is not configured on app.state")
    return registry


def build_rate_limit_key(request: Request, x_api_key: str | None) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.
        x_api_key: API key value from the X-API-Key header.

    Returns:
        str: Namespaced limiter key.
    """

    if x_api_key:
        return f"api_key:{x_api_key}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing secrets."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limited(scope: str = DEFAULT_SCOPE) -> Callable[..., Awaitable[None]]:
    """Create a FastAPI dependency enforcing the limit of ``scope``.

    Usage:
        @router.post("/upload", dependencies=[Depends(rate_limited("upload"))])

    Args:
        scope: Name of the limiter scope in the app's registry.

    Returns:
        Async dependency raising ``RateLimitAppError`` (HTTP 429) once the
        caller exceeds the scope.
    """

    async def enforce_rate_limit(
        request: Request,
        x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
    ) -> None:
        app_settings = get_app_settings(request).app
        if not app_settings.rate_limit_enabled:
            return

        limiter = get_rate_limiters(request).get(scope)
        key = build_rate_limit_key(request, x_api_key)
        log_fields = {
            "scope": scope,
            "key_type": "api_key" if x_api_key else "ip",
            "key_hash": _hash_limiter_key(key),
            "window_ms": limiter.window_ms,
        }

        result = limiter.consume(key)
        if result.allowed:
            logger.info(
                "rate_limit.allowed",
                extra={**log_fields, "limit": result.limit, "remaining": result.remaining},
            )
            return

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                **log_fields,
                "limit": result.limit,
                "remaining": result.remaining,
                "retry_after_s": retry_after,
            },
        )

        headers: dict[str, str] = {}
        if app_settings.rate_limit_include_headers:
            headers["Retry-After"] = str(retry_after)
            headers["X-RateLimit-Limit"] = str(result.limit)
            headers["X-RateLimit-Remaining"] = str(result.remaining)
            headers["X-RateLimit-Reset"] = str(result.reset_after_ms)

        raise RateLimitAppError(
            code="rate_limit_exceeded",
            message="Rate limit exceeded. Try again later.",
            details={
                "scope": scope,
                "limit": result.limit,
                "reset_after_ms": result.reset_after_ms,
                "retry_after_s": retry_after,
            },
            headers=headers,
        )

    return enforce_rate_limit
