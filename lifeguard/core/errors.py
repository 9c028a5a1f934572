"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Each error class
carries the HTTP status the exception handlers map it to.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    max_value: int
    actual_value: int
    scope: str
    available_scopes: list[str]
    limit: int
    reset_after_ms: int
    retry_after_s: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    http_status: ClassVar[int] = 400

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""

    http_status: ClassVar[int] = 403


@dataclass
class RateLimitAppError(AppError):
    """Raised when a caller has used up its budget in a rate limit scope.

    Attributes:
        headers: Response headers (``Retry-After``, ``X-RateLimit-*``); empty
            when the app is configured not to expose them.
    """

    http_status: ClassVar[int] = 429

    headers: dict[str, str] | None = None
