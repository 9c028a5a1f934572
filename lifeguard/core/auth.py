"""API key check for the ``/v1`` routes.

Callers identify themselves with ``X-API-Key``. The accepted keys come from
the app's ``APP_API_KEYS`` setting; failures are raised as
``AuthenticationAppError`` and rendered as 403 JSON bodies by the global
exception handler. The key itself is never logged, only a short hash.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Header, Request

from lifeguard.core.config import AppSettings
from lifeguard.core.errors import AuthenticationAppError
from lifeguard.core.state import get_app_settings

logger = logging.getLogger(__name__)


def _hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode()).hexdigest()[:16]


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ")
        {'key1', 'key2', 'key3'}
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def check_api_key(provided_key: str | None, app_settings: AppSettings) -> None:
    """Accept or reject ``provided_key`` under ``app_settings``.

    Raises:
        AuthenticationAppError: ``missing_api_key``, ``invalid_api_key`` or
            ``api_keys_not_configured``.
    """
    if not app_settings.api_key_required:
        return

    valid_keys = parse_api_keys(app_settings.api_keys)
    if not valid_keys:
        logger.error("auth.failed", extra={"reason": "api_keys_not_configured"})
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not provided_key:
        logger.warning("auth.failed", extra={"reason": "missing_api_key"})
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide the X-API-Key header.",
        )

    if provided_key not in valid_keys:
        logger.warning(
            "auth.failed",
            extra={"reason": "invalid_api_key", "api_key_hash": _hash_api_key(provided_key)},
        )
        raise AuthenticationAppError(code="invalid_api_key", message="Invalid API key")


async def verify_api_key(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency enforcing the API key of the running app's settings."""
    app_settings = get_app_settings(request).app
    check_api_key(x_api_key, app_settings)
    if app_settings.api_key_required:
        logger.debug("auth.success", extra={"api_key_hash": _hash_api_key(x_api_key or "")})
