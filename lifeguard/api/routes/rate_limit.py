from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from lifeguard.core.auth import verify_api_key
from lifeguard.core.rate_limit import build_rate_limit_key, get_rate_limiters
from lifeguard.core.state import get_app_settings
from lifeguard.schemas.sanitize import RateLimitStatusResponse, ScopeStatus

router = APIRouter(tags=["Rate limit"])


@router.get(
    "/rate-limit/status",
    response_model=RateLimitStatusResponse,
    dependencies=[Depends(verify_api_key)],
)
async def rate_limit_status(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> RateLimitStatusResponse:
    """Report the caller's remaining budget in every scope.

    Read-only: checking the status does not consume any budget.
    """

    registry = get_rate_limiters(request)
    key = build_rate_limit_key(request, x_api_key)
    scopes = {
        scope: ScopeStatus(
            limit=limiter.max_requests,
            window_ms=limiter.window_ms,
            remaining=limiter.get_remaining_requests(key),
            reset_after_ms=limiter.get_time_until_reset(key),
        )
        for scope, limiter in registry.items()
    }
    enabled = get_app_settings(request).app.rate_limit_enabled
    return RateLimitStatusResponse(enabled=enabled, scopes=scopes)
