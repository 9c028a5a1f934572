from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness check used by load balancers; requires no API key."""

    registry = getattr(request.app.state, "rate_limiters", None)
    return {
        "status": "ok",
        "rate_limit_scopes": sorted(registry) if registry is not None else [],
    }
