from __future__ import annotations

from lifeguard.api.routes.health import router as health_router
from lifeguard.api.routes.rate_limit import router as rate_limit_router
from lifeguard.api.routes.sanitize import router as sanitize_router

__all__ = ["health_router", "rate_limit_router", "sanitize_router"]
