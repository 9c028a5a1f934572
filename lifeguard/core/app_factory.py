"""Application factory for the FastAPI app.

Builds the long-lived collaborators (rate limiter registry, PII redactor)
once and attaches them to ``app.state`` so routes receive them explicitly.
"""

from __future__ import annotations

from typing import Callable

from fastapi import FastAPI

from lifeguard.adapters.rate_limit.registry import RateLimiterRegistry
from lifeguard.api.routes import health_router, rate_limit_router, sanitize_router
from lifeguard.core.config import Settings, settings as default_settings
from lifeguard.core.exception_handlers import setup_exception_handlers
from lifeguard.core.logging import configure_logging
from lifeguard.core.middleware import request_id_middleware
from lifeguard.core.openapi import apply_openapi_customizations
from lifeguard.services.pii import PIIRedactor


def create_app(
    app_settings: Settings | None = None,
    *,
    clock: Callable[[], float] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to build from; defaults to the global settings.
        clock: Optional time source for the rate limiters (tests).

    Returns:
        Configured app with middleware, handlers, routers and docs.
    """
    cfg = app_settings or default_settings

    redactor = PIIRedactor.from_settings(cfg.pii)

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log, pii_terms=redactor.sensitive_terms)

    app = FastAPI(
        title="LifeGuard Safeguards API",
        description=(
            "Privacy and abuse safeguards for the life-management platform: "
            "best-effort PII redaction of JSON documents and model prompts, "
            "financial field masking, and sliding-window rate limiting. "
            "Requires X-API-Key."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.state.settings = cfg
    app.state.rate_limiters = RateLimiterRegistry.from_settings(cfg.app, clock=clock)
    app.state.pii_redactor = redactor

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(sanitize_router, prefix="/v1")
    app.include_router(rate_limit_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
