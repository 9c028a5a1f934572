"""OpenAPI customization: API key security scheme and tag metadata.

Kept apart from the app factory so documentation concerns stay isolated.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_TAGS = [
    {
        "name": "Sanitize",
        "description": "Best-effort PII redaction and financial field masking.",
    },
    {
        "name": "Rate limit",
        "description": "Caller budget across rate limit scopes.",
    },
    {
        "name": "Health",
        "description": "Liveness checks (no API key required).",
    },
]

_UNAUTHENTICATED_SUFFIXES = ("/health",)


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to document ``X-API-Key`` auth.

    Every operation requires the key by default; health endpoints are exempted
    with ``security: []``.
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        security_schemes = schema.setdefault("components", {}).setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {"type": "apiKey", "in": "header", "name": "X-API-Key"},
        )
        schema.setdefault("security", [{"ApiKeyAuth": []}])

        tags = schema.setdefault("tags", [])
        known = {t.get("name") for t in tags}
        tags.extend(tag for tag in _TAGS if tag["name"] not in known)

        for path, methods in schema.get("paths", {}).items():
            if not path.endswith(_UNAUTHENTICATED_SUFFIXES):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
