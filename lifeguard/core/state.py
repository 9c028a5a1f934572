"""Per-application settings lookup.

Routes, dependencies and middleware read configuration through the running
application instead of the module-level ``settings`` object, so an app built
with ``create_app(Settings(...))`` behaves according to those settings.
"""

from __future__ import annotations

from fastapi import Request

from lifeguard.core.config import Settings, settings as default_settings


def get_app_settings(request: Request) -> Settings:
    """Return the settings the current app was built from.

    Falls back to the process-wide settings for apps not built by
    ``create_app`` (e.g. bare ``FastAPI()`` instances in tests).
    """

    return getattr(request.app.state, "settings", None) or default_settings
