"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file and os.getenv("TESTING", "").lower() != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) populates values from environment variables, but
    static type checkers treat fields as constructor arguments.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_pii_settings() -> "PIISettings":
    return PIISettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-caller rate limiting on /v1 routes",
    )
    rate_limit_requests: int = Field(
        10,
        description="Maximum requests per window for the 'default' scope",
        ge=1,
    )
    rate_limit_window_ms: int = Field(
        60000,
        description="Sliding window size in milliseconds (shared by all scopes)",
        ge=1,
    )
    rate_limit_api_requests: int = Field(
        30,
        description="Maximum requests per window for the 'api' scope",
        ge=1,
    )
    rate_limit_search_requests: int = Field(
        20,
        description="Maximum requests per window for the 'search' scope",
        ge=1,
    )
    rate_limit_upload_requests: int = Field(
        5,
        description="Maximum requests per window for the 'upload' scope",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class PIISettings(BaseSettings):
    """PII redaction configuration.

    ``extra_terms`` extends the built-in sensitive key list so deployments can
    cover their own data domain (e.g. ``policy_number,vin``).
    """

    extra_terms: str | None = Field(
        None,
        description="Comma-separated key fragments to treat as PII in addition to the defaults",
    )
    placeholder_prefix: str = Field(
        "ANON_",
        description="Prefix of the random token replacing redacted values",
    )
    anonymized_name: str = Field(
        "User",
        description="Replacement for names found in free-text prompts",
    )
    anonymized_email: str = Field(
        "user@anonymized.com",
        description="Replacement for the caller's email in free-text prompts",
    )
    max_prompt_chars: int = Field(
        20000,
        description="Maximum prompt length accepted by the prompt sanitization endpoint",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="PII_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: 'json' or 'plain'")
    output: str = Field("stdout", description="Log output: 'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the correlation id",
    )
    scrub_messages: bool = Field(
        True,
        description="Replace emails, phone/card/SSN numbers and large amounts in log messages",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    pii: PIISettings = Field(default_factory=_build_pii_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()
