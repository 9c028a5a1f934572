"""Pytest configuration and fixtures shared across all test modules.

This file is loaded by pytest before any test module, so the environment
variables below are in place before settings are first imported.
"""

import os

# CRITICAL: Set this before any imports that might load settings
# This prevents the .env file from being loaded during tests
os.environ["TESTING"] = "true"

os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("LOG_FORMAT", "json")

import pytest
from fastapi.testclient import TestClient

from lifeguard.core.app_factory import create_app


class FakeClock:
    """Deterministic clock (UNIX seconds) for window arithmetic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance_ms(self, milliseconds: float) -> None:
        self.current += milliseconds / 1000.0


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client(fake_clock: FakeClock) -> TestClient:
    """Client for a fresh app whose limiters run on the fake clock."""
    return TestClient(create_app(clock=fake_clock))


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-API-Key": "test-api-key-123"}
