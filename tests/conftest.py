"""
tests/conftest.py -- Shared test fixtures for SessionGate.

This module provides:
  - server: TestClient against the real FastAPI app (lifespan included)
  - transport: AuthTransport whose HTTP session IS the TestClient, so the
    client code talks to the real route handlers and the TestClient's cookie
    jar acts as the browser cookie store

TestClient uses base_url http://localhost because TrustedHostMiddleware only
admits the configured hosts; the default "testserver" host would get a 400.

The DEBUG env var must be set before any api/auth import so get_settings()
auto-generates SECRET_KEY and defaults SECURE_COOKIES to false -- a Secure
cookie would never be replayed over the plain-HTTP test transport.
"""

from __future__ import annotations

import os
from collections.abc import Generator

# CRITICAL: Set before any api/auth/core import; get_settings() is cached.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.pop("LOGIN_DELAY_SECONDS", None)

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from client.transport import AuthTransport

BASE_URL = "http://localhost"


@pytest.fixture
def server() -> Generator[TestClient, None, None]:
    """Fresh TestClient (and therefore a fresh, empty cookie jar) per test."""
    limiter.reset()
    with TestClient(app, base_url=BASE_URL, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture
def transport(server: TestClient) -> AuthTransport:
    """AuthTransport routed through the in-process app."""
    return AuthTransport(BASE_URL, session=server)
