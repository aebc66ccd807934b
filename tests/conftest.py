"""
tests/conftest.py -- Shared test fixtures for WordGate integration tests.

This module provides:
  - ALLOWED_PASSWORD / SESSION_TOKEN: known-good inputs for the fixtures below
  - _patch_lifespan(): wires test settings and issuer into app.state, bypassing real startup
  - client: TestClient with follow_redirects=False for gate, page, and API tests

Environment variables must be set before any api/ import: the login rate limit
string is read from get_settings() when api/routes/auth.py is imported, and a
shared in-memory limiter would otherwise throttle the login tests.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any api/ import -- see module docstring.
os.environ.setdefault("LOGIN_RATE_LIMIT", "5/minute")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from asgi import app
from auth.models import AllowList
from auth.tokens import CredentialIssuer
from core.config import Settings

ALLOWED_PASSWORD = "hunter2"
SESSION_TOKEN = "ab" * 32


def _patch_lifespan(settings: Settings):
    """Return an async context manager that replaces the real lifespan.

    Builds the issuer from the given settings exactly as the real lifespan
    does, without touching the process environment.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.issuer = CredentialIssuer(AllowList.from_csv(settings.access_passwords))
        yield

    return test_lifespan


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Yield a TestClient over the full ASGI app (API + web pages).

    follow_redirects=False is essential: gate tests assert on redirect
    *locations*, which are invisible once the client follows the redirect.
    Function-scoped so cookies and app.state never leak between tests; the
    shared limiter is reset so login attempts are counted per test.
    """
    limiter.reset()
    settings = Settings(
        access_passwords=f"{ALLOWED_PASSWORD}, correct horse ",
        azure_speech_key="test-speech-key",
        gemini_api_key="test-gemini-key",
    )
    app.router.lifespan_context = _patch_lifespan(settings)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as test_client:
        yield test_client


@pytest.fixture
def session_cookies() -> dict[str, str]:
    """Cookies of a logged-in browser: a well-shaped credential and a login time."""
    return {"authenticated": SESSION_TOKEN, "lastLogin": "1700000000000"}
