"""
tests/test_auth_redirect.py -- Integration tests for the access gate through the real ASGI stack.

The gate is installed as middleware around the whole app, so these tests hit
it the way a browser would. The client fixture uses follow_redirects=False:
we assert on redirect Location headers directly.

Coverage:
  - API paths without a credential -> 401 JSON envelope
  - Page paths without a credential -> 302 /login.html (even for unknown pages)
  - Exempt paths (/login.html, /api/verify) reachable without a credential
  - Credential shape only: any 64-char value passes, anything else does not
  - Authenticated pages render, and show the last login time
"""

from __future__ import annotations

import pytest
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.testclient import TestClient

from asgi import app


class TestGateRejections:
    def test_api_without_cookie_is_401(self, client: TestClient) -> None:
        """POST /api/tts with no cookie must return 401 {error}, not reach the route."""
        resp = client.post("/api/tts", json={"text": "hello"})
        assert resp.status_code == 401
        assert resp.json() == {"error": {"code": "unauthorized", "message": "Authentication required."}}

    def test_page_without_cookie_redirects_to_login(self, client: TestClient) -> None:
        """GET /dashboard.html with no cookie must redirect 302 to /login.html."""
        resp = client.get("/dashboard.html")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/login.html"

    @pytest.mark.parametrize("path", ["/", "/index.html", "/does-not-exist"])
    def test_every_page_is_gated(self, client: TestClient, path: str) -> None:
        resp = client.get(path)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/login.html"

    @pytest.mark.parametrize("path", ["/api/word", "/api/session", "/api/unknown"])
    def test_every_api_path_is_gated(self, client: TestClient, path: str) -> None:
        assert client.get(path).status_code == 401

    @pytest.mark.parametrize("value", ["true", "a" * 63, "a" * 65])
    def test_wrong_shape_cookie_is_rejected(self, client: TestClient, value: str) -> None:
        resp = client.get("/api/session", cookies={"authenticated": value})
        assert resp.status_code == 401

    def test_gate_runs_before_method_check(self, client: TestClient) -> None:
        """GET on a POST-only API route without a cookie is 401, not 405."""
        assert client.get("/api/tts").status_code == 401


class TestGateExemptions:
    def test_login_page_reachable_without_cookie(self, client: TestClient) -> None:
        resp = client.get("/login.html")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert 'id="login-form"' in resp.text

    def test_login_page_with_query_string_is_exempt(self, client: TestClient) -> None:
        assert client.get("/login.html?next=/").status_code == 200

    def test_verify_reachable_without_cookie(self, client: TestClient) -> None:
        """/api/verify answers on its own terms (401 wrong password), not the gate's."""
        resp = client.post("/api/verify", json={"password": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_credentials"

    def test_login_page_redirects_home_when_logged_in(
        self, client: TestClient, session_cookies: dict[str, str]
    ) -> None:
        resp = client.get("/login.html", cookies=session_cookies)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/"


class TestGateAuthorized:
    def test_any_64_char_value_is_accepted(self, client: TestClient) -> None:
        """No server-side session store: a well-shaped value is enough."""
        resp = client.get("/api/session", cookies={"authenticated": "z" * 64})
        assert resp.status_code == 200

    def test_index_renders_with_last_login(self, client: TestClient, session_cookies: dict[str, str]) -> None:
        resp = client.get("/", cookies=session_cookies)
        assert resp.status_code == 200
        assert 'id="lookup-form"' in resp.text
        assert "Last login: 2023-11-14 22:13 UTC" in resp.text

    def test_index_html_alias(self, client: TestClient, session_cookies: dict[str, str]) -> None:
        assert client.get("/index.html", cookies=session_cookies).status_code == 200

    def test_index_without_last_login_cookie(self, client: TestClient, session_cookies: dict[str, str]) -> None:
        resp = client.get("/", cookies={"authenticated": session_cookies["authenticated"]})
        assert resp.status_code == 200
        assert "Last login" not in resp.text

    def test_unknown_page_past_gate_is_404(self, client: TestClient, session_cookies: dict[str, str]) -> None:
        assert client.get("/dashboard.html", cookies=session_cookies).status_code == 404


class TestMiddlewareOrder:
    def test_trusted_host_is_outermost(self) -> None:
        """Host validation must run before the gate can answer with a redirect or 401."""
        assert app.user_middleware[0].cls is TrustedHostMiddleware
