"""
tests/test_auth_routes.py -- Integration tests for the /auth endpoints.

These run through the full ASGI stack (TrustedHost, slowapi, dependency
injection, exception handlers) with the server fixture, whose cookie jar
persists across requests within one test like a browser's does.

Coverage:
  - /auth/check: empty body without a cookie, username with one
  - /auth/login: 200 + Set-Cookie (HttpOnly, no expiry) for any pair
  - /auth/login: 400 envelope for missing/malformed Authorization
  - /auth/logout: clears the cookie, idempotent without one
  - Tampered cookie and cookie signed with another key read as anonymous
  - Rate limiting returns the 429 envelope
  - /health liveness
"""

from __future__ import annotations

import base64

from fastapi.testclient import TestClient
from jose import jwt

from auth.identity import decode_identity, encode_identity
from core.config import get_settings


def _basic(user: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


def _set_cookie_headers(resp) -> list[str]:
    return [v for k, v in resp.headers.multi_items() if k.lower() == "set-cookie"]


class TestCheck:
    def test_no_cookie_returns_empty_200(self, server: TestClient) -> None:
        """No session is 200 with an empty body, not 401."""
        resp = server.get("/auth/check")
        assert resp.status_code == 200
        assert resp.text == ""

    def test_check_after_login_returns_username(self, server: TestClient) -> None:
        server.get("/auth/login", headers=_basic("alice", "x"))
        resp = server.get("/auth/check")
        assert resp.status_code == 200
        assert resp.text == "alice"

    def test_check_is_not_cached(self, server: TestClient) -> None:
        assert server.get("/auth/check").headers["cache-control"] == "no-store"

    def test_tampered_cookie_reads_as_anonymous(self, server: TestClient) -> None:
        name = get_settings().cookie_name
        forged = encode_identity("alice")[:-4] + "AAAA"
        server.cookies.set(name, forged)
        resp = server.get("/auth/check")
        assert resp.status_code == 200
        assert resp.text == ""

    def test_cookie_signed_with_other_key_reads_as_anonymous(self, server: TestClient) -> None:
        name = get_settings().cookie_name
        server.cookies.set(name, jwt.encode({"sub": "mallory"}, "k" * 40, algorithm="HS256"))
        assert server.get("/auth/check").text == ""


class TestLogin:
    def test_any_pair_succeeds(self, server: TestClient) -> None:
        resp = server.get("/auth/login", headers=_basic("alice", "secret"))
        assert resp.status_code == 200
        assert resp.text == "alice"
        assert resp.headers["cache-control"] == "no-store"

    def test_sets_httponly_session_cookie(self, server: TestClient) -> None:
        """The cookie carries the signed username and has no Max-Age/Expires."""
        resp = server.get("/auth/login", headers=_basic("alice", "secret"))
        name = get_settings().cookie_name
        headers = [h for h in _set_cookie_headers(resp) if h.startswith(f"{name}=")]
        assert len(headers) == 1
        header = headers[0].lower()
        assert "httponly" in header
        assert "max-age" not in header
        assert "expires" not in header
        assert decode_identity(server.cookies.get(name)) == "alice"

    def test_second_login_overwrites_identity(self, server: TestClient) -> None:
        server.get("/auth/login", headers=_basic("alice", "x"))
        server.get("/auth/login", headers=_basic("bob", "y"))
        assert server.get("/auth/check").text == "bob"

    def test_missing_header_returns_400(self, server: TestClient) -> None:
        resp = server.get("/auth/login")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "malformed_credentials"
        assert get_settings().cookie_name not in server.cookies

    def test_malformed_header_returns_400(self, server: TestClient) -> None:
        resp = server.get("/auth/login", headers={"Authorization": "Basic %%%"})
        assert resp.status_code == 400

    def test_wrong_scheme_returns_400(self, server: TestClient) -> None:
        resp = server.get("/auth/login", headers={"Authorization": "Bearer abc.def.ghi"})
        assert resp.status_code == 400

    def test_failed_login_keeps_existing_identity(self, server: TestClient) -> None:
        server.get("/auth/login", headers=_basic("alice", "x"))
        server.get("/auth/login")
        assert server.get("/auth/check").text == "alice"


class TestLogout:
    def test_logout_clears_cookie(self, server: TestClient) -> None:
        server.get("/auth/login", headers=_basic("alice", "x"))
        resp = server.get("/auth/logout")
        assert resp.status_code == 200
        assert resp.text == ""
        assert server.get("/auth/check").text == ""

    def test_logout_without_session_is_ok(self, server: TestClient) -> None:
        assert server.get("/auth/logout").status_code == 200
        assert server.get("/auth/logout").status_code == 200


class TestAmbient:
    def test_rate_limit_returns_429_envelope(self, server: TestClient, monkeypatch) -> None:
        monkeypatch.setattr(get_settings(), "login_rate_limit", "2/minute")
        for _ in range(2):
            assert server.get("/auth/login", headers=_basic("a", "b")).status_code == 200
        resp = server.get("/auth/login", headers=_basic("a", "b"))
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limited"

    def test_unknown_host_rejected(self, server: TestClient) -> None:
        resp = server.get("http://evil.example/auth/check")
        assert resp.status_code == 400

    def test_health(self, server: TestClient) -> None:
        resp = server.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"
