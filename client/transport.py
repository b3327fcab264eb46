"""
client/transport.py -- Timed-out HTTP calls to the identity service.

The requests.Session's cookie jar plays the role of the browser cookie store:
the server's Set-Cookie on /auth/login is replayed on /auth/check and cleared
by /auth/logout without this module ever reading the cookie.

Every failure becomes a TransportError subclass:
  RequestTimeout  -- no response within the deadline (default 5000 ms)
  NetworkFailure  -- connection refused, DNS, TLS, protocol errors
  HttpStatus      -- any non-2xx response; never treated as success
"""

import base64
import logging
from typing import Any, Optional

import requests

logger = logging.getLogger("sessiongate.client.transport")

DEFAULT_TIMEOUT_MS = 5000

CHECK_ENDPOINT = "/auth/check"
LOGIN_ENDPOINT = "/auth/login"
LOGOUT_ENDPOINT = "/auth/logout"


class TransportError(Exception):
    """Base class for every failed auth request."""


class RequestTimeout(TransportError):
    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"no response within {timeout_ms} ms")
        self.timeout_ms = timeout_ms


class NetworkFailure(TransportError):
    pass


class HttpStatus(TransportError):
    def __init__(self, code: int) -> None:
        super().__init__(f"HTTP {code}")
        self.code = code


def basic_auth_header(username: str, password: str) -> dict[str, str]:
    """Return the Authorization header for Basic credentials."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


class AuthTransport:
    """Issue GET requests against the identity service.

    Args:
        base_url:   Server origin, e.g. "http://127.0.0.1:8080".
        session:    Anything with requests.Session's get(url, headers=, timeout=)
                    signature. Defaults to a fresh requests.Session.
        timeout_ms: Per-request deadline.
    """

    def __init__(self, base_url: str, session: Optional[Any] = None, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self._session = session if session is not None else requests.Session()

    def send(self, endpoint: str, headers: Optional[dict[str, str]] = None, timeout_ms: Optional[int] = None) -> str:
        """GET base_url + endpoint and return the body text.

        Raises:
            RequestTimeout, NetworkFailure, HttpStatus
        """
        timeout_ms = timeout_ms or self.timeout_ms
        url = self.base_url + endpoint
        try:
            resp = self._session.get(url, headers=headers or {}, timeout=timeout_ms / 1000)
        except requests.Timeout as e:
            logger.warning("Request to %s timed out after %d ms", endpoint, timeout_ms)
            raise RequestTimeout(timeout_ms) from e
        except requests.RequestException as e:
            logger.warning("Request to %s failed: %s", endpoint, e)
            raise NetworkFailure(str(e)) from e

        if not 200 <= resp.status_code < 300:
            logger.info("Request to %s returned HTTP %d", endpoint, resp.status_code)
            raise HttpStatus(resp.status_code)
        return resp.text

    def check(self) -> str:
        return self.send(CHECK_ENDPOINT)

    def login(self, username: str, password: str) -> str:
        return self.send(LOGIN_ENDPOINT, headers=basic_auth_header(username, password))

    def logout(self) -> str:
        return self.send(LOGOUT_ENDPOINT)

    def close(self) -> None:
        self._session.close()
