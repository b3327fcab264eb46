"""
auth/identity.py -- Cookie-backed identity: remember / forget / current.

The identity cookie IS the session. There is no server-side session table;
each request reads the cookie, verifies its signature, and trusts the
username inside. Any request handler can therefore run concurrently with any
other without locks.

Cookie format:
  HS256 JWT (python-jose) signed with SECRET_KEY, carrying the username in
  the "sub" claim. No "exp" claim and no Max-Age on the cookie: the identity
  lasts as long as the browser session.

Cookie attributes:
  httponly=True  -- client-side scripts cannot read the identity.
  samesite="lax" -- not sent on cross-site POSTs.
  secure         -- from Settings.secure_cookies (true outside DEBUG mode).

Layer rule: no imports from api/ or client/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from typing import Optional

from jose import JWTError, jwt
from starlette.requests import Request
from starlette.responses import Response

from core.config import Settings, get_settings

logger = logging.getLogger("sessiongate.auth.identity")

_ALGORITHM = "HS256"


def encode_identity(username: str, settings: Settings | None = None) -> str:
    """Sign a username into the opaque cookie value."""
    settings = settings or get_settings()
    return jwt.encode({"sub": username}, settings.secret_key, algorithm=_ALGORITHM)


def decode_identity(value: str | None, settings: Settings | None = None) -> Optional[str]:
    """Verify a cookie value and return its username, or None.

    None covers every failure (absent, tampered, signed with another key,
    missing subject) so callers treat all of them as "no identity".
    """
    if not value:
        return None
    settings = settings or get_settings()
    try:
        payload = jwt.decode(value, settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        logger.info("Rejected identity cookie with invalid signature")
        return None
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        return None
    return sub


class Identity:
    """Request-scoped view of the identity cookie.

    Use as a FastAPI dependency (see auth.dependencies.get_identity). Reads
    come from the incoming request; writes go onto the outgoing response.
    """

    def __init__(self, request: Request, settings: Settings | None = None) -> None:
        self._request = request
        self._settings = settings or get_settings()

    @property
    def cookie_name(self) -> str:
        return self._settings.cookie_name

    def current(self) -> Optional[str]:
        """Return the username carried by the request's cookie, if valid."""
        return decode_identity(self._request.cookies.get(self.cookie_name), self._settings)

    def remember(self, response: Response, username: str) -> None:
        """Write a fresh identity cookie for username onto response."""
        response.set_cookie(
            self.cookie_name,
            value=encode_identity(username, self._settings),
            httponly=True,
            samesite="lax",
            secure=bool(self._settings.secure_cookies),
            path="/",
        )

    def forget(self, response: Response) -> None:
        """Expire the identity cookie. Safe to call when none was set."""
        response.delete_cookie(
            self.cookie_name,
            httponly=True,
            samesite="lax",
            secure=bool(self._settings.secure_cookies),
            path="/",
        )
