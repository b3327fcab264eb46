"""
api/routes/auth.py -- Identity endpoints backed by the signed cookie.

Routes:
  GET /auth/check   -- 200, body = username or empty
  GET /auth/login   -- Basic credentials in; 200 username + Set-Cookie, or 400
  GET /auth/logout  -- 200 empty, cookie cleared (idempotent)

"No session" is signalled by 200 with an empty body, not 401. Clients treat
an empty body exactly like being anonymous.

Security:
  Any well-formed username/password pair is accepted. There is no credential
  store; this service only vouches that the browser presented the pair.
  Login is rate-limited per client address (LOGIN_RATE_LIMIT).
  Cache-Control: no-store on every response carrying identity.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from api.limiter import limiter, login_rate_limit
from auth.credentials import BasicCredentials
from auth.dependencies import get_credentials, get_identity
from auth.identity import Identity
from core.config import get_settings

logger = logging.getLogger("sessiongate.api.auth")

router = APIRouter()


def _no_store(resp: PlainTextResponse) -> PlainTextResponse:
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/check", response_class=PlainTextResponse)
async def check(identity: Identity = Depends(get_identity)) -> PlainTextResponse:
    """Report who the identity cookie belongs to; empty body if nobody."""
    return _no_store(PlainTextResponse(identity.current() or ""))


@router.get("/auth/login", response_class=PlainTextResponse)
@limiter.limit(login_rate_limit)  # must be BELOW @router so the router registers the limited wrapper
async def login(
    request: Request,
    credentials: BasicCredentials = Depends(get_credentials),
    identity: Identity = Depends(get_identity),
) -> PlainTextResponse:
    """Accept Basic credentials and remember the username in the identity cookie.

    Missing or malformed credentials never reach this body -- get_credentials
    raises HTTP 400 first.
    """
    delay = get_settings().login_delay_seconds
    if delay > 0:
        await asyncio.sleep(delay)

    logger.info("Logging in user: %s", credentials.username)
    resp = PlainTextResponse(credentials.username)
    identity.remember(resp, credentials.username)
    return _no_store(resp)


@router.get("/auth/logout", response_class=PlainTextResponse)
async def logout(identity: Identity = Depends(get_identity)) -> PlainTextResponse:
    """Clear the identity cookie whether or not one was present."""
    user = identity.current()
    resp = PlainTextResponse("")
    identity.forget(resp)
    if user:
        logger.info("User logged out: %s", user)
    return _no_store(resp)
