"""
auth/dependencies.py -- FastAPI Depends() helpers for the identity cookie.

get_identity() binds an Identity to the current request.
get_credentials() parses the Basic Authorization header and raises HTTP 400
if it is missing or malformed. The route never sees a half-parsed header.

Layer rule: no imports from api/ or client/.
  auth/dependencies.py may import from fastapi (for Request/HTTPException)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.credentials import BasicCredentials, MalformedCredentials, parse_basic_authorization
from auth.identity import Identity

logger = logging.getLogger("sessiongate.auth")


def get_identity(request: Request) -> Identity:
    """Return the request-scoped Identity.

    Use as a FastAPI dependency:
        @router.get("/auth/check")
        async def check(identity: Identity = Depends(get_identity)): ...
    """
    return Identity(request)


def get_credentials(request: Request) -> BasicCredentials:
    """Require Basic credentials. Raises HTTP 400 if absent or malformed."""
    try:
        return parse_basic_authorization(request.headers.get("authorization"))
    except MalformedCredentials as e:
        logger.info("Rejected login from %s: %s", request.client.host if request.client else "unknown", e)
        raise HTTPException(
            status_code=400,
            detail={"code": "malformed_credentials", "message": "Malformed Basic credentials.", "detail": str(e)},
        ) from e
