"""
auth/credentials.py -- Parsing of the HTTP Basic Authorization header.

Every failure path raises MalformedCredentials. The route layer maps that to
400 Bad Request; nothing here is allowed to crash the request handler on
hostile or truncated input.

No password verification happens anywhere in SessionGate. Any well-formed
username/password pair is accepted (trust on first use); the password is
parsed only so the header format is validated.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

_SCHEME = "basic"


class MalformedCredentials(ValueError):
    """The Authorization header is missing or is not valid Basic credentials."""


@dataclass(frozen=True)
class BasicCredentials:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"BasicCredentials(username={self.username!r}, password='***')"


def parse_basic_authorization(header: str | None) -> BasicCredentials:
    """Decode ``Basic base64(username:password)`` into BasicCredentials.

    The scheme is matched case-insensitively (RFC 7617). The password may
    contain colons; only the first colon separates it from the username.

    Raises:
        MalformedCredentials: header absent, wrong scheme, bad base64,
            non UTF-8 payload, no colon, or empty username.
    """
    if not header:
        raise MalformedCredentials("Authorization header is missing")

    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != _SCHEME:
        raise MalformedCredentials(f"unsupported authorization scheme: {scheme!r}")
    token = token.strip()
    if not token:
        raise MalformedCredentials("Basic credentials are empty")

    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise MalformedCredentials("Basic credentials are not valid base64 UTF-8") from e

    username, sep, password = decoded.partition(":")
    if not sep:
        raise MalformedCredentials("Basic credentials lack a ':' separator")
    if not username:
        raise MalformedCredentials("username is empty")
    return BasicCredentials(username=username, password=password)

