"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in both api/main.py (to attach to app.state) and
api/routes/auth.py (to apply the login limit with @limiter.limit()).

A single shared instance keeps one in-memory counter store for the process.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def login_rate_limit() -> str:
    """Resolved at request time so LOGIN_RATE_LIMIT can differ per environment."""
    return get_settings().login_rate_limit
