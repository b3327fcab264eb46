"""
client/router.py -- Map a client URL to a Page, gated by auth status.

  Anonymous                -> LoginForm, whatever the path
  Pending / Authenticated  -> ""      -> Dashboard
                              "login" -> LoginForm
                              other   -> NotFound

Paths are taken relative to the client's base URL, and only the first
segment decides.
"""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit

from client.models import Anonymous, AuthStatus, Dashboard, LoginForm, NotFound, Page

LOGIN_PATH = "login"


def path_parts(url: str, base_url: str = "") -> list[str]:
    """Return the non-empty path segments of url below base_url."""
    path = urlsplit(url).path
    base_path = urlsplit(base_url).path.rstrip("/")
    if base_path and (path == base_path or path.startswith(base_path + "/")):
        path = path[len(base_path) :]
    return [p for p in path.split("/") if p]


def resolve(url: str, auth_status: AuthStatus, base_url: str = "") -> Page:
    if isinstance(auth_status, Anonymous):
        return LoginForm()
    parts = path_parts(url, base_url)
    if not parts:
        return Dashboard()
    if parts[0] == LOGIN_PATH:
        return LoginForm()
    return NotFound()


def home_url(base_url: str) -> str:
    return base_url if base_url.endswith("/") else base_url + "/"


def login_url(base_url: str) -> str:
    return urljoin(home_url(base_url), LOGIN_PATH)
