"""
client/models.py -- Client-side session model and the messages that drive it.

Pattern: closed variants as frozen dataclasses. AuthStatus and Page are
type aliases over a fixed set of classes; code that branches on them uses
isinstance() over the full set, never string tags.

SessionModel is immutable. The state machine replaces it wholesale on every
transition, and __post_init__ rejects the two pairings that must never be
displayed:
  - Anonymous on any page other than LoginForm
  - Dashboard while Anonymous
Dashboard under Pending is allowed: it is the "still loading" state between
startup and the first check.

Layer rule: no imports from api/ or auth/. client/ talks to the server only
over HTTP.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

# ---------------------------------------------------------------------------
# AuthStatus
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class Pending:
    pass


@dataclass(frozen=True)
class Authenticated:
    username: str


AuthStatus = Union[Anonymous, Pending, Authenticated]

# ---------------------------------------------------------------------------
# Page
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoginForm:
    """Login page with its draft input. Drafts never leave the client."""

    username: str = ""
    password: str = field(default="", repr=False)


@dataclass(frozen=True)
class Dashboard:
    pass


@dataclass(frozen=True)
class NotFound:
    pass


Page = Union[LoginForm, Dashboard, NotFound]


class StateViolation(RuntimeError):
    """A page/status pairing that must be unreachable was constructed."""


# ---------------------------------------------------------------------------
# SessionModel
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SessionModel:
    base_url: str
    url: str
    page: Page
    auth_status: AuthStatus
    notice: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.auth_status, Anonymous) and not isinstance(self.page, LoginForm):
            raise StateViolation(f"anonymous user on {type(self.page).__name__}")
        if isinstance(self.page, Dashboard) and isinstance(self.auth_status, Anonymous):
            raise StateViolation("dashboard shown to anonymous user")

    @property
    def username(self) -> Optional[str]:
        if isinstance(self.auth_status, Authenticated):
            return self.auth_status.username
        return None


# ---------------------------------------------------------------------------
# Messages
#
# Completion messages carry the sequence tag of the request that produced
# them and exactly one of body / error.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UrlChanged:
    url: str


@dataclass(frozen=True)
class CheckAuth:
    pass


@dataclass(frozen=True)
class EditUsername:
    text: str


@dataclass(frozen=True)
class EditPassword:
    text: str = field(repr=False)


@dataclass(frozen=True)
class SubmitLogin:
    pass


@dataclass(frozen=True)
class SubmitLogout:
    pass


@dataclass(frozen=True)
class Completion:
    seq: int
    body: Optional[str] = None
    # TransportError from client.transport; typed loosely to keep this module leaf-level.
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class AuthChecked(Completion):
    pass


@dataclass(frozen=True)
class LoginCompleted(Completion):
    pass


@dataclass(frozen=True)
class LogoutCompleted(Completion):
    pass


Message = Union[
    UrlChanged,
    CheckAuth,
    AuthChecked,
    EditUsername,
    EditPassword,
    SubmitLogin,
    LoginCompleted,
    SubmitLogout,
    LogoutCompleted,
]
