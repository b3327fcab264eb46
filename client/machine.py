"""
client/machine.py -- The client session state machine.

SessionStateMachine is the only code that changes the SessionModel. Every
input -- navigation, form edits, button presses, network completions -- is a
message passed to dispatch(), which runs to completion, replaces the model,
and returns the AuthRequests the caller must start. The machine itself never
performs I/O, so tests drive it by hand and deliver completions in any order.

Sequencing:
  Each issued request (check, login, logout) takes the next value of a
  per-machine counter as its tag. A completion is applied only if its tag is
  still the newest one issued; anything older is stale and dropped. Requests
  are never cancelled -- the server-side effect of each is idempotent, so a
  stale response only has to be ignored.

  On top of that, CheckAuth is suppressed while a login is in flight. A check
  sent during a login would otherwise supersede it and the login's answer
  would be dropped in favour of a cookie read that raced it.

Navigation happens inside the same transition as the status change, so no
intermediate model ever pairs Anonymous with a non-login page.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from client import router
from client.models import (
    Anonymous,
    AuthChecked,
    Authenticated,
    AuthStatus,
    CheckAuth,
    Completion,
    EditPassword,
    EditUsername,
    LoginCompleted,
    LoginForm,
    LogoutCompleted,
    Message,
    Pending,
    SessionModel,
    SubmitLogin,
    SubmitLogout,
    UrlChanged,
)
from client.transport import CHECK_ENDPOINT, LOGIN_ENDPOINT, LOGOUT_ENDPOINT, basic_auth_header

logger = logging.getLogger("sessiongate.client.machine")

_COMPLETIONS: dict[str, type[Completion]] = {
    "check": AuthChecked,
    "login": LoginCompleted,
    "logout": LogoutCompleted,
}


@dataclass(frozen=True)
class AuthRequest:
    """A request the machine wants sent. The caller performs it and feeds
    complete(...) back into dispatch()."""

    kind: str  # check | login | logout
    seq: int
    endpoint: str
    headers: dict[str, str] = field(default_factory=dict, repr=False)

    def complete(self, body: Optional[str] = None, error: Optional[Exception] = None) -> Completion:
        return _COMPLETIONS[self.kind](seq=self.seq, body=body, error=error)


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, "/", "", ""))


class SessionStateMachine:
    """Holds the SessionModel and applies messages to it one at a time.

    Args:
        start_url:   URL the client was opened at.
        base_url:    Client root; defaults to the origin of start_url.
        on_navigate: Called with the new URL whenever a transition navigates
                     (the browser-history boundary).
    """

    def __init__(
        self,
        start_url: str,
        base_url: Optional[str] = None,
        on_navigate: Optional[Callable[[str], None]] = None,
    ) -> None:
        base_url = router.home_url(base_url or _origin(start_url))
        status = Pending()
        self._model = SessionModel(
            base_url=base_url,
            url=start_url,
            page=router.resolve(start_url, status, base_url),
            auth_status=status,
        )
        self._seq = 0
        self._login_seq: Optional[int] = None
        self._on_navigate = on_navigate
        self._handlers: dict[type, Callable[..., list[AuthRequest]]] = {
            UrlChanged: self._url_changed,
            CheckAuth: self._check_auth,
            AuthChecked: self._auth_checked,
            EditUsername: self._edit_username,
            EditPassword: self._edit_password,
            SubmitLogin: self._submit_login,
            LoginCompleted: self._login_completed,
            SubmitLogout: self._submit_logout,
            LogoutCompleted: self._logout_completed,
        }

    @property
    def model(self) -> SessionModel:
        return self._model

    @property
    def seq(self) -> int:
        """Tag of the most recently issued request (0 before any)."""
        return self._seq

    @property
    def login_in_flight(self) -> bool:
        return self._login_seq is not None

    def dispatch(self, msg: Message) -> list[AuthRequest]:
        """Apply one message and return the requests to start."""
        try:
            handler = self._handlers[type(msg)]
        except KeyError:
            raise TypeError(f"unknown message: {msg!r}") from None
        return handler(msg)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _issue(self, kind: str, endpoint: str, headers: Optional[dict[str, str]] = None) -> AuthRequest:
        self._seq += 1
        return AuthRequest(kind=kind, seq=self._seq, endpoint=endpoint, headers=headers or {})

    def _is_current(self, msg: Completion) -> bool:
        if msg.seq != self._seq:
            logger.debug("Dropping stale %s (seq %d, newest %d)", type(msg).__name__, msg.seq, self._seq)
            return False
        return True

    def _navigate(self, url: str, status: AuthStatus) -> None:
        m = self._model
        self._model = SessionModel(
            base_url=m.base_url,
            url=url,
            page=router.resolve(url, status, m.base_url),
            auth_status=status,
        )
        if url != m.url and self._on_navigate is not None:
            self._on_navigate(url)

    def _sign_out(self) -> None:
        self._navigate(router.login_url(self._model.base_url), Anonymous())

    def _apply_username(self, username: Optional[str], go_home: bool) -> None:
        """Fold a check/login answer into the model. Empty means anonymous."""
        if not username:
            self._sign_out()
        elif go_home:
            self._navigate(router.home_url(self._model.base_url), Authenticated(username))
        else:
            self._model = replace(self._model, auth_status=Authenticated(username), notice=None)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _url_changed(self, msg: UrlChanged) -> list[AuthRequest]:
        m = self._model
        # A notice belongs to the page it was raised on.
        self._model = replace(m, url=msg.url, page=router.resolve(msg.url, m.auth_status, m.base_url), notice=None)
        return []

    def _check_auth(self, msg: CheckAuth) -> list[AuthRequest]:
        if self._login_seq is not None:
            logger.debug("Suppressing auth check while login %d is in flight", self._login_seq)
            return []
        logger.debug("Checking auth")
        return [self._issue("check", CHECK_ENDPOINT)]

    def _auth_checked(self, msg: AuthChecked) -> list[AuthRequest]:
        if not self._is_current(msg):
            return []
        if msg.ok:
            logger.debug("Auth status ok: %r", msg.body)
            self._apply_username(msg.body, go_home=False)
        else:
            logger.info("Auth check failed: %s", msg.error)
            self._sign_out()
        return []

    def _edit_username(self, msg: EditUsername) -> list[AuthRequest]:
        page = self._model.page
        if isinstance(page, LoginForm):
            self._model = replace(self._model, page=replace(page, username=msg.text))
        return []

    def _edit_password(self, msg: EditPassword) -> list[AuthRequest]:
        page = self._model.page
        if isinstance(page, LoginForm):
            self._model = replace(self._model, page=replace(page, password=msg.text))
        return []

    def _submit_login(self, msg: SubmitLogin) -> list[AuthRequest]:
        page = self._model.page
        if not isinstance(page, LoginForm):
            return []
        req = self._issue("login", LOGIN_ENDPOINT, basic_auth_header(page.username, page.password))
        self._login_seq = req.seq
        logger.info("Logging in as %r", page.username)
        return [req]

    def _login_completed(self, msg: LoginCompleted) -> list[AuthRequest]:
        if msg.seq == self._login_seq:
            self._login_seq = None
        if not self._is_current(msg):
            return []
        if msg.ok:
            self._apply_username(msg.body, go_home=True)
        else:
            logger.info("Login failed: %s", msg.error)
            self._sign_out()
        return []

    def _submit_logout(self, msg: SubmitLogout) -> list[AuthRequest]:
        return [self._issue("logout", LOGOUT_ENDPOINT)]

    def _logout_completed(self, msg: LogoutCompleted) -> list[AuthRequest]:
        if not self._is_current(msg):
            return []
        if msg.ok:
            self._sign_out()
        else:
            # Cookie state on the server is unknown; keep the current status.
            logger.warning("Logout failed: %s", msg.error)
            self._model = replace(self._model, notice=f"Logout failed: {msg.error}")
        return []
