"""
tests/test_round_trip.py -- Client runtime against the real identity service.

The transport fixture routes AuthTransport through the FastAPI TestClient,
whose cookie jar stands in for the browser's. Nothing is mocked: the cookie
the server sets on login is the one the next check reads.

Coverage:
  - login -> check round trip ends Authenticated
  - logout clears the server-side identity (a fresh check is anonymous)
  - login without credentials: server 400, client back on the login form
  - a new session (fresh jar) starts anonymous
"""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from client.machine import SessionStateMachine
from client.models import (
    Anonymous,
    Authenticated,
    CheckAuth,
    Dashboard,
    EditPassword,
    EditUsername,
    LoginForm,
    SubmitLogin,
    SubmitLogout,
    UrlChanged,
)
from client.runtime import SessionRuntime
from client.transport import LOGIN_ENDPOINT, AuthTransport, HttpStatus

APP = "http://app.localhost/"


async def _drive(runtime: SessionRuntime, *messages) -> None:
    for msg in messages:
        runtime.post(msg)
    await runtime.run_until_idle()


def _runtime(transport: AuthTransport, start_url: str = APP) -> SessionRuntime:
    return SessionRuntime(SessionStateMachine(start_url), transport)


def _login_messages(user: str, password: str) -> tuple:
    return UrlChanged(APP + "login"), EditUsername(user), EditPassword(password), SubmitLogin()


def test_fresh_session_is_anonymous(transport: AuthTransport) -> None:
    runtime = _runtime(transport)
    runtime.start()
    asyncio.run(_drive(runtime))
    assert runtime.model.auth_status == Anonymous()
    assert runtime.model.page == LoginForm()


def test_login_then_check_round_trip(transport: AuthTransport, server: TestClient) -> None:
    """login("alice", "x") -> cookie set -> check answers "alice" -> Authenticated("alice")."""
    runtime = _runtime(transport)
    runtime.start()
    asyncio.run(_drive(runtime, *_login_messages("alice", "x")))
    assert runtime.model.auth_status == Authenticated("alice")
    assert runtime.model.page == Dashboard()
    assert server.get("/auth/check").text == "alice"

    # Each asyncio.run gets a fresh loop, so the second phase uses a new runtime
    # over the same machine and cookie jar.
    again = SessionRuntime(runtime.machine, transport)
    asyncio.run(_drive(again, CheckAuth()))
    assert again.model.auth_status == Authenticated("alice")


def test_new_client_over_same_jar_recovers_session(transport: AuthTransport) -> None:
    """A reloaded page (new machine, same cookie store) is logged straight back in."""
    first = _runtime(transport)
    asyncio.run(_drive(first, *_login_messages("alice", "x")))

    reloaded = _runtime(transport)
    reloaded.start()
    asyncio.run(_drive(reloaded))
    assert reloaded.model.auth_status == Authenticated("alice")
    assert reloaded.model.page == Dashboard()


def test_logout_clears_identity(transport: AuthTransport, server: TestClient) -> None:
    runtime = _runtime(transport)

    async def scenario() -> None:
        await _drive(runtime, *_login_messages("alice", "secret"))
        assert runtime.model.auth_status == Authenticated("alice")
        await _drive(runtime, SubmitLogout())

    asyncio.run(scenario())
    assert runtime.model.auth_status == Anonymous()
    assert runtime.model.page == LoginForm()
    assert server.get("/auth/check").text == ""


def test_missing_authorization_is_400_and_folds_to_login(transport: AuthTransport) -> None:
    """Scenario F end to end."""
    with pytest.raises(HttpStatus) as exc:
        transport.send(LOGIN_ENDPOINT)
    assert exc.value.code == 400

    machine = SessionStateMachine(APP)
    machine.dispatch(UrlChanged(APP + "login"))
    (req,) = machine.dispatch(SubmitLogin())
    machine.dispatch(req.complete(error=HttpStatus(400)))
    assert machine.model.auth_status == Anonymous()
    assert machine.model.page == LoginForm()
