#!/usr/bin/env python3
"""
SessionGate -- Basic-auth login with a signed identity cookie, and a session
client that stays in step with it.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py check
  python main.py login alice --password secret
  python main.py login alice --password secret --logout
  python main.py login alice --password secret --server http://127.0.0.1:8080

Each client command runs one in-memory session: the cookie jar lives only as
long as the command, the same way a browser tab's session cookie does.

Environment variables:
  SECRET_KEY, DEBUG, COOKIE_NAME, SECURE_COOKIES   server identity cookie
  LOGIN_DELAY_SECONDS                              artificial login latency
  SESSIONGATE_SERVER_URL                           client target server
"""

import argparse
import asyncio
import logging
from typing import Optional

from client.machine import SessionStateMachine
from client.models import CheckAuth, EditPassword, EditUsername, LoginForm, SubmitLogin, SubmitLogout, UrlChanged
from client.router import login_url
from client.runtime import SessionRuntime
from client.transport import AuthTransport
from client.view import render
from core.config import get_client_settings, get_settings

logger = logging.getLogger("sessiongate.cli")


def _serve(args: argparse.Namespace) -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "asgi:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )


def _print_model(runtime: SessionRuntime, heading: str) -> None:
    print(f"\n-- {heading} ({runtime.model.url})")
    print(render(runtime.model))


async def _run_client(
    args: argparse.Namespace,
    server_url: str,
    timeout_ms: int,
    transport: Optional[AuthTransport] = None,
) -> None:
    """Run one client session and print the model after each phase.

    A transport passed in is left open for its owner to close.
    """
    owned = transport is None
    if transport is None:
        transport = AuthTransport(server_url, timeout_ms=timeout_ms)
    machine = SessionStateMachine(
        server_url + "/",
        on_navigate=lambda url: logger.info("Navigated to %s", url),
    )
    runtime = SessionRuntime(machine, transport)
    try:
        runtime.start()
        await runtime.run_until_idle()
        _print_model(runtime, "startup")

        if args.command != "login":
            return

        if not isinstance(runtime.model.page, LoginForm):
            runtime.post(UrlChanged(login_url(machine.model.base_url)))
        runtime.post(EditUsername(args.username))
        runtime.post(EditPassword(args.password))
        runtime.post(SubmitLogin())
        # A check queued behind the login is suppressed until the login answers.
        runtime.post(CheckAuth())
        await runtime.run_until_idle()
        _print_model(runtime, "after login")

        if args.logout:
            runtime.post(SubmitLogout())
            await runtime.run_until_idle()
            _print_model(runtime, "after logout")
    finally:
        if owned:
            transport.close()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="sessiongate",
        description="Cookie-session identity server and reconciling session client.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  DEBUG=true python main.py serve
  python main.py check
  python main.py login alice --password secret --logout
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log client transitions at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the identity server")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT setting)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    for name, help_text in (("check", "Ask the server who we are"), ("login", "Log in, then re-check")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--server", metavar="URL", default=None, help="Server URL (default: SESSIONGATE_SERVER_URL)")
        p.add_argument(
            "--timeout-ms", type=int, default=None, metavar="MS", help="Per-request timeout (default: 5000)"
        )
        if name == "login":
            p.add_argument("username", help="Username to log in as")
            p.add_argument("--password", default="", help="Password (accepted as-is by the server)")
            p.add_argument("--logout", action="store_true", help="Log out again at the end")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command == "serve":
        _serve(args)
        return

    client_settings = get_client_settings()
    server_url = (args.server or client_settings.server_url).rstrip("/")
    timeout_ms = args.timeout_ms or client_settings.request_timeout_ms
    asyncio.run(_run_client(args, server_url, timeout_ms))


if __name__ == "__main__":
    main()
