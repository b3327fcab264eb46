"""
client/view.py -- Plain-text rendering of the SessionModel.

The real markup lives in the browser shell; this is the textual stand-in
the CLI prints. render_dashboard() takes an Authenticated value, not a
model, so a dashboard can only be drawn for a known user. Dashboard under
Pending renders as "loading".
"""

from __future__ import annotations

from client.models import Authenticated, Dashboard, LoginForm, NotFound, Pending, SessionModel


def render_login(page: LoginForm) -> str:
    lines = [
        "Login",
        f"  Enter your email:    {page.username or '<me@example.com>'}",
        f"  Enter your password: {'*' * len(page.password) if page.password else '<password>'}",
        "  [Log In]",
    ]
    return "\n".join(lines)


def render_dashboard(user: Authenticated) -> str:
    return f"{user.username}'s Dashboard\n  [Log Out]"


def render(model: SessionModel) -> str:
    page = model.page
    status = model.auth_status
    if isinstance(page, LoginForm):
        body = render_login(page)
    elif isinstance(page, Dashboard):
        if isinstance(status, Authenticated):
            body = render_dashboard(status)
        elif isinstance(status, Pending):
            body = "Loading..."
        else:
            # SessionModel refuses this pairing at construction.
            body = "unexpected model state"
    elif isinstance(page, NotFound):
        body = "Page not found"
    else:
        raise TypeError(f"unknown page: {page!r}")
    if model.notice:
        body = f"{body}\n! {model.notice}"
    return body
