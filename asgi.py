"""
asgi.py -- ASGI entry point for SessionGate.

Run with:  uvicorn asgi:app --reload
           python main.py serve

The HTML shell and static assets of the browser client are served by
whatever fronts this app; only the /auth endpoints live here.
"""

from api.main import app

__all__ = ["app"]
