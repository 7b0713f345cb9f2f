"""
Owner resolution for every request.

Authentication happens in front of this service. The upstream layer passes
an opaque user id in ``USER_ID_HEADER``; when absent, ``DEFAULT_USER_ID``
is used so a single-user deployment works without any auth at all.
"""

from flask import Flask, current_app, g, request


def current_user_id() -> str:
    """Owner id for the active request."""
    return getattr(g, "user_id", None) or current_app.config["DEFAULT_USER_ID"]


def init_user_context(app: Flask):
    header = app.config.get("USER_ID_HEADER", "X-User-Id")

    @app.before_request
    def _resolve_user():
        raw = (request.headers.get(header) or "").strip()
        g.user_id = raw or app.config["DEFAULT_USER_ID"]
