"""CORS configuration helper for API resources."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def init_app(app: Flask) -> None:
    """Configure CORS for API endpoints based on application config.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted.

    Notes
    -----
    The refresh token travels as a cookie, so browsers only send it when
    credentials are allowed. Credentials are incompatible with ``"*"``; a
    blank or wildcard ``CORS_ORIGINS`` therefore disables them and the
    cookie-based refresh flow only works same-origin.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip().rstrip("/") for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        expose_headers=["X-Request-ID"],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
