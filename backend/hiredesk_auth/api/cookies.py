"""Refresh-token cookie helpers."""

from __future__ import annotations

from flask import Response, current_app, request

from hiredesk_auth.api.deps import services


def _cookie_name() -> str:
    return str(current_app.config.get("REFRESH_COOKIE_NAME", "refreshToken"))


def _cookie_path() -> str:
    return str(current_app.config.get("REFRESH_COOKIE_PATH", "/api/auth"))


def read_refresh_cookie() -> str | None:
    value = request.cookies.get(_cookie_name())
    return value or None


def set_refresh_cookie(response: Response, token: str) -> Response:
    """Attach the refresh token as an HTTP-only, ``SameSite=Strict`` cookie.

    ``Max-Age`` equals the refresh lifetime; ``Secure`` follows
    ``REFRESH_COOKIE_SECURE``.
    """
    max_age = int(services().tokens.refresh_expires.total_seconds())
    response.set_cookie(
        _cookie_name(),
        token,
        max_age=max_age,
        path=_cookie_path(),
        secure=bool(current_app.config.get("REFRESH_COOKIE_SECURE", False)),
        httponly=True,
        samesite="Strict",
    )
    return response


def clear_refresh_cookie(response: Response) -> Response:
    response.delete_cookie(
        _cookie_name(),
        path=_cookie_path(),
        secure=bool(current_app.config.get("REFRESH_COOKIE_SECURE", False)),
        httponly=True,
        samesite="Strict",
    )
    return response
