"""Builders for the transactional emails sent by :class:`AuthService`."""

from __future__ import annotations

from datetime import timedelta
from urllib.parse import urlencode

from markupsafe import escape

from hiredesk_auth.services._shared.ports import OutgoingEmail

VERIFY_EMAIL_TAG = "verify_email"
RESET_PASSWORD_TAG = "reset_password"


def _link(frontend_url: str, path: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}{path}?{urlencode({'token': token})}"


def humanize(delta: timedelta) -> str:
    """``timedelta(hours=24)`` -> ``"24 hours"``."""
    seconds = int(delta.total_seconds())
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size and seconds % size == 0 and not (unit == "day" and seconds < 2 * size):
            n = seconds // size
            return f"{n} {unit}{'s' if n != 1 else ''}"
    return f"{seconds} seconds"


def verification_email(
    *, to: str, name: str, token: str, frontend_url: str, expires: timedelta
) -> OutgoingEmail:
    link = _link(frontend_url, "/verify-email", token)
    ttl = humanize(expires)
    text = (
        f"Hi {name},\n\n"
        "Welcome to HireDesk. Please confirm your email address by opening the link below:\n\n"
        f"{link}\n\n"
        f"The link expires in {ttl}. If you did not create an account, ignore this email.\n"
    )
    html = (
        f"<p>Hi {escape(name)},</p>"
        "<p>Welcome to HireDesk. Please confirm your email address:</p>"
        f'<p><a href="{escape(link)}">Verify email</a></p>'
        f"<p>The link expires in {ttl}.</p>"
    )
    return OutgoingEmail(
        to=to, subject="Verify your HireDesk email", text=text, html=html, tag=VERIFY_EMAIL_TAG
    )


def password_reset_email(
    *, to: str, name: str, token: str, frontend_url: str, expires: timedelta
) -> OutgoingEmail:
    link = _link(frontend_url, "/reset-password", token)
    ttl = humanize(expires)
    text = (
        f"Hi {name},\n\n"
        "We received a request to reset your HireDesk password. Open the link below to "
        "choose a new one:\n\n"
        f"{link}\n\n"
        f"The link expires in {ttl}. If you did not ask for a reset, ignore this email.\n"
    )
    html = (
        f"<p>Hi {escape(name)},</p>"
        "<p>We received a request to reset your HireDesk password.</p>"
        f'<p><a href="{escape(link)}">Reset password</a></p>'
        f"<p>The link expires in {ttl}.</p>"
    )
    return OutgoingEmail(
        to=to, subject="Reset your HireDesk password", text=text, html=html, tag=RESET_PASSWORD_TAG
    )
