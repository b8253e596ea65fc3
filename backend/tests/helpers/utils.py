"""Tiny helpers shared across test modules."""

from __future__ import annotations

import re

from hiredesk_auth.services._shared.ports import OutgoingEmail

_TOKEN_RE = re.compile(r"[?&]token=([A-Za-z0-9_\-]+)")


def token_from_email(email: OutgoingEmail | None) -> str:
    """Extract the one-time token from the link inside an email body.

    Raises
    ------
    AssertionError
        If no email was given or its body carries no ``?token=`` link.
    """
    assert email is not None, "expected an email to have been sent"
    match = _TOKEN_RE.search(email.text)
    assert match is not None, f"no token link in email: {email.text!r}"
    return match.group(1)


def refresh_cookie(client, name: str = "refreshToken", path: str = "/api/auth") -> str | None:
    """Return the refresh cookie value currently held by a Flask test client."""
    cookie = client.get_cookie(name, path=path)
    return cookie.value if cookie is not None else None
