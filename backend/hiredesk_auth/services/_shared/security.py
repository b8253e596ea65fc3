"""Opaque one-time tokens and their at-rest digests."""

from __future__ import annotations

import hashlib
import secrets
from datetime import UTC, datetime


def generate_opaque_token(nbytes: int = 32) -> str:
    """Return a URL-safe random token (``nbytes`` of entropy)."""
    return secrets.token_urlsafe(nbytes)


def hash_token(token: str) -> str:
    """SHA-256 hex digest stored in place of a token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def now_utc() -> datetime:
    return datetime.now(UTC)


def as_aware(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite) as UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
