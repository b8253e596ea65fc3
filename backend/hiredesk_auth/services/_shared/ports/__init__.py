"""
hiredesk_auth.services._shared.ports
====================================

Collection of *ports* (hexagonal interfaces) that the auth and usage services
depend on.

Modules
-------
- :mod:`password_hasher`:
    Defines :class:`~.PasswordHasher`, one-way password hashing.

- :mod:`token_provider`:
    Defines :class:`~.TokenProvider`, signed access/refresh token issuing and
    verification.

- :mod:`session_store`:
    Defines :class:`~.SessionStore`, the per-user refresh digest and usage
    counters with atomic compare-and-swap.

- :mod:`mailer`:
    Defines :class:`~.Mailer`, asynchronous email delivery.

Design Notes
------------
Ports keep the service layer independent from implementation details.
Concrete adapters (bcrypt, PyJWT, SQLAlchemy, SMTP) live under
``hiredesk_auth.infra``; the in-memory implementations next to each port serve
unit tests and local development.
"""

from __future__ import annotations

from .mailer import DeliveryStatus, InMemoryMailer, Mailer, OutgoingEmail
from .password_hasher import PasswordHasher
from .session_store import (
    FILE_COUNTERS,
    CounterUpdate,
    InMemorySessionStore,
    SessionStore,
    UsageCounter,
)
from .token_provider import StubTokenProvider, TokenProvider

__all__ = [
    "PasswordHasher",
    "TokenProvider",
    "StubTokenProvider",
    "SessionStore",
    "InMemorySessionStore",
    "CounterUpdate",
    "UsageCounter",
    "FILE_COUNTERS",
    "Mailer",
    "InMemoryMailer",
    "OutgoingEmail",
    "DeliveryStatus",
]
