"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They serve as stable contracts between repositories,
adapters and application services.

The translation to HTTP responses is handled by ``hiredesk_auth/core/errors.py``
via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.

    Notes
    -----
    PostgreSQL reports the constraint name; SQLite only reports the column
    (``UNIQUE constraint failed: users.email``), so the column suffix of a
    ``uq_<table>_<column>`` name is accepted as well.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    name = constraint_name.lower()
    if name in message:
        return True
    if name.startswith("uq_"):
        table_column = name[3:].replace("_", ".", 1)
        return table_column in message
    return False


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories, adapters or domain logic.
    - ``BaseService.translate_exceptions`` maps them to ``APIError``.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found"


@dataclass(slots=True)
class ValidationError(ServiceError):
    """
    Raised when input fails field-level validation.

    :param message: Summary for clients.
    :param fields: Mapping ``field -> [messages]``.
    """

    message: str = "Validation failed"
    fields: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class DuplicateEmailError(ServiceError):
    """Raised when registering an email that already has an account."""

    def __init__(self, message: str = "An account with this email already exists") -> None:
        super().__init__(message)


class InvalidCredentialsError(ServiceError):
    """
    Raised for any failed credential check.

    The message is identical for an unknown email and a wrong password.
    """

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class TokenExpiredError(ServiceError):
    """Raised when a signed token is well-formed but past its ``exp``."""

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


class TokenInvalidError(ServiceError):
    """Raised when a signed token fails signature, claim or type checks."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class InvalidOrExpiredTokenError(ServiceError):
    """Raised when a verification or reset token is unknown or expired."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class PasswordMismatchError(ServiceError):
    """Raised when the new password and its confirmation differ."""

    def __init__(self, message: str = "Passwords do not match") -> None:
        super().__init__(message)


class WeakPasswordError(ServiceError):
    """Raised when a password does not satisfy the minimum length."""

    def __init__(self, min_length: int = 8) -> None:
        self.min_length = min_length
        super().__init__(f"Password must be at least {min_length} characters long")


@dataclass(slots=True)
class LimitExceededError(ServiceError):
    """
    Raised when a usage counter would exceed its ceiling.

    :param counter: Counter name (e.g. ``"selected_candidate"``).
    :param limit: Configured ceiling.
    :param current: Value stored when the check failed.
    """

    counter: str
    limit: int
    current: int

    def __str__(self) -> str:
        return f"Limit reached for {self.counter} ({self.current}/{self.limit})"


class UnauthorizedError(ServiceError):
    """Raised when a request lacks a usable access token."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)
