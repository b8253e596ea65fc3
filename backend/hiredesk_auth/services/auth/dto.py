# hiredesk_auth/services/auth/dto.py
from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hiredesk_auth.models.user import User
    from hiredesk_auth.services._shared.ports.mailer import DeliveryStatus

# ------------------------------ Config DTOs ------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenConfig:
    """
    Signing configuration for the token issuer.

    :param access_secret: HMAC key for access tokens.
    :type access_secret: str
    :param refresh_secret: HMAC key for refresh tokens; must differ from the
        access secret.
    :type refresh_secret: str
    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    :param algorithm: JWS algorithm (HMAC family).
    :type algorithm: str
    """

    access_secret: str = field(repr=False)
    refresh_secret: str = field(repr=False)
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    algorithm: str = "HS256"


@dataclass(frozen=True, slots=True)
class AuthPolicy:
    """
    Account-flow policy knobs.

    :param verification_expires: Lifetime of an email verification token.
    :param reset_expires: Lifetime of a password-reset token.
    :param password_min_length: Minimum accepted password length.
    :param allow_email_only_reset: Accept a reset identified by email alone.
    :param frontend_url: Base URL used to build links in emails.
    """

    verification_expires: timedelta = timedelta(hours=24)
    reset_expires: timedelta = timedelta(hours=1)
    password_min_length: int = 8
    allow_email_only_reset: bool = False
    frontend_url: str = "http://localhost:5173"


# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param name: Display name.
    :param email: Login email (normalized by the model).
    :param password: Raw password.
    :param company_name: Optional company.
    """

    name: str
    email: str
    password: str
    company_name: str | None = None


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout. At least one field identifies the session.

    :param user_id: Clear whatever session the user holds.
    :type user_id: int | None
    :param refresh_token: Clear the session only if it still belongs to this token.
    :type refresh_token: str | None
    """

    user_id: int | None = None
    refresh_token: str | None = None


@dataclass(frozen=True, slots=True)
class VerifyEmailIn:
    token: str


@dataclass(frozen=True, slots=True)
class EmailIn:
    """Input DTO for flows keyed by email only (forgot password, resend)."""

    email: str


@dataclass(frozen=True, slots=True)
class ResetPasswordIn:
    """
    Input DTO for password reset.

    :param new_password: Raw new password.
    :param token: Reset token from the emailed link.
    :param email: Account email; only honored when the email-only variant
        is enabled.
    """

    new_password: str
    token: str | None = None
    email: str | None = None


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    user_id: int
    current_password: str
    new_password: str
    confirm_password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserSummaryOut:
    """
    Public view of a user.

    :param id: User id.
    :param name: Display name.
    :param email: Normalized email.
    :param company_name: Company, if any.
    :param email_verified: Whether the email was verified.
    :param counters: Usage counters by name.
    :param created_at: Creation timestamp.
    """

    id: int
    name: str
    email: str
    company_name: str | None
    email_verified: bool
    counters: dict[str, int]
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, user: User) -> UserSummaryOut:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            company_name=user.company_name,
            email_verified=bool(user.email_verified),
            counters={
                "files_uploaded": user.files_uploaded or 0,
                "batch_analysis": user.batch_analysis or 0,
                "compare_resumes": user.compare_resumes or 0,
                "selected_candidate": user.selected_candidate or 0,
            },
            created_at=user.created_at,
        )


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class AuthResultOut:
    """
    Output DTO for register/login.

    :param tokens: Fresh token pair.
    :param user: User summary.
    :param delivery: Pending verification email delivery, when one was sent.
    """

    tokens: TokenPairOut
    user: UserSummaryOut
    delivery: Future[DeliveryStatus] | None = None
