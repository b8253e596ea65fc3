"""User model: identity, credentials, session digest and usage counters."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from hiredesk_auth.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

# Length of a SHA-256 hex digest.
DIGEST_LENGTH = 64


def _counter_column() -> Mapped[int]:
    return mapped_column(Integer, nullable=False, default=0, server_default="0")


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Account holder of the HireDesk platform.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed).
    name : str
        Display name.
    company_name : str | None
        Optional company the user recruits for.
    password_hash : str
        bcrypt digest. Never plaintext; hashing is done by the service layer.
    email_verified : bool
        Whether the verification link has been consumed.
    verification_token_hash / verification_token_expires
        SHA-256 digest of the pending verification token and its expiry.
    reset_token_hash / reset_token_expires
        SHA-256 digest of the pending password-reset token and its expiry.
    refresh_token_hash : str | None
        SHA-256 digest of the single valid refresh token; ``None`` when no
        session is active.
    files_uploaded, batch_analysis, compare_resumes, selected_candidate : int
        Usage counters, never negative.
    """

    __tablename__ = "users"

    # Identity
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    company_name: Mapped[str | None] = mapped_column(String(150), nullable=True)

    # Credentials
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)
    email_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    verification_token_hash: Mapped[str | None] = mapped_column(
        String(DIGEST_LENGTH), nullable=True
    )
    verification_token_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reset_token_hash: Mapped[str | None] = mapped_column(String(DIGEST_LENGTH), nullable=True)
    reset_token_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Session
    refresh_token_hash: Mapped[str | None] = mapped_column(String(DIGEST_LENGTH), nullable=True)

    # Usage counters
    files_uploaded: Mapped[int] = _counter_column()
    batch_analysis: Mapped[int] = _counter_column()
    compare_resumes: Mapped[int] = _counter_column()
    selected_candidate: Mapped[int] = _counter_column()

    # Constraints & indexes
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        Index("ix_users_verification_token_hash", "verification_token_hash"),
        Index("ix_users_reset_token_hash", "reset_token_hash"),
        CheckConstraint("files_uploaded >= 0", name="files_uploaded_non_negative"),
        CheckConstraint("batch_analysis >= 0", name="batch_analysis_non_negative"),
        CheckConstraint("compare_resumes >= 0", name="compare_resumes_non_negative"),
        CheckConstraint("selected_candidate >= 0", name="selected_candidate_non_negative"),
    )

    # -------------------- Helpers --------------------
    @property
    def total_files_uploaded(self) -> int:
        """Resumes uploaded through any flow; candidate selections excluded."""
        return (self.files_uploaded or 0) + (self.batch_analysis or 0) + (self.compare_resumes or 0)

    @property
    def total_usage(self) -> int:
        return self.total_files_uploaded + (self.selected_candidate or 0)

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :param key: Field name (``email``).
        :type key: str
        :param value: Email to normalize.
        :type value: str
        :returns: Normalized email (lowercased/trimmed).
        :rtype: str
        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("name")
    def _normalize_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Name is required.")
        return value.strip()

    @validates("company_name")
    def _normalize_company(self, key: str, value: str | None) -> str | None:
        if value is None:
            return None
        v = value.strip()
        return v or None
