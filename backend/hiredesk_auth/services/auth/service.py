# hiredesk_auth/services/auth/service.py
from __future__ import annotations

import logging
from concurrent.futures import Future
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from hiredesk_auth.models.user import User
from hiredesk_auth.repositories.user import UserRepository
from hiredesk_auth.services._shared.base import BaseService
from hiredesk_auth.services._shared.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    PasswordMismatchError,
    TokenExpiredError,
    TokenInvalidError,
    ValidationError,
    WeakPasswordError,
    violates,
)
from hiredesk_auth.services._shared.ports import (
    DeliveryStatus,
    Mailer,
    OutgoingEmail,
    PasswordHasher,
    SessionStore,
    TokenProvider,
)
from hiredesk_auth.services._shared.security import (
    as_aware,
    generate_opaque_token,
    hash_token,
    now_utc,
)
from hiredesk_auth.services.auth import emails
from hiredesk_auth.services.auth.dto import (
    AuthPolicy,
    AuthResultOut,
    ChangePasswordIn,
    EmailIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
    TokenPairOut,
    UserSummaryOut,
    VerifyEmailIn,
)

log = logging.getLogger(__name__)

# Verified against when the email is unknown so both login failures cost one bcrypt check.
_DUMMY_PASSWORD = "hiredesk-timing-equalizer"


class AuthService(BaseService):
    """
    Account lifecycle service: registration, credentials, sessions and
    one-time email tokens.

    A session is the single refresh-token digest stored on the user row.
    Login and registration overwrite it, refresh rotates it with an atomic
    compare-and-swap, and logout, password reset or detected reuse clear it.

    Emails go out after the database commit; a delivery failure never fails
    the flow.
    """

    def __init__(
        self,
        *,
        hasher: PasswordHasher,
        tokens: TokenProvider,
        sessions: SessionStore,
        mailer: Mailer,
        policy: AuthPolicy | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param hasher: Password hashing adapter.
        :param tokens: Adapter issuing/verifying signed tokens.
        :param sessions: Store for refresh digests (atomic rotation).
        :param mailer: Asynchronous email delivery.
        :param policy: Token lifetimes and password rules for account flows.
        """
        self.hasher = hasher
        self.tokens = tokens
        self.sessions = sessions
        self.mailer = mailer
        self.policy = policy or AuthPolicy()
        self._dummy_hash: str | None = None

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> AuthResultOut:
        """
        Create an account, open its first session and send the verification email.

        :param dto: Registration input.
        :returns: Token pair, user summary and the verification delivery handle.
        :raises WeakPasswordError: If the password is too short.
        :raises DuplicateEmailError: If the email already has an account.
        """
        self._ensure_strong(dto.password)
        password_hash = self.hasher.hash(dto.password)
        verification_token = generate_opaque_token()

        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                if repo.exists_by_email(dto.email):
                    raise DuplicateEmailError()
                user = self._new_user(dto, password_hash)
                user.verification_token_hash = hash_token(verification_token)
                user.verification_token_expires = now_utc() + self.policy.verification_expires
                repo.add(user)
                summary = UserSummaryOut.from_model(user)
        except IntegrityError as exc:
            # Lost a race against a concurrent registration with the same email
            if violates(exc, "uq_users_email"):
                raise DuplicateEmailError() from exc
            raise

        pair = self._open_session(summary.id)
        log.info(
            "User registered",
            extra={"event": "auth.register", "user_id": summary.id},
        )

        delivery = self._send(
            emails.verification_email(
                to=summary.email,
                name=summary.name,
                token=verification_token,
                frontend_url=self.policy.frontend_url,
                expires=self.policy.verification_expires,
            ),
            user_id=summary.id,
        )
        return AuthResultOut(tokens=pair, user=summary, delivery=delivery)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> AuthResultOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Unknown email and wrong password raise the same error after the same
        amount of bcrypt work.

        :param dto: Login input.
        :returns: Access/Refresh token pair plus the user summary.
        :raises InvalidCredentialsError: If credentials are invalid.
        """
        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get_by_email(dto.email)
            if user is None:
                stored_hash = None
                summary = None
            else:
                stored_hash = user.password_hash
                summary = UserSummaryOut.from_model(user)

        if summary is None:
            self.hasher.verify(dto.password, self._timing_hash())
            log.info("Login failed", extra={"event": "auth.login_failed"})
            raise InvalidCredentialsError()
        if not self.hasher.verify(dto.password, stored_hash):
            log.info(
                "Login failed",
                extra={"event": "auth.login_failed", "user_id": summary.id},
            )
            raise InvalidCredentialsError()

        pair = self._open_session(summary.id)
        log.info("User logged in", extra={"event": "auth.login", "user_id": summary.id})
        return AuthResultOut(tokens=pair, user=summary)

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        Security
        --------
        - The token must verify AND its digest must be the stored one.
        - Rotation is a compare-and-swap; of two concurrent refreshes with
          the same token exactly one wins.
        - A digest mismatch (reuse of a rotated-out token, a logged-out
          session, a lost race) clears the session and forces a new login.

        :raises TokenExpiredError: If the refresh token has expired.
        :raises InvalidCredentialsError: For any other rejection.
        """
        try:
            user_id = self.tokens.verify_refresh(dto.refresh_token)
        except TokenInvalidError as exc:
            raise InvalidCredentialsError("Invalid refresh token") from exc

        new_refresh = self.tokens.issue_refresh(user_id)
        rotated = self.sessions.compare_and_swap(
            user_id, hash_token(dto.refresh_token), hash_token(new_refresh)
        )
        if not rotated:
            self._revoke_all(user_id)
            log.warning(
                "Refresh token reuse detected; session revoked",
                extra={"event": "auth.refresh_reuse", "user_id": user_id},
            )
            raise InvalidCredentialsError("Session is no longer valid. Please sign in again.")

        return TokenPairOut(
            access_token=self.tokens.issue_access(user_id),
            refresh_token=new_refresh,
        )

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        End the session. Idempotent: unknown, expired or already cleared
        tokens are not errors.

        With a refresh token only that token's session is cleared
        (compare-and-clear); with a bare ``user_id`` whatever session the
        user holds is cleared.
        """
        if dto.refresh_token:
            try:
                user_id = self.tokens.verify_refresh(dto.refresh_token)
            except (TokenExpiredError, TokenInvalidError) as exc:
                log.debug("Logout with unusable refresh token: %s", exc.__class__.__name__)
            else:
                self.sessions.compare_and_clear(user_id, hash_token(dto.refresh_token))
                log.info("User logged out", extra={"event": "auth.logout", "user_id": user_id})
                return

        if dto.user_id is not None:
            self._revoke_all(dto.user_id)
            log.info("User logged out", extra={"event": "auth.logout", "user_id": dto.user_id})

    # ------------------------------------------------------------------ #
    # Email verification
    # ------------------------------------------------------------------ #

    def verify_email(self, dto: VerifyEmailIn) -> UserSummaryOut:
        """
        Consume a verification token.

        :raises InvalidOrExpiredTokenError: If no user holds the token or it expired.
        """
        if not dto.token:
            raise InvalidOrExpiredTokenError()
        digest = hash_token(dto.token)
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get_by_verification_token_hash(digest)
            if user is None or self._expired(user.verification_token_expires):
                raise InvalidOrExpiredTokenError()
            # A concurrent request may have consumed the token since the read
            if not repo.consume_verification_token(user.id, digest):
                raise InvalidOrExpiredTokenError()
            summary = UserSummaryOut.from_model(user)
        log.info("Email verified", extra={"event": "auth.verify_email", "user_id": summary.id})
        return summary

    def resend_verification(self, dto: EmailIn) -> Future[DeliveryStatus] | None:
        """
        Replace the pending verification token and email it again.

        Returns ``None`` (without error) when the email is unknown or already
        verified, so the endpoint cannot be used to enumerate accounts.
        """
        token = generate_opaque_token()
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get_by_email(dto.email)
            if user is None or user.email_verified:
                return None
            repo.update(
                user,
                verification_token_hash=hash_token(token),
                verification_token_expires=now_utc() + self.policy.verification_expires,
            )
            to, name, user_id = user.email, user.name, user.id

        return self._send(
            emails.verification_email(
                to=to,
                name=name,
                token=token,
                frontend_url=self.policy.frontend_url,
                expires=self.policy.verification_expires,
            ),
            user_id=user_id,
        )

    # ------------------------------------------------------------------ #
    # Password reset / change
    # ------------------------------------------------------------------ #

    def request_password_reset(self, dto: EmailIn) -> Future[DeliveryStatus] | None:
        """
        Issue a reset token and email the reset link.

        Unknown emails return ``None`` silently.
        """
        token = generate_opaque_token()
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get_by_email(dto.email)
            if user is None:
                log.info("Password reset requested for unknown email")
                return None
            repo.update(
                user,
                reset_token_hash=hash_token(token),
                reset_token_expires=now_utc() + self.policy.reset_expires,
            )
            to, name, user_id = user.email, user.name, user.id

        log.info(
            "Password reset requested",
            extra={"event": "auth.reset_request", "user_id": user_id},
        )
        return self._send(
            emails.password_reset_email(
                to=to,
                name=name,
                token=token,
                frontend_url=self.policy.frontend_url,
                expires=self.policy.reset_expires,
            ),
            user_id=user_id,
        )

    def reset_password(self, dto: ResetPasswordIn) -> None:
        """
        Set a new password from a reset token (or, when enabled, an email).

        On success the reset fields are cleared and the active session is
        revoked.

        :raises WeakPasswordError: If the new password is too short.
        :raises InvalidOrExpiredTokenError: If the token (or email) matches no user.
        :raises ValidationError: If neither token nor an accepted email is given.
        """
        self._ensure_strong(dto.new_password)
        if not dto.token and not (dto.email and self.policy.allow_email_only_reset):
            raise ValidationError("Reset token is required", {"token": ["Missing reset token."]})
        password_hash = self.hasher.hash(dto.new_password)

        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            if dto.token:
                digest = hash_token(dto.token)
                user = repo.get_by_reset_token_hash(digest)
                if user is None or self._expired(user.reset_token_expires):
                    raise InvalidOrExpiredTokenError()
                # Single use: only the request that clears the digest wins
                if not repo.consume_reset_token(user.id, digest, password_hash):
                    raise InvalidOrExpiredTokenError()
            else:
                user = repo.get_by_email(dto.email or "")
                if user is None:
                    raise InvalidOrExpiredTokenError()
                repo.update(
                    user,
                    password_hash=password_hash,
                    reset_token_hash=None,
                    reset_token_expires=None,
                )
            user_id = user.id

        self._revoke_all(user_id)
        log.info("Password reset", extra={"event": "auth.reset_password", "user_id": user_id})

    def change_password(self, dto: ChangePasswordIn) -> None:
        """
        Change the password of an authenticated user.

        :raises PasswordMismatchError: If new and confirmation differ.
        :raises WeakPasswordError: If the new password is too short.
        :raises InvalidCredentialsError: If the current password is wrong.
        :raises NotFoundError: If the user no longer exists.
        """
        if dto.new_password != dto.confirm_password:
            raise PasswordMismatchError()
        self._ensure_strong(dto.new_password)

        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get(dto.user_id)
            if user is None:
                raise NotFoundError("User", dto.user_id)
            if not self.hasher.verify(dto.current_password, user.password_hash):
                raise InvalidCredentialsError("Current password is incorrect")
            repo.update(user, password_hash=self.hasher.hash(dto.new_password))

        log.info(
            "Password changed",
            extra={"event": "auth.change_password", "user_id": dto.user_id},
        )

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def get_profile(self, user_id: int) -> UserSummaryOut:
        """
        :raises NotFoundError: If the user no longer exists.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return UserSummaryOut.from_model(user)

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _ensure_strong(self, password: str) -> None:
        if not isinstance(password, str) or len(password) < self.policy.password_min_length:
            raise WeakPasswordError(self.policy.password_min_length)

    @staticmethod
    def _new_user(dto: RegisterIn, password_hash: str) -> User:
        try:
            return User(
                name=dto.name,
                email=dto.email,
                company_name=dto.company_name,
                password_hash=password_hash,
                email_verified=False,
            )
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

    def _open_session(self, user_id: int) -> TokenPairOut:
        """Issue a pair and make its refresh digest the only valid one."""
        access = self.tokens.issue_access(user_id)
        refresh = self.tokens.issue_refresh(user_id)
        self.sessions.set_refresh_hash(user_id, hash_token(refresh))
        return TokenPairOut(access_token=access, refresh_token=refresh)

    def _revoke_all(self, user_id: int) -> None:
        try:
            self.sessions.set_refresh_hash(user_id, None)
        except NotFoundError:
            log.debug("Session revoke for missing user %s ignored", user_id)

    def _timing_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self.hasher.hash(_DUMMY_PASSWORD)
        return self._dummy_hash

    @staticmethod
    def _expired(expires_at: datetime | None) -> bool:
        return expires_at is None or as_aware(expires_at) <= now_utc()

    def _send(self, email: OutgoingEmail, *, user_id: int) -> Future[DeliveryStatus]:
        fut = self.mailer.send(email)

        def _log_outcome(done: Future[DeliveryStatus]) -> None:
            status = done.result()
            if not status.delivered:
                log.warning(
                    "Email not delivered: tag=%s error=%s",
                    email.tag,
                    status.error,
                    extra={"event": "mail.undelivered", "user_id": user_id, "delivered": False},
                )

        fut.add_done_callback(_log_outcome)
        return fut
