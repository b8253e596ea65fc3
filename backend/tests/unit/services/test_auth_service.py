# tests/unit/services/test_auth_service.py
from __future__ import annotations

from concurrent.futures import Future
from datetime import UTC, datetime, timedelta

import pytest
from freezegun import freeze_time
from hiredesk_auth.infra.crypto.bcrypt_hasher import BcryptPasswordHasher
from hiredesk_auth.infra.sqlalchemy.session_store import SQLAlchemySessionStore
from hiredesk_auth.models.user import User
from hiredesk_auth.repositories.user import UserRepository
from hiredesk_auth.services._shared.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    PasswordMismatchError,
    TokenExpiredError,
    ValidationError,
    WeakPasswordError,
)
from hiredesk_auth.services._shared.ports import (
    DeliveryStatus,
    InMemoryMailer,
    OutgoingEmail,
    StubTokenProvider,
)
from hiredesk_auth.services._shared.security import hash_token
from hiredesk_auth.services.auth.dto import (
    AuthPolicy,
    ChangePasswordIn,
    EmailIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
    TokenPairOut,
    VerifyEmailIn,
)
from hiredesk_auth.services.auth.service import AuthService
from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from tests.helpers.utils import token_from_email


class FailingMailer(InMemoryMailer):
    """Records emails but reports every delivery as failed."""

    def send(self, email: OutgoingEmail) -> Future[DeliveryStatus]:
        super().send(email)
        fut: Future[DeliveryStatus] = Future()
        fut.set_result(DeliveryStatus(delivered=False, error="connection refused"))
        return fut


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def mailer() -> InMemoryMailer:
    return InMemoryMailer()


@pytest.fixture()
def sessions() -> SQLAlchemySessionStore:
    return SQLAlchemySessionStore()


@pytest.fixture()
def policy() -> AuthPolicy:
    return AuthPolicy(frontend_url="http://frontend.test")


@pytest.fixture()
def service(app, session, mailer, sessions, policy) -> AuthService:
    """
    Build an AuthService on the transactional session.

    .. note::
       Tokens come from :class:`StubTokenProvider` so tests can force expiry.
    """
    return AuthService(
        hasher=BcryptPasswordHasher(rounds=4),
        tokens=StubTokenProvider(),
        sessions=sessions,
        mailer=mailer,
        policy=policy,
    )


def _register(service: AuthService, email: str = "ada@example.com", **overrides):
    data = {"name": "Ada Lovelace", "email": email, "password": "s3cret-pass"}
    data.update(overrides)
    return service.register(RegisterIn(**data))


# ------------------------------ Register ---------------------------------- #
def test_register_creates_unverified_user_with_hashed_password(service, session):
    result = _register(service, email="  Ada@Example.COM ", company_name="Analytical Engines")

    user = session.get(User, result.user.id)
    assert user.email == "ada@example.com"
    assert user.company_name == "Analytical Engines"
    assert user.email_verified is False
    assert user.password_hash != "s3cret-pass"
    assert user.password_hash.startswith("$2")
    assert result.user.counters == {
        "files_uploaded": 0,
        "batch_analysis": 0,
        "compare_resumes": 0,
        "selected_candidate": 0,
    }


def test_register_opens_a_session(service, sessions):
    result = _register(service)

    assert isinstance(result.tokens, TokenPairOut)
    assert service.tokens.verify_access(result.tokens.access_token) == result.user.id
    stored = sessions.get_refresh_hash(result.user.id)
    assert stored == hash_token(result.tokens.refresh_token)


def test_register_sends_verification_link(service, mailer, session):
    result = _register(service)

    assert result.delivery is not None
    assert result.delivery.result().delivered is True
    email = mailer.last_to("ada@example.com")
    assert email.tag == "verify_email"
    assert "http://frontend.test/verify-email?token=" in email.text
    assert "24 hours" in email.text

    # Only the digest is stored, never the token itself
    token = token_from_email(email)
    user = session.get(User, result.user.id)
    assert user.verification_token_hash == hash_token(token)
    assert token not in (user.verification_token_hash or "")


def test_register_duplicate_email_is_case_insensitive(service, session):
    _register(service, email="dup@example.com")

    with pytest.raises(DuplicateEmailError):
        _register(service, email="DUP@example.com")

    assert session.query(User).filter_by(email="dup@example.com").count() == 1


def test_register_rejects_short_password(service, session):
    with pytest.raises(WeakPasswordError):
        _register(service, email="weak@example.com", password="short")

    assert session.query(User).filter_by(email="weak@example.com").count() == 0


def test_register_rejects_blank_name(service):
    with pytest.raises(ValidationError):
        _register(service, email="blank@example.com", name="   ")


def test_register_succeeds_when_email_delivery_fails(app, session, sessions, policy):
    service = AuthService(
        hasher=BcryptPasswordHasher(rounds=4),
        tokens=StubTokenProvider(),
        sessions=sessions,
        mailer=FailingMailer(),
        policy=policy,
    )

    result = _register(service, email="offline@example.com")

    assert result.user.id is not None
    assert result.delivery.result() == DeliveryStatus(False, "connection refused")


# ------------------------------- Login ------------------------------------ #
def test_login_issues_token_pair(service, sessions):
    user = UserFactory(email="login@example.com")

    result = service.login(LoginIn(email="LOGIN@example.com", password=DEFAULT_PASSWORD))

    assert result.user.id == user.id
    assert result.tokens.access_token.startswith("access.")
    assert result.tokens.refresh_token.startswith("refresh.")
    assert sessions.get_refresh_hash(user.id) == hash_token(result.tokens.refresh_token)


def test_login_failures_are_indistinguishable(service):
    UserFactory(email="known@example.com")

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        service.login(LoginIn(email="known@example.com", password="not-the-password"))
    with pytest.raises(InvalidCredentialsError) as unknown_email:
        service.login(LoginIn(email="unknown@example.com", password=DEFAULT_PASSWORD))

    assert str(wrong_password.value) == str(unknown_email.value) == "Invalid credentials"


def test_second_login_replaces_the_previous_session(service):
    UserFactory(email="twice@example.com")
    first = service.login(LoginIn(email="twice@example.com", password=DEFAULT_PASSWORD))
    service.login(LoginIn(email="twice@example.com", password=DEFAULT_PASSWORD))

    with pytest.raises(InvalidCredentialsError):
        service.refresh(RefreshIn(refresh_token=first.tokens.refresh_token))


# ------------------------------ Refresh ----------------------------------- #
def test_refresh_rotates_the_stored_digest(service, sessions):
    login = _register(service)

    pair = service.refresh(RefreshIn(refresh_token=login.tokens.refresh_token))

    assert pair.refresh_token != login.tokens.refresh_token
    assert sessions.get_refresh_hash(login.user.id) == hash_token(pair.refresh_token)
    assert service.tokens.verify_access(pair.access_token) == login.user.id


def test_refresh_reuse_revokes_the_session(service, sessions):
    login = _register(service)
    rotated = service.refresh(RefreshIn(refresh_token=login.tokens.refresh_token))

    with pytest.raises(InvalidCredentialsError):
        service.refresh(RefreshIn(refresh_token=login.tokens.refresh_token))

    # The legitimate holder of the rotated token is logged out too
    assert sessions.get_refresh_hash(login.user.id) is None
    with pytest.raises(InvalidCredentialsError):
        service.refresh(RefreshIn(refresh_token=rotated.refresh_token))


def test_refresh_expired_token(service, sessions):
    login = _register(service)
    service.tokens.expire(login.tokens.refresh_token)

    with pytest.raises(TokenExpiredError):
        service.refresh(RefreshIn(refresh_token=login.tokens.refresh_token))

    # Expiry is not treated as reuse
    assert sessions.get_refresh_hash(login.user.id) == hash_token(login.tokens.refresh_token)


def test_refresh_rejects_access_token_and_garbage(service):
    login = _register(service)

    with pytest.raises(InvalidCredentialsError):
        service.refresh(RefreshIn(refresh_token=login.tokens.access_token))
    with pytest.raises(InvalidCredentialsError):
        service.refresh(RefreshIn(refresh_token="not-a-token"))


# ------------------------------- Logout ----------------------------------- #
def test_logout_clears_the_session(service, sessions):
    login = _register(service)

    service.logout(LogoutIn(refresh_token=login.tokens.refresh_token))

    assert sessions.get_refresh_hash(login.user.id) is None
    with pytest.raises(InvalidCredentialsError):
        service.refresh(RefreshIn(refresh_token=login.tokens.refresh_token))


def test_logout_is_idempotent(service):
    login = _register(service)

    service.logout(LogoutIn(refresh_token=login.tokens.refresh_token))
    service.logout(LogoutIn(refresh_token=login.tokens.refresh_token))
    service.logout(LogoutIn(refresh_token="garbage"))
    service.logout(LogoutIn())


def test_logout_with_stale_token_keeps_newer_session(service, sessions):
    login = _register(service)
    rotated = service.refresh(RefreshIn(refresh_token=login.tokens.refresh_token))

    # Only the token's own session may be cleared
    service.logout(LogoutIn(refresh_token=login.tokens.refresh_token))

    assert sessions.get_refresh_hash(login.user.id) == hash_token(rotated.refresh_token)


def test_logout_by_user_id(service, sessions):
    login = _register(service)

    service.logout(LogoutIn(user_id=login.user.id))

    assert sessions.get_refresh_hash(login.user.id) is None


# -------------------------- Email verification ---------------------------- #
def test_verify_email_consumes_the_token(service, mailer, session):
    result = _register(service)
    token = token_from_email(mailer.last_to("ada@example.com"))

    summary = service.verify_email(VerifyEmailIn(token=token))

    assert summary.email_verified is True
    user = session.get(User, result.user.id)
    assert user.verification_token_hash is None
    assert user.verification_token_expires is None
    with pytest.raises(InvalidOrExpiredTokenError):
        service.verify_email(VerifyEmailIn(token=token))


def test_verify_email_rejects_expired_token(service, mailer):
    _register(service)
    token = token_from_email(mailer.last_to("ada@example.com"))

    with freeze_time(datetime.now(UTC) + timedelta(hours=25)):
        with pytest.raises(InvalidOrExpiredTokenError):
            service.verify_email(VerifyEmailIn(token=token))


def test_verify_email_rejects_unknown_token(service):
    with pytest.raises(InvalidOrExpiredTokenError):
        service.verify_email(VerifyEmailIn(token="unknown"))


def test_verify_email_loses_race_to_concurrent_verification(service, mailer, monkeypatch):
    _register(service)
    token = token_from_email(mailer.last_to("ada@example.com"))
    consume = UserRepository.consume_verification_token

    def lose_race(repo, user_id, digest):
        consume(repo, user_id, digest)
        return consume(repo, user_id, digest)

    monkeypatch.setattr(UserRepository, "consume_verification_token", lose_race)

    with pytest.raises(InvalidOrExpiredTokenError):
        service.verify_email(VerifyEmailIn(token=token))


def test_resend_verification_replaces_the_token(service, mailer):
    _register(service)
    first = token_from_email(mailer.last_to("ada@example.com"))

    delivery = service.resend_verification(EmailIn(email="ada@example.com"))

    assert delivery is not None
    second = token_from_email(mailer.last_to("ada@example.com"))
    assert second != first
    with pytest.raises(InvalidOrExpiredTokenError):
        service.verify_email(VerifyEmailIn(token=first))
    assert service.verify_email(VerifyEmailIn(token=second)).email_verified is True


def test_resend_verification_is_silent_for_unknown_or_verified(service, mailer):
    _register(service)
    service.verify_email(VerifyEmailIn(token=token_from_email(mailer.outbox[-1])))
    mailer.clear()

    assert service.resend_verification(EmailIn(email="ada@example.com")) is None
    assert service.resend_verification(EmailIn(email="ghost@example.com")) is None
    assert mailer.outbox == []


# ---------------------------- Password reset ------------------------------ #
def test_password_reset_flow(service, mailer, sessions):
    login = _register(service)
    delivery = service.request_password_reset(EmailIn(email="ada@example.com"))
    assert delivery is not None
    email = mailer.last_to("ada@example.com")
    assert email.tag == "reset_password"
    assert "1 hour" in email.text

    service.reset_password(
        ResetPasswordIn(token=token_from_email(email), new_password="brand-new-pass")
    )

    # New password works, old one does not, and the session is gone
    service.login(LoginIn(email="ada@example.com", password="brand-new-pass"))
    with pytest.raises(InvalidCredentialsError):
        service.login(LoginIn(email="ada@example.com", password="s3cret-pass"))
    with pytest.raises(InvalidCredentialsError):
        service.refresh(RefreshIn(refresh_token=login.tokens.refresh_token))


def test_password_reset_token_is_single_use(service, mailer):
    _register(service)
    service.request_password_reset(EmailIn(email="ada@example.com"))
    token = token_from_email(mailer.last_to("ada@example.com"))

    service.reset_password(ResetPasswordIn(token=token, new_password="brand-new-pass"))

    with pytest.raises(InvalidOrExpiredTokenError):
        service.reset_password(ResetPasswordIn(token=token, new_password="another-pass"))


def test_password_reset_token_expires(service, mailer):
    _register(service)
    service.request_password_reset(EmailIn(email="ada@example.com"))
    token = token_from_email(mailer.last_to("ada@example.com"))

    with freeze_time(datetime.now(UTC) + timedelta(hours=2)):
        with pytest.raises(InvalidOrExpiredTokenError):
            service.reset_password(ResetPasswordIn(token=token, new_password="brand-new-pass"))


def test_password_reset_loses_race_to_concurrent_reset(service, mailer, monkeypatch):
    _register(service)
    service.request_password_reset(EmailIn(email="ada@example.com"))
    token = token_from_email(mailer.last_to("ada@example.com"))
    consume = UserRepository.consume_reset_token

    def lose_race(repo, user_id, digest, password_hash):
        # Another request with the same token commits between our read and write
        consume(repo, user_id, digest, "winner-hash")
        return consume(repo, user_id, digest, password_hash)

    monkeypatch.setattr(UserRepository, "consume_reset_token", lose_race)

    with pytest.raises(InvalidOrExpiredTokenError):
        service.reset_password(ResetPasswordIn(token=token, new_password="brand-new-pass"))


def test_password_reset_request_for_unknown_email_is_silent(service, mailer):
    assert service.request_password_reset(EmailIn(email="ghost@example.com")) is None
    assert mailer.outbox == []


def test_password_reset_requires_token_by_default(service):
    _register(service)

    with pytest.raises(ValidationError):
        service.reset_password(
            ResetPasswordIn(email="ada@example.com", new_password="brand-new-pass")
        )


def test_password_reset_by_email_when_enabled(app, session, sessions, mailer):
    service = AuthService(
        hasher=BcryptPasswordHasher(rounds=4),
        tokens=StubTokenProvider(),
        sessions=sessions,
        mailer=mailer,
        policy=AuthPolicy(allow_email_only_reset=True),
    )
    _register(service)

    service.reset_password(ResetPasswordIn(email="ada@example.com", new_password="brand-new-pass"))

    service.login(LoginIn(email="ada@example.com", password="brand-new-pass"))
    with pytest.raises(InvalidOrExpiredTokenError):
        service.reset_password(
            ResetPasswordIn(email="ghost@example.com", new_password="brand-new-pass")
        )


# ---------------------------- Change password ----------------------------- #
def test_change_password(service):
    user = UserFactory(email="change@example.com")

    service.change_password(
        ChangePasswordIn(
            user_id=user.id,
            current_password=DEFAULT_PASSWORD,
            new_password="changed-pass",
            confirm_password="changed-pass",
        )
    )

    service.login(LoginIn(email="change@example.com", password="changed-pass"))


def test_change_password_checks(service):
    user = UserFactory()

    with pytest.raises(PasswordMismatchError):
        service.change_password(
            ChangePasswordIn(user.id, DEFAULT_PASSWORD, "changed-pass", "different-pass")
        )
    with pytest.raises(WeakPasswordError):
        service.change_password(ChangePasswordIn(user.id, DEFAULT_PASSWORD, "short", "short"))
    with pytest.raises(InvalidCredentialsError, match="Current password is incorrect"):
        service.change_password(
            ChangePasswordIn(user.id, "wrong-current", "changed-pass", "changed-pass")
        )
    with pytest.raises(NotFoundError):
        service.change_password(
            ChangePasswordIn(999_999, DEFAULT_PASSWORD, "changed-pass", "changed-pass")
        )


# ------------------------------- Profile ---------------------------------- #
def test_get_profile(service):
    user = UserFactory(name="Grace Hopper", company_name=None)

    summary = service.get_profile(user.id)

    assert summary.name == "Grace Hopper"
    assert summary.company_name is None
    assert summary.email_verified is False

    with pytest.raises(NotFoundError):
        service.get_profile(999_999)
