"""Service container: builds adapters and services once per application."""

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app

from hiredesk_auth.core.config import parse_duration, validate_mail, validate_secrets
from hiredesk_auth.infra.crypto.bcrypt_hasher import BcryptPasswordHasher
from hiredesk_auth.infra.jwt.jwt_token_issuer import JWTTokenIssuer
from hiredesk_auth.infra.mail.smtp_mailer import SMTPMailer, SMTPSettings
from hiredesk_auth.infra.sqlalchemy.session_store import SQLAlchemySessionStore
from hiredesk_auth.services._shared.ports import (
    InMemoryMailer,
    Mailer,
    PasswordHasher,
    SessionStore,
    TokenProvider,
)
from hiredesk_auth.services.auth.dto import AuthPolicy, TokenConfig
from hiredesk_auth.services.auth.service import AuthService
from hiredesk_auth.services.usage.service import UsageLimiter

EXTENSION_KEY = "hiredesk_auth"


@dataclass(slots=True)
class ServiceContainer:
    """
    Application-wide adapters and the services composed from them.

    Services are stateless between calls (each call opens its own Unit of
    Work), so a single instance per app is shared by all requests.
    """

    hasher: PasswordHasher
    tokens: TokenProvider
    sessions: SessionStore
    mailer: Mailer
    auth: AuthService
    usage: UsageLimiter


def token_config_from(config) -> TokenConfig:
    return TokenConfig(
        access_secret=config["JWT_ACCESS_SECRET"],
        refresh_secret=config["JWT_REFRESH_SECRET"],
        access_expires=parse_duration(config.get("JWT_ACCESS_EXPIRES", "15m")),
        refresh_expires=parse_duration(config.get("JWT_REFRESH_EXPIRES", "7d")),
        algorithm=config.get("JWT_ALGORITHM", "HS256"),
    )


def auth_policy_from(config) -> AuthPolicy:
    return AuthPolicy(
        verification_expires=parse_duration(config.get("EMAIL_VERIFICATION_EXPIRES", "24h")),
        reset_expires=parse_duration(config.get("PASSWORD_RESET_EXPIRES", "1h")),
        password_min_length=int(config.get("PASSWORD_MIN_LENGTH", 8)),
        allow_email_only_reset=bool(config.get("PASSWORD_RESET_ALLOW_EMAIL_ONLY", False)),
        frontend_url=config.get("FRONTEND_URL", "http://localhost:5173"),
    )


def build_mailer(config) -> Mailer:
    """Pick the SMTP adapter when ``MAIL_BACKEND == "smtp"``, else an in-memory outbox."""
    if str(config.get("MAIL_BACKEND", "memory")).lower() != "smtp":
        return InMemoryMailer()
    settings = SMTPSettings(
        host=config["SMTP_HOST"],
        port=int(config.get("SMTP_PORT", 587)),
        sender=config.get("MAIL_FROM", "no-reply@hiredesk.local"),
        username=config.get("SMTP_USER") or None,
        password=config.get("SMTP_PASSWORD") or None,
        use_tls=bool(config.get("SMTP_USE_TLS", True)),
        timeout=float(config.get("SMTP_TIMEOUT", 10)),
    )
    return SMTPMailer(settings, max_workers=int(config.get("MAIL_MAX_WORKERS", 2)))


def build_container(config) -> ServiceContainer:
    """
    Read the Flask config once and wire every adapter.

    :param config: Flask config mapping.
    :raises RuntimeError: On unsafe production secrets or a missing mail transport.
    :raises ValueError: On malformed durations or identical token secrets.
    """
    validate_secrets(config)
    validate_mail(config)
    hasher = BcryptPasswordHasher(rounds=int(config.get("BCRYPT_ROUNDS", 12)))
    tokens = JWTTokenIssuer(token_config_from(config))
    sessions = SQLAlchemySessionStore()
    mailer = build_mailer(config)
    return ServiceContainer(
        hasher=hasher,
        tokens=tokens,
        sessions=sessions,
        mailer=mailer,
        auth=AuthService(
            hasher=hasher,
            tokens=tokens,
            sessions=sessions,
            mailer=mailer,
            policy=auth_policy_from(config),
        ),
        usage=UsageLimiter(sessions=sessions, limits=config.get("USAGE_LIMITS")),
    )


def init_app(app: Flask) -> None:
    """Build the container and register it under ``app.extensions``."""
    app.extensions[EXTENSION_KEY] = build_container(app.config)


def get_container() -> ServiceContainer:
    """Return the container of the current app.

    :raises RuntimeError: If :func:`init_app` was not called.
    """
    container = current_app.extensions.get(EXTENSION_KEY)
    if container is None:
        raise RuntimeError("Service container is not initialized. Call init_app() first.")
    return container
