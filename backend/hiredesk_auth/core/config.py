"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Placeholder secrets; production refuses to boot with these.
PLACEHOLDER_SECRETS: Final[frozenset[str]] = frozenset(
    {"CHANGE_ME", "CHANGE_ME_ACCESS", "CHANGE_ME_REFRESH"}
)

USAGE_COUNTER_NAMES: Final[tuple[str, ...]] = (
    "files_uploaded",
    "batch_analysis",
    "compare_resumes",
    "selected_candidate",
)

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


# Load .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_duration(raw: str | int | timedelta) -> timedelta:
    """Parse ``"15m"``, ``"7d"``, ``"24h"``, ``"30s"`` or plain seconds.

    :param raw: Duration literal, number of seconds or a ready ``timedelta``.
    :returns: Parsed duration.
    :rtype: timedelta
    :raises ValueError: If the literal is not understood or not positive.
    """
    if isinstance(raw, timedelta):
        return raw
    if isinstance(raw, int):
        value, unit = raw, ""
    else:
        match = _DURATION_RE.match(raw)
        if match is None:
            raise ValueError(f"Invalid duration literal: {raw!r}")
        value, unit = int(match.group(1)), match.group(2).lower()
    if value <= 0:
        raise ValueError(f"Duration must be positive: {raw!r}")
    return timedelta(**{_DURATION_UNITS[unit]: value})


def env_limit(name: str, default: int | None) -> int | None:
    """Read an optional non-negative integer ceiling; blank means uncapped."""
    val = os.getenv(name)
    if val is None:
        return default
    val = val.strip()
    if not val or val.lower() in {"none", "off", "unlimited"}:
        return None
    limit = int(val)
    if limit < 0:
        raise ValueError(f"{name} must be >= 0")
    return limit


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret. Not used for tokens.
    JWT_ACCESS_SECRET / JWT_REFRESH_SECRET: str
        Independent HMAC keys for access and refresh tokens.
    JWT_ACCESS_EXPIRES / JWT_REFRESH_EXPIRES: str
        Token lifetimes as duration literals (``15m`` / ``7d``).
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    BCRYPT_ROUNDS: int
        bcrypt cost factor.
    USAGE_LIMITS: dict[str, int | None]
        Per-counter ceilings; ``None`` means uncapped.
    MAIL_BACKEND: str
        ``"smtp"`` or ``"memory"``.
    REFRESH_COOKIE_*:
        Attributes of the refresh-token cookie.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "CHANGE_ME_ACCESS")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "CHANGE_ME_REFRESH")
    JWT_ALGORITHM = "HS256"
    JWT_ACCESS_EXPIRES = os.getenv("JWT_ACCESS_EXPIRES", "15m")
    JWT_REFRESH_EXPIRES = os.getenv("JWT_REFRESH_EXPIRES", "7d")
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Account flows
    EMAIL_VERIFICATION_EXPIRES = os.getenv("EMAIL_VERIFICATION_EXPIRES", "24h")
    PASSWORD_RESET_EXPIRES = os.getenv("PASSWORD_RESET_EXPIRES", "1h")
    PASSWORD_MIN_LENGTH = 8
    PASSWORD_RESET_ALLOW_EMAIL_ONLY = env_bool("PASSWORD_RESET_ALLOW_EMAIL_ONLY", False)
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # Usage counters (the source caps only selected_candidate)
    USAGE_LIMITS: dict[str, int | None] = {
        "files_uploaded": env_limit("USAGE_LIMIT_FILES_UPLOADED", None),
        "batch_analysis": env_limit("USAGE_LIMIT_BATCH_ANALYSIS", None),
        "compare_resumes": env_limit("USAGE_LIMIT_COMPARE_RESUMES", None),
        "selected_candidate": env_limit("USAGE_LIMIT_SELECTED_CANDIDATE", 10),
    }

    # Refresh cookie
    REFRESH_COOKIE_NAME = "refreshToken"
    REFRESH_COOKIE_PATH = "/api/auth"
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", False)

    # Mail
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "smtp" if os.getenv("SMTP_HOST") else "memory")
    MAIL_FROM = os.getenv("MAIL_FROM", "HireDesk <no-reply@hiredesk.local>")
    SMTP_HOST = os.getenv("SMTP_HOST", "")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS = env_bool("SMTP_USE_TLS", True)
    SMTP_TIMEOUT = float(os.getenv("SMTP_TIMEOUT", "10"))
    MAIL_MAX_WORKERS = int(os.getenv("MAIL_MAX_WORKERS", "2"))

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Lowers the bcrypt cost so hashing does not dominate test time.
    - Captures outgoing mail in memory.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PROPAGATE_EXCEPTIONS = True
    JWT_ACCESS_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"
    BCRYPT_ROUNDS = 4
    MAIL_BACKEND = "memory"
    PASSWORD_RESET_ALLOW_EMAIL_ONLY = False
    USAGE_LIMITS: dict[str, int | None] = {
        "files_uploaded": None,
        "batch_analysis": None,
        "compare_resumes": None,
        "selected_candidate": 10,
    }


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled, marks the refresh cookie ``Secure``
    and relies on WSGI-level log configuration for noise control.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REFRESH_COOKIE_SECURE = True


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_secrets(config: Mapping[str, object]) -> None:
    """Refuse to run production with placeholder or shared token secrets.

    :param config: Flask config mapping.
    :raises RuntimeError: When the secrets are unsafe for production.
    """
    if config.get("DEBUG") or config.get("TESTING"):
        return
    access = str(config.get("JWT_ACCESS_SECRET") or "")
    refresh = str(config.get("JWT_REFRESH_SECRET") or "")
    if access in PLACEHOLDER_SECRETS or refresh in PLACEHOLDER_SECRETS:
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set.")
    if access == refresh:
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ.")


def validate_mail(config: Mapping[str, object]) -> None:
    """Refuse to run production without a real mail transport.

    The in-memory outbox reports every send as delivered, so verification and
    reset links would vanish without a trace.

    :param config: Flask config mapping.
    :raises RuntimeError: When ``MAIL_BACKEND`` is not ``smtp`` or
        ``SMTP_HOST`` is empty outside debug and testing.
    """
    if config.get("DEBUG") or config.get("TESTING"):
        return
    if str(config.get("MAIL_BACKEND") or "memory").lower() != "smtp":
        raise RuntimeError("MAIL_BACKEND must be 'smtp' in production; set SMTP_HOST.")
    if not str(config.get("SMTP_HOST") or "").strip():
        raise RuntimeError("SMTP_HOST must be set when MAIL_BACKEND is 'smtp'.")
