# hiredesk_auth/services/_shared/base.py
from __future__ import annotations

from hiredesk_auth.core import errors as api_errors
from hiredesk_auth.services._shared.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    LimitExceededError,
    NotFoundError,
    PasswordMismatchError,
    ServiceError,
    TokenExpiredError,
    TokenInvalidError,
    UnauthorizedError,
    ValidationError,
    WeakPasswordError,
)
from hiredesk_auth.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Keep services thin, orchestration-only, no web/ORM leakage.

    Notes
    -----
    Services must never touch the global session; always use a Unit of Work.
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level (e.g. "READ COMMITTED").
        :type isolation: str | None
        :param enforce_db_readonly: Apply `SET TRANSACTION READ ONLY` when supported.
        :type enforce_db_readonly: bool
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, DuplicateEmailError):
            return api_errors.Conflict(str(exc), code="duplicate_email")

        if isinstance(exc, InvalidCredentialsError):
            return api_errors.Unauthorized(str(exc), code="invalid_credentials")

        if isinstance(exc, TokenInvalidError):
            return api_errors.Unauthorized(str(exc), code="invalid_token")

        if isinstance(exc, TokenExpiredError):
            return api_errors.Unauthorized(str(exc), code="token_expired")

        if isinstance(exc, UnauthorizedError):
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, LimitExceededError):
            return api_errors.TooManyRequests(
                str(exc),
                details={"counter": exc.counter, "limit": exc.limit, "current": exc.current},
            )

        if isinstance(exc, ValidationError):
            return api_errors.APIError(
                message=str(exc),
                status_code=422,
                code="validation_error",
                details={"errors": exc.fields} if exc.fields else None,
            )

        if isinstance(exc, InvalidOrExpiredTokenError):
            return api_errors.APIError(str(exc), status_code=400, code="invalid_or_expired_token")

        if isinstance(exc, PasswordMismatchError):
            return api_errors.APIError(str(exc), status_code=400, code="password_mismatch")

        if isinstance(exc, WeakPasswordError):
            return api_errors.APIError(str(exc), status_code=400, code="weak_password")

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
