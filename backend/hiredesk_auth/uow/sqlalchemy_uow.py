"""
Units of Work over the Flask-scoped SQLAlchemy session.

Both expose ``users`` (a :class:`UserRepository` on the shared session).
"""

from __future__ import annotations

from contextlib import suppress
from typing import Any

from flask import current_app
from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction, scoped_session

from hiredesk_auth.core.extensions import db
from hiredesk_auth.repositories import UserRepository
from hiredesk_auth.uow.base import UnitOfWork

_ISOLATION_LEVELS = ("READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE", "READ UNCOMMITTED")
_READ_ONLY_DIALECTS = ("postgresql", "mysql", "mariadb")
_WRITE_VERBS = frozenset(
    {"insert", "update", "delete", "merge", "alter", "drop", "truncate", "create", "replace"}
)


class _SessionRepositories:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=session)


class SQLAlchemyUnitOfWork(_SessionRepositories, UnitOfWork):
    """Read-write scope: commit when the block exits cleanly, roll back otherwise."""

    def __init__(self) -> None:
        super().__init__(db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(_SessionRepositories, UnitOfWork):
    """
    Read scope that refuses writes and never commits.

    Writes are stopped twice: a ``before_flush`` hook rejects pending ORM
    changes and a ``before_cursor_execute`` hook rejects DML/DDL text. When
    the scope owns its transaction on PostgreSQL or MySQL it also issues
    ``SET TRANSACTION ISOLATION LEVEL`` and ``SET TRANSACTION READ ONLY``.

    Parameters
    ----------
    isolation_level:
        Isolation hint applied to an owned transaction; ``None`` keeps the
        connection default.
    enforce_db_readonly:
        Issue ``SET TRANSACTION READ ONLY`` where the dialect supports it.
    """

    def __init__(
        self,
        *,
        isolation_level: str | None = "READ COMMITTED",
        enforce_db_readonly: bool = True,
    ) -> None:
        super().__init__(db.session)
        self.isolation_level = isolation_level
        self.enforce_db_readonly = enforce_db_readonly
        self._conn: Connection | None = None
        self._txn: SessionTransaction | None = None
        self._hooks: list[tuple[Any, str, Any]] = []

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        # begin() fails when a transaction is already running (autobegin or an
        # outer test transaction); the scope then joins it with guards only.
        try:
            self._txn = self.session.begin()
            self._txn.__enter__()
        except InvalidRequestError:
            self._txn = None

        self._conn = self.session.connection()
        self._install_guards()
        if self._txn is not None and self._conn.dialect.name != "sqlite":
            self._apply_directives(self._conn.dialect.name)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._txn is not None:
                with suppress(SQLAlchemyError):
                    self.session.rollback()
                txn, self._txn = self._txn, None
                txn.__exit__(exc_type, exc, tb)
        finally:
            self._remove_guards()
            self._conn = None

    def commit(self) -> None:
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()

    # ------------------------------------------------------------------ #

    def _apply_directives(self, dialect: str) -> None:
        try:
            if self.isolation_level:
                level = self.isolation_level.upper().strip()
                if level not in _ISOLATION_LEVELS:
                    current_app.logger.warning("Unknown isolation level %r; trying as-is", level)
                self.session.execute(text(f"SET TRANSACTION ISOLATION LEVEL {level}"))
            if self.enforce_db_readonly and dialect in _READ_ONLY_DIALECTS:
                self.session.execute(text("SET TRANSACTION READ ONLY"))
        except SQLAlchemyError as exc:
            current_app.logger.warning("SET TRANSACTION failed (%s); guards only", exc)

    def _install_guards(self) -> None:
        if self._hooks:
            return

        def block_flush(session, flush_context, instances):
            if session.new or session.dirty or session.deleted:
                raise RuntimeError("Read-only UnitOfWork: ORM flush blocked.")

        def block_dml(conn, cursor, statement, parameters, context, executemany):
            verb = statement.lstrip().split(None, 1)[0].lower() if statement else ""
            if verb in _WRITE_VERBS:
                raise RuntimeError(f"Read-only UnitOfWork: SQL statement blocked: {verb.upper()}")

        # Hook this session only; listening on the scoped proxy hooks the whole factory.
        orm_session = self.session() if isinstance(self.session, scoped_session) else self.session
        self._hooks = [
            (orm_session, "before_flush", block_flush),
            (self._conn, "before_cursor_execute", block_dml),
        ]
        for target, name, fn in self._hooks:
            event.listen(target, name, fn)

    def _remove_guards(self) -> None:
        for target, name, fn in self._hooks:
            with suppress(InvalidRequestError):
                event.remove(target, name, fn)
        self._hooks = []
