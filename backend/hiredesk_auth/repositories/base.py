"""Persistence-only repository base for SQLAlchemy 2.x.

Repositories resolve the session of the surrounding Unit of Work (or the
Flask-scoped one), expose lookups and guarded updates, and leave
``commit``/``rollback`` to the services that own the transaction.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, and_, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from hiredesk_auth.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Thin repository over one mapped class.

    Subclasses set ``model`` and may whitelist lookups through
    ``_filterable_fields`` and writes through ``_updatable_fields``. Anything
    outside the update whitelist is rejected rather than silently assigned.
    """

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Injected Unit of Work session, else ``db.session``."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Whitelists -------------------------------

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        return {}

    def _updatable_fields(self) -> set[str]:
        return set()

    def _where(self, stmt: Select[Any], filters: Mapping[str, Any]) -> Select[Any]:
        """Narrow ``stmt`` by whitelisted equality filters; other keys are ignored."""
        allowed = self._filterable_fields()
        clauses = [allowed[k] == v for k, v in filters.items() if k in allowed]
        return stmt.where(and_(*clauses)) if clauses else stmt

    # --------------------------------- Reads ---------------------------------

    def get(self, entity_id: Any) -> E | None:
        """Return the entity with primary key ``entity_id``, or ``None``."""
        return cast(E | None, self.session.get(self.model, entity_id))

    def find_one(self, **filters: Any) -> E | None:
        """Return the first entity matching whitelisted equality filters."""
        stmt = self._where(select(self.model), filters)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    # -------------------------------- Writes ---------------------------------

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key is assigned."""
        self.session.add(instance)
        self.flush()
        return instance

    def update(self, instance: E, **fields: Any) -> E:
        """Assign whitelisted ``fields`` on ``instance`` and flush.

        Plain ``setattr`` keeps the model's ``@validates`` hooks in play.

        :raises ValueError: If a key is not in ``_updatable_fields``.
        """
        unknown = sorted(set(fields) - self._updatable_fields())
        if unknown:
            raise ValueError(f"Unknown or non-updatable fields: {unknown}")
        for key, value in fields.items():
            setattr(instance, key, value)
        self.flush()
        return instance

    def flush(self) -> None:
        self.session.flush()
