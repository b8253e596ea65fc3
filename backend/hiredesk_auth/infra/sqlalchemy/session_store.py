# hiredesk_auth/infra/sqlalchemy/session_store.py
from __future__ import annotations

from hiredesk_auth.services._shared.errors import NotFoundError
from hiredesk_auth.services._shared.ports import CounterUpdate, SessionStore, UsageCounter
from hiredesk_auth.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork


class SQLAlchemySessionStore(SessionStore):
    """
    Relational session store backed by the ``users`` row.

    Every operation is one statement in its own Unit of Work, committed on
    exit. Compare-and-swap and counter increments rely on a conditional
    ``UPDATE ... WHERE`` plus a ``rowcount`` check, so they are atomic per row
    on any backend with row-level write locking.

    .. note::
       Call these methods outside another open Unit of Work; the commit would
       otherwise also flush the caller's pending changes.
    """

    def get_refresh_hash(self, user_id: int) -> str | None:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.users.get_refresh_hash(user_id)

    def set_refresh_hash(self, user_id: int, digest: str | None) -> None:
        with SQLAlchemyUnitOfWork() as uow:
            if not uow.users.set_refresh_hash(user_id, digest):
                raise NotFoundError("User", user_id)

    def compare_and_swap(self, user_id: int, expected: str, new: str) -> bool:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.users.swap_refresh_hash(user_id, expected, new)

    def compare_and_clear(self, user_id: int, expected: str) -> bool:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.users.clear_refresh_hash(user_id, expected)

    def increment_counter(
        self,
        user_id: int,
        counter: UsageCounter,
        amount: int = 1,
        ceiling: int | None = None,
    ) -> CounterUpdate:
        name = UsageCounter(counter).value
        with SQLAlchemyUnitOfWork() as uow:
            ok = uow.users.increment_counter(user_id, name, amount, ceiling)
            counters = uow.users.get_counters(user_id)
        if counters is None:
            raise NotFoundError("User", user_id)
        return CounterUpdate(ok=ok, value=counters[name])

    def get_counters(self, user_id: int) -> dict[str, int]:
        with SQLAlchemyUnitOfWork() as uow:
            counters = uow.users.get_counters(user_id)
        if counters is None:
            raise NotFoundError("User", user_id)
        return counters
