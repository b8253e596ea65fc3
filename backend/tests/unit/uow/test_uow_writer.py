"""
Unit tests for SQLAlchemyUnitOfWork (writer), using factories.
"""

from __future__ import annotations

import pytest
from hiredesk_auth.models import User
from hiredesk_auth.uow import SQLAlchemyUnitOfWork
from tests.factories.user import UserFactory


class TestSQLAlchemyUnitOfWorkWriter:
    def test_writer_uow_commits_on_success(self, app, db, session):
        """
        GIVEN a writer UoW
        WHEN we create a user via repo inside the context and leave without exception
        THEN the transaction is committed and the row is visible afterwards.
        """
        initial = db.session.query(User).count()

        with SQLAlchemyUnitOfWork() as uow:
            u = UserFactory.build()  # build = no persist
            uow.users.add(u)

        after = db.session.query(User).count()
        assert after == initial + 1

    def test_writer_uow_rolls_back_on_exception(self, app, db, session):
        """
        GIVEN a writer UoW
        WHEN an exception is raised inside the context
        THEN the transaction is rolled back and no rows are persisted.
        """
        initial = db.session.query(User).count()

        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            u = UserFactory.build()
            uow.users.add(u)
            raise RuntimeError("boom")

        after = db.session.query(User).count()
        assert after == initial

    def test_conditional_updates_are_committed(self, app, db, session):
        """
        GIVEN a persisted user
        WHEN a counter increment runs in its own writer UoW
        THEN a later UoW reads the new value.
        """
        with SQLAlchemyUnitOfWork() as uow:
            user_id = uow.users.add(UserFactory.build()).id

        with SQLAlchemyUnitOfWork() as uow:
            assert uow.users.increment_counter(user_id, "batch_analysis", 2)

        with SQLAlchemyUnitOfWork() as uow:
            assert uow.users.get_counters(user_id)["batch_analysis"] == 2
