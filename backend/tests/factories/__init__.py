"""Factory Boy helpers bound to the transactional test session."""

from __future__ import annotations

import factory


class SQLAlchemySession:
    """Hold the scoped session installed by the ``session`` fixture."""

    _session = None

    @classmethod
    def set(cls, session):
        cls._session = session

    @classmethod
    def get(cls):
        """Return the registered SQLAlchemy session.

        Raises
        ------
        RuntimeError
            If a factory runs outside a test using the ``session`` fixture.
        """
        if cls._session is None:
            raise RuntimeError("Factories session not set. Did you pass the 'session' fixture?")
        return cls._session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Persist with ``flush`` so rows live inside the test SAVEPOINT."""

    class Meta:
        abstract = True
        # Callable: resolved per factory call, after the fixture swapped sessions.
        sqlalchemy_session_factory = SQLAlchemySession.get
        sqlalchemy_session_persistence = "flush"
