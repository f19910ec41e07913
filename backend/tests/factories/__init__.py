"""Factory Boy helpers bound to the per-test SQLAlchemy session."""

from __future__ import annotations

import factory


class SQLAlchemySession:
    """Hold the session handed over by the ``session`` fixture."""

    _session = None

    @classmethod
    def set(cls, session):
        """Register the session factories persist into."""
        cls._session = session

    @classmethod
    def get(cls):
        """Return the registered SQLAlchemy session.

        Raises
        ------
        RuntimeError
            If factories are used before the ``session`` fixture ran.
        """
        if cls._session is None:
            raise RuntimeError("Factories session not set. Did you pass the 'session' fixture?")
        return cls._session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Base class persisting factory objects with a flush, never a commit."""

    class Meta:
        abstract = True
        # Callable keeps the lookup lazy so each test sees its own session
        sqlalchemy_session_factory = SQLAlchemySession.get
        sqlalchemy_session_persistence = "flush"
