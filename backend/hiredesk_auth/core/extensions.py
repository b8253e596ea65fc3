"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

# Deterministic constraint names, e.g. ``uq_users_email``.
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singleton (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)


def init_app(app: Flask) -> None:
    """Bind the SQLAlchemy extension to ``app``.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`hiredesk_auth.models` package so the metadata knows every table
        before ``flask init-db`` runs ``create_all``.
    """
    db.init_app(app)

    from hiredesk_auth import models as _models  # noqa: F401
