"""Column mixins for the ``users`` table (typed SQLAlchemy 2.0)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column


class TimestampMixin:
    """Database-managed ``created_at`` / ``updated_at`` columns.

    Both are filled server-side, so they are only readable after a flush.
    ``created_at`` is exposed to clients as ``createdAt`` in the user summary;
    ``updated_at`` also moves when a token digest or counter is rewritten.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class PKMixin:
    """Integer surrogate key ``id``; it is also the ``sub`` claim of issued tokens."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class ReprMixin:
    """``<User id=7>``: identifiers only, never emails or digests."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={getattr(self, 'id', None)}>"
