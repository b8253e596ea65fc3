"""User repository: lookups and atomic single-row updates."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import select, update

from hiredesk_auth.models.user import User
from hiredesk_auth.repositories.base import BaseRepository

COUNTER_COLUMNS = {
    "files_uploaded": User.files_uploaded,
    "batch_analysis": User.batch_analysis,
    "compare_resumes": User.compare_resumes,
    "selected_candidate": User.selected_candidate,
}


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Besides lookups, it exposes the conditional ``UPDATE`` statements that
    make refresh-token rotation and counter increments atomic per row. It
    NEVER hashes passwords nor signs tokens.
    """

    model = User

    # ---------------------------- Whitelists ----------------------------

    def _filterable_fields(self):
        return {
            "email": User.email,
            "verification_token_hash": User.verification_token_hash,
            "reset_token_hash": User.reset_token_hash,
        }

    def _updatable_fields(self):
        return {
            "name",
            "company_name",
            "password_hash",
            "email_verified",
            "verification_token_hash",
            "verification_token_expires",
            "reset_token_hash",
            "reset_token_expires",
        }

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists.

        :param email: Email address to normalise and search.
        :type email: str
        :returns: ``True`` if a row is found; otherwise ``False``.
        :rtype: bool
        """
        stmt = select(User.id).where(User.email == email.lower().strip())
        return bool(self.session.execute(stmt).first())

    def get_by_verification_token_hash(self, digest: str) -> User | None:
        """Fetch the user holding a pending verification token digest."""
        return self.find_one(verification_token_hash=digest)

    def get_by_reset_token_hash(self, digest: str) -> User | None:
        """Fetch the user holding a pending password-reset token digest."""
        return self.find_one(reset_token_hash=digest)

    # ---------------------------- One-time tokens ----------------------------

    def consume_verification_token(self, user_id: int, digest: str) -> bool:
        """Mark the email verified only if the row still holds ``digest``.

        Of two concurrent callers presenting the same token exactly one gets
        ``True``.
        """
        return (
            self._conditional_update(
                user_id,
                [User.verification_token_hash == digest],
                email_verified=True,
                verification_token_hash=None,
                verification_token_expires=None,
            )
            == 1
        )

    def consume_reset_token(self, user_id: int, digest: str, password_hash: str) -> bool:
        """Store ``password_hash`` only if the row still holds reset ``digest``."""
        return (
            self._conditional_update(
                user_id,
                [User.reset_token_hash == digest],
                password_hash=password_hash,
                reset_token_hash=None,
                reset_token_expires=None,
            )
            == 1
        )

    # ---------------------------- Refresh digest ----------------------------

    def get_refresh_hash(self, user_id: int) -> str | None:
        """Read the stored refresh-token digest straight from the row."""
        stmt = select(User.refresh_token_hash).where(User.id == user_id)
        return cast(str | None, self.session.execute(stmt).scalar())

    def set_refresh_hash(self, user_id: int, digest: str | None) -> bool:
        """Overwrite the refresh digest unconditionally.

        :returns: ``True`` when the user row exists.
        """
        return self._conditional_update(user_id, [], refresh_token_hash=digest) == 1

    def swap_refresh_hash(self, user_id: int, expected: str, new: str) -> bool:
        """Replace the digest only if the row still holds ``expected``.

        Executes ``UPDATE users SET refresh_token_hash = :new WHERE id = :id
        AND refresh_token_hash = :expected``; of two concurrent callers with
        the same ``expected`` exactly one sees ``rowcount == 1``.
        """
        cond = [User.refresh_token_hash == expected]
        return self._conditional_update(user_id, cond, refresh_token_hash=new) == 1

    def clear_refresh_hash(self, user_id: int, expected: str | None = None) -> bool:
        """Set the digest to ``NULL``, optionally only if it equals ``expected``."""
        cond = [User.refresh_token_hash == expected] if expected is not None else []
        return self._conditional_update(user_id, cond, refresh_token_hash=None) == 1

    # ---------------------------- Usage counters ----------------------------

    def get_counters(self, user_id: int) -> dict[str, int] | None:
        """Read every usage counter; ``None`` when the user does not exist."""
        stmt = select(*COUNTER_COLUMNS.values()).where(User.id == user_id)
        row = self.session.execute(stmt).first()
        if row is None:
            return None
        return {name: int(value or 0) for name, value in zip(COUNTER_COLUMNS, row)}

    def increment_counter(
        self, user_id: int, counter: str, amount: int = 1, ceiling: int | None = None
    ) -> bool:
        """Add ``amount`` to ``counter`` in one statement.

        With a ``ceiling`` the statement is ``... WHERE id = :id AND
        counter + :amount <= :ceiling`` so the check and the write cannot be
        separated by another request.

        :returns: ``True`` when the row was updated.
        :raises KeyError: For an unknown counter name.
        """
        column = COUNTER_COLUMNS[counter]
        cond = [column + amount <= ceiling] if ceiling is not None else []
        return self._conditional_update(user_id, cond, **{counter: column + amount}) == 1

    # ---------------------------- Internals ----------------------------

    def _conditional_update(self, user_id: int, conditions: list[Any], **values: Any) -> int:
        stmt = (
            update(User)
            .where(User.id == user_id, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        rowcount = int(self.session.execute(stmt).rowcount or 0)
        if rowcount:
            self._expire_cached(user_id, list(values))
        return rowcount

    def _expire_cached(self, user_id: int, attrs: list[str]) -> None:
        """Drop stale attribute values of an already loaded ``User``."""
        key = self.session.identity_key(User, user_id)
        cached = self.session.identity_map.get(key)
        if cached is not None:
            self.session.expire(cached, attrs)
