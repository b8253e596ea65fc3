from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from hiredesk_auth.services._shared.errors import TokenExpiredError, TokenInvalidError


class TokenProvider(Protocol):
    """
    Port for issuing and verifying signed access/refresh tokens.

    ``verify_*`` return the subject user id, or raise
    :class:`TokenExpiredError` / :class:`TokenInvalidError`.
    """

    def issue_access(self, user_id: int) -> str: ...

    def issue_refresh(self, user_id: int) -> str: ...

    def verify_access(self, token: str) -> int: ...

    def verify_refresh(self, token: str) -> int: ...

    @property
    def refresh_expires(self) -> timedelta: ...


class StubTokenProvider(TokenProvider):
    """Deterministic token provider used in unit tests."""

    def __init__(
        self,
        *,
        access_expires: timedelta = timedelta(minutes=15),
        refresh_expires: timedelta = timedelta(days=7),
    ) -> None:
        self._access_expires = access_expires
        self._refresh_expires = refresh_expires
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    @property
    def refresh_expires(self) -> timedelta:
        return self._refresh_expires

    def _mk(self, user_id: int, ttype: str, exp_delta: timedelta) -> str:
        self._seq += 1
        token = f"{ttype}.{user_id}.{self._seq}"
        self._issued[token] = {
            "sub": user_id,
            "type": ttype,
            "exp": datetime.now(tz=UTC) + exp_delta,
        }
        return token

    def _verify(self, token: str, ttype: str) -> int:
        payload = self._issued.get(token)
        if payload is None or payload["type"] != ttype:
            raise TokenInvalidError()
        if payload["exp"] <= datetime.now(tz=UTC):
            raise TokenExpiredError()
        return int(payload["sub"])

    def issue_access(self, user_id: int) -> str:
        return self._mk(user_id, "access", self._access_expires)

    def issue_refresh(self, user_id: int) -> str:
        return self._mk(user_id, "refresh", self._refresh_expires)

    def verify_access(self, token: str) -> int:
        return self._verify(token, "access")

    def verify_refresh(self, token: str) -> int:
        return self._verify(token, "refresh")

    def expire(self, token: str) -> None:
        """Force ``token`` past its expiry (test helper)."""
        self._issued[token]["exp"] = datetime.now(tz=UTC) - timedelta(seconds=1)
