# hiredesk_auth/infra/jwt/jwt_token_issuer.py
from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt

from hiredesk_auth.services._shared.errors import TokenExpiredError, TokenInvalidError
from hiredesk_auth.services._shared.ports import TokenProvider
from hiredesk_auth.services.auth.dto import TokenConfig

log = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
REQUIRED_CLAIMS = ["sub", "iat", "exp", "jti", "type"]


class JWTTokenIssuer(TokenProvider):
    """
    PyJWT adapter signing access and refresh tokens with separate secrets.

    Claims: ``sub`` (user id as string), ``iat``, ``exp``, ``jti`` (random hex)
    and ``type`` (``"access"`` / ``"refresh"``). The random ``jti`` keeps two
    tokens issued within the same second distinct.

    :param config: Secrets, lifetimes and algorithm.
    :raises ValueError: If the secrets are empty or identical.
    """

    def __init__(self, config: TokenConfig) -> None:
        if not config.access_secret or not config.refresh_secret:
            raise ValueError("Token secrets must be non-empty.")
        if config.access_secret == config.refresh_secret:
            raise ValueError("Access and refresh secrets must differ.")
        self._cfg = config

    @property
    def access_expires(self) -> timedelta:
        return self._cfg.access_expires

    @property
    def refresh_expires(self) -> timedelta:
        return self._cfg.refresh_expires

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def _encode(self, user_id: int, ttype: str, secret: str, lifetime: timedelta) -> str:
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + lifetime,
            "jti": uuid4().hex,
            "type": ttype,
        }
        return jwt.encode(payload, secret, algorithm=self._cfg.algorithm)

    def issue_access(self, user_id: int) -> str:
        return self._encode(
            user_id, ACCESS_TOKEN_TYPE, self._cfg.access_secret, self._cfg.access_expires
        )

    def issue_refresh(self, user_id: int) -> str:
        return self._encode(
            user_id, REFRESH_TOKEN_TYPE, self._cfg.refresh_secret, self._cfg.refresh_expires
        )

    # ------------------------------------------------------------------ #
    # Verify
    # ------------------------------------------------------------------ #

    def _decode(self, token: str, ttype: str, secret: str) -> int:
        if not token or not isinstance(token, str):
            raise TokenInvalidError()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self._cfg.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except jwt.InvalidTokenError as exc:
            log.debug("Rejected %s token: %s", ttype, exc.__class__.__name__)
            raise TokenInvalidError() from exc

        if payload.get("type") != ttype:
            raise TokenInvalidError("Wrong token type")
        return self._coerce_user_id(payload.get("sub"))

    def verify_access(self, token: str) -> int:
        return self._decode(token, ACCESS_TOKEN_TYPE, self._cfg.access_secret)

    def verify_refresh(self, token: str) -> int:
        return self._decode(token, REFRESH_TOKEN_TYPE, self._cfg.refresh_secret)

    @staticmethod
    def _coerce_user_id(subject: Any) -> int:
        """Ensure the JWT subject can be treated as an integer user id."""
        if isinstance(subject, int):
            return subject
        if isinstance(subject, str) and subject.isdigit():
            return int(subject)
        raise TokenInvalidError("Invalid token subject")
