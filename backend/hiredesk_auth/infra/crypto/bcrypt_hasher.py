# hiredesk_auth/infra/crypto/bcrypt_hasher.py
from __future__ import annotations

import bcrypt

from hiredesk_auth.services._shared.ports import PasswordHasher

# bcrypt only reads the first 72 bytes; newer releases raise instead of truncating.
BCRYPT_MAX_BYTES = 72


class BcryptPasswordHasher(PasswordHasher):
    """
    Adapter for the ``bcrypt`` library.

    Each digest embeds its own random salt and cost factor, so ``verify``
    keeps working after ``rounds`` changes.

    :param rounds: bcrypt cost factor (log2 of the iteration count).
    """

    def __init__(self, rounds: int = 12) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds

    @staticmethod
    def _encode(plaintext: str) -> bytes:
        return plaintext.encode("utf-8")[:BCRYPT_MAX_BYTES]

    def hash(self, plaintext: str) -> str:
        if not isinstance(plaintext, str) or not plaintext:
            raise ValueError("Password must be a non-empty string.")
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._encode(plaintext), salt).decode("utf-8")

    def verify(self, plaintext: str, digest: str | None) -> bool:
        if not plaintext or not digest:
            return False
        try:
            return bcrypt.checkpw(self._encode(plaintext), digest.encode("utf-8"))
        except (ValueError, TypeError):
            # Malformed digest
            return False
