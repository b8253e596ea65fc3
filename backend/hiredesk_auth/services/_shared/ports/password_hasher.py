from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """Port for one-way password hashing."""

    def hash(self, plaintext: str) -> str:
        """Return a salted digest of ``plaintext``."""
        ...

    def verify(self, plaintext: str, digest: str | None) -> bool:
        """Return ``True`` if ``plaintext`` matches ``digest``; never raises."""
        ...
