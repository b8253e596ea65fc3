"""Repository package exposing persistence-layer access for domain models."""

from __future__ import annotations

from hiredesk_auth.repositories.base import BaseRepository
from hiredesk_auth.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
]
