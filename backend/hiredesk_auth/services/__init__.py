"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`hiredesk_auth.services` without knowing internal
structure.

Re-exports
----------
- Base primitives (from ``hiredesk_auth.services._shared.base``)
    * :class:`BaseService`

- Auth service (from ``hiredesk_auth.services.auth``)
    * :class:`AuthService`
    * DTOs: :class:`RegisterIn`, :class:`LoginIn`, :class:`RefreshIn`,
      :class:`LogoutIn`, :class:`UserSummaryOut`, :class:`AuthResultOut`

- Usage limiter (from ``hiredesk_auth.services.usage``)
    * :class:`UsageLimiter`
    * DTOs: :class:`UsageStatsOut`
"""

from __future__ import annotations

# Base primitives
from ._shared.base import BaseService

# Auth service + DTOs
from .auth.dto import AuthResultOut, LoginIn, LogoutIn, RefreshIn, RegisterIn, UserSummaryOut
from .auth.service import AuthService

# Usage limiter + DTOs
from .usage.dto import UsageStatsOut
from .usage.service import UsageLimiter

__all__ = [
    # Base
    "BaseService",
    # Auth
    "AuthService",
    "RegisterIn",
    "LoginIn",
    "RefreshIn",
    "LogoutIn",
    "UserSummaryOut",
    "AuthResultOut",
    # Usage
    "UsageLimiter",
    "UsageStatsOut",
]
