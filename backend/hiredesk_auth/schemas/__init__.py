"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    ChangePasswordSchema,
    EmailSchema,
    LoginSchema,
    RegisterSchema,
    ResetPasswordSchema,
    TokenResponseSchema,
    UserSchema,
    VerifyEmailSchema,
)
from .usage import UsageCountSchema, UsageStatsSchema

__all__ = [
    "ChangePasswordSchema",
    "EmailSchema",
    "LoginSchema",
    "RegisterSchema",
    "ResetPasswordSchema",
    "TokenResponseSchema",
    "UserSchema",
    "VerifyEmailSchema",
    "UsageCountSchema",
    "UsageStatsSchema",
]
