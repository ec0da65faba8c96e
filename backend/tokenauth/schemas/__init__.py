"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    LoginResponseSchema,
    LoginSchema,
    LogoutAllResponseSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterSchema,
    TokenPairSchema,
)
from .user import SubjectSchema

__all__ = [
    "LoginSchema",
    "LoginResponseSchema",
    "LogoutSchema",
    "LogoutAllResponseSchema",
    "RefreshSchema",
    "RegisterSchema",
    "TokenPairSchema",
    "SubjectSchema",
]
