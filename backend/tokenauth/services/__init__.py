"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`tokenauth.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``tokenauth.services._shared.base``)
    * :class:`BaseService`

- Identity service (from ``tokenauth.services.identity``)
    * :class:`IdentityService`
    * DTOs: :class:`UserRegisterIn`, :class:`UserAuthIn`

- Auth service (from ``tokenauth.services.auth``)
    * :class:`AuthService`
    * DTOs: :class:`LoginIn`, :class:`LoginOut`, :class:`RefreshIn`,
      :class:`LogoutIn`, :class:`TokenPairOut`
"""

from __future__ import annotations

# Base primitives
from ._shared.base import BaseService

# Auth service + DTOs
from .auth.dto import LoginIn, LoginOut, LogoutIn, RefreshIn, TokenPairOut
from .auth.service import AuthService

# Identity service + DTOs
from .identity.dto import UserAuthIn, UserRegisterIn
from .identity.service import IdentityService

__all__ = [
    # Base
    "BaseService",
    # Identity
    "IdentityService",
    "UserRegisterIn",
    "UserAuthIn",
    # Auth
    "AuthService",
    "LoginIn",
    "LoginOut",
    "RefreshIn",
    "LogoutIn",
    "TokenPairOut",
]
