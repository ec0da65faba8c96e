"""Repository package exposing persistence-layer access for the persisted models."""

from __future__ import annotations

from tokenauth.repositories.base import BaseRepository
from tokenauth.repositories.refresh_token import RefreshTokenRepository
from tokenauth.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
