"""
tokenauth.services._shared.ports
================================

Collection of *ports* (hexagonal interfaces) that define the contracts
for token management and the credential collaborator.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.TokenCodec`, :class:`~.TokenClaims`, :class:`~.IssuedToken`
    and the codec verification errors.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore`, :class:`~.RefreshTokenRecord`
    and :class:`~.InMemoryRefreshTokenStore`.

- :mod:`credentials`:
    Defines :class:`~.CredentialVerifier`, :class:`~.SubjectRegistry`
    and :class:`~.SubjectSummary`.

Design Notes
------------
Concrete adapters (PyJWT codec, SQLAlchemy and Redis stores) live under
``tokenauth.infra``.
"""

from __future__ import annotations

from .credentials import CredentialVerifier, SubjectRegistry, SubjectSummary
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
)
from .token_codec import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    InvalidSignatureError,
    IssuedToken,
    TokenClaims,
    TokenCodec,
    TokenExpiredError,
    TokenTypeMismatchError,
    TokenVerificationError,
)

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "CredentialVerifier",
    "SubjectRegistry",
    "SubjectSummary",
    "RefreshTokenStore",
    "RefreshTokenRecord",
    "InMemoryRefreshTokenStore",
    "TokenCodec",
    "TokenClaims",
    "IssuedToken",
    "TokenVerificationError",
    "InvalidSignatureError",
    "TokenExpiredError",
    "TokenTypeMismatchError",
]
