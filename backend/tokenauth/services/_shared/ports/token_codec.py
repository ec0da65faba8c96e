from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenVerificationError(Exception):
    """Base class for codec-level verification failures."""


class InvalidSignatureError(TokenVerificationError):
    """Bad signature, malformed token or missing required claims."""


class TokenExpiredError(TokenVerificationError):
    """Signature is valid but ``exp`` has passed."""


class TokenTypeMismatchError(TokenVerificationError):
    """The ``type`` claim differs from the expected token class."""


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """
    A freshly signed token plus the validity window embedded in it.

    :ivar value: Encoded token.
    :ivar issued_at: ``iat`` claim (UTC).
    :ivar expires_at: ``exp`` claim (UTC).
    """

    value: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified token contents.

    :ivar subject_id: ``sub`` claim.
    :ivar email: Subject email at issuance.
    :ivar token_type: ``"access"`` or ``"refresh"``.
    :ivar issued_at: ``iat`` (UTC).
    :ivar expires_at: ``exp`` (UTC).
    :ivar jti: Random token id; makes every token value unique.
    """

    subject_id: str
    email: str
    token_type: str
    issued_at: datetime
    expires_at: datetime
    jti: str


class TokenCodec(Protocol):
    """Port for issuing and verifying signed access/refresh tokens."""

    def issue_access_token(
        self, subject_id: str, email: str, *, fresh: bool = False
    ) -> IssuedToken: ...

    def issue_refresh_token(self, subject_id: str, email: str) -> IssuedToken: ...

    def verify(self, value: str, expected_type: str) -> TokenClaims:
        """
        Verify signature, expiry and type.

        :raises InvalidSignatureError: Signature or structure is invalid.
        :raises TokenExpiredError: Token is past ``exp``.
        :raises TokenTypeMismatchError: ``type`` claim differs from ``expected_type``.
        """
        ...
