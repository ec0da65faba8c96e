# tokenauth/infra/jwt/jwt_token_codec.py
from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from tokenauth.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    InvalidSignatureError,
    IssuedToken,
    TokenClaims,
    TokenCodec,
    TokenExpiredError,
    TokenTypeMismatchError,
)

REQUIRED_CLAIMS = ["sub", "email", "type", "iat", "exp", "jti"]


@dataclass(slots=True)
class JWTTokenCodec(TokenCodec):
    """
    HS256 codec built on PyJWT.

    Access and refresh tokens are signed with distinct secrets. The verify
    secret is chosen from ``expected_type``, so a token of the other class
    fails signature verification before its ``type`` claim is even read.

    Access tokens use the claim layout of Flask-JWT-Extended (string ``sub``,
    ``type``, ``fresh``, ``jti``) so ``@jwt_required`` endpoints accept them.

    :param access_secret: HMAC secret for access tokens.
    :param refresh_secret: HMAC secret for refresh tokens.
    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime.
    :param issuer: Optional ``iss`` claim, enforced on verify when set.
    """

    access_secret: str
    refresh_secret: str
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    issuer: str | None = None
    algorithm: str = "HS256"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> JWTTokenCodec:
        """Build the codec from a Flask config mapping."""
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            access_expires=config["ACCESS_TOKEN_EXPIRES"],
            refresh_expires=config["REFRESH_TOKEN_EXPIRES"],
            issuer=config.get("JWT_ISSUER") or None,
        )

    # -------------------- helpers --------------------

    def _secret_for(self, token_type: str) -> str:
        if token_type == ACCESS_TOKEN_TYPE:
            return self.access_secret
        if token_type == REFRESH_TOKEN_TYPE:
            return self.refresh_secret
        raise ValueError(f"Unknown token type: {token_type!r}")

    def _issue(
        self,
        subject_id: str,
        email: str,
        token_type: str,
        ttl: timedelta,
        extra: dict[str, Any] | None = None,
    ) -> IssuedToken:
        # JWT timestamps are whole seconds
        issued_at = datetime.now(UTC).replace(microsecond=0)
        expires_at = issued_at + ttl

        payload: dict[str, Any] = {
            "sub": str(subject_id),
            "email": email,
            "type": token_type,
            "iat": issued_at,
            "nbf": issued_at,
            "exp": expires_at,
            "jti": uuid.uuid4().hex,
        }
        if self.issuer:
            payload["iss"] = self.issuer
        if extra:
            payload.update(extra)

        value = jwt.encode(payload, self._secret_for(token_type), algorithm=self.algorithm)
        return IssuedToken(value=value, issued_at=issued_at, expires_at=expires_at)

    # -------------------- API ------------------------

    def issue_access_token(
        self, subject_id: str, email: str, *, fresh: bool = False
    ) -> IssuedToken:
        return self._issue(
            subject_id, email, ACCESS_TOKEN_TYPE, self.access_expires, {"fresh": fresh}
        )

    def issue_refresh_token(self, subject_id: str, email: str) -> IssuedToken:
        return self._issue(subject_id, email, REFRESH_TOKEN_TYPE, self.refresh_expires)

    def verify(self, value: str, expected_type: str) -> TokenClaims:
        secret = self._secret_for(expected_type)
        try:
            payload = jwt.decode(
                value,
                secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError(str(exc)) from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidSignatureError(str(exc)) from exc

        if payload["type"] != expected_type:
            raise TokenTypeMismatchError(
                f"Expected {expected_type} token, got {payload['type']!r}"
            )

        return TokenClaims(
            subject_id=str(payload["sub"]),
            email=str(payload["email"]),
            token_type=payload["type"],
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=UTC),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
            jti=str(payload["jti"]),
        )
