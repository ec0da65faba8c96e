# tests/unit/infra/test_jwt_token_codec.py
"""Unit tests for the PyJWT codec (no Flask app required)."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from freezegun import freeze_time

from tokenauth.infra.jwt.jwt_token_codec import JWTTokenCodec
from tokenauth.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    InvalidSignatureError,
    TokenExpiredError,
    TokenTypeMismatchError,
    TokenVerificationError,
)

ACCESS_SECRET = "unit-access-secret-0123456789abcdef0123"
REFRESH_SECRET = "unit-refresh-secret-0123456789abcdef012"


@pytest.fixture
def codec() -> JWTTokenCodec:
    return JWTTokenCodec(
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_expires=timedelta(minutes=15),
        refresh_expires=timedelta(days=7),
        issuer="unit-tests",
    )


def test_access_token_round_trip(codec):
    issued = codec.issue_access_token("42", "a@x.com", fresh=True)
    claims = codec.verify(issued.value, ACCESS_TOKEN_TYPE)

    assert claims.subject_id == "42"
    assert claims.email == "a@x.com"
    assert claims.token_type == ACCESS_TOKEN_TYPE
    assert claims.issued_at == issued.issued_at
    assert claims.expires_at == issued.expires_at
    assert issued.expires_at - issued.issued_at == timedelta(minutes=15)


def test_refresh_token_lifetime(codec):
    issued = codec.issue_refresh_token("42", "a@x.com")
    assert issued.expires_at - issued.issued_at == timedelta(days=7)
    assert codec.verify(issued.value, REFRESH_TOKEN_TYPE).token_type == REFRESH_TOKEN_TYPE


def test_tokens_carry_flask_jwt_extended_claims(codec):
    issued = codec.issue_access_token("7", "a@x.com")
    payload = jwt.decode(issued.value, ACCESS_SECRET, algorithms=["HS256"], issuer="unit-tests")

    assert payload["sub"] == "7"
    assert payload["type"] == "access"
    assert payload["fresh"] is False
    assert payload["iss"] == "unit-tests"
    assert len(payload["jti"]) == 32


@freeze_time("2030-01-01 00:00:00")
def test_same_second_tokens_are_unique(codec):
    first = codec.issue_refresh_token("1", "a@x.com")
    second = codec.issue_refresh_token("1", "a@x.com")

    assert first.issued_at == second.issued_at
    assert first.value != second.value


def test_access_token_fails_as_refresh_on_signature(codec):
    access = codec.issue_access_token("1", "a@x.com")
    with pytest.raises(InvalidSignatureError):
        codec.verify(access.value, REFRESH_TOKEN_TYPE)


def test_type_claim_checked_after_signature():
    # Same secret for both classes: only the type claim can tell them apart
    shared = JWTTokenCodec(access_secret=ACCESS_SECRET, refresh_secret=ACCESS_SECRET)
    refresh = shared.issue_refresh_token("1", "a@x.com")

    with pytest.raises(TokenTypeMismatchError):
        shared.verify(refresh.value, ACCESS_TOKEN_TYPE)


def test_expired_token(codec):
    with freeze_time(datetime.now(UTC) - timedelta(hours=1)):
        access = codec.issue_access_token("1", "a@x.com")

    with pytest.raises(TokenExpiredError):
        codec.verify(access.value, ACCESS_TOKEN_TYPE)


def test_tampered_token(codec):
    issued = codec.issue_refresh_token("1", "a@x.com")
    header, payload, signature = issued.value.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    with pytest.raises(InvalidSignatureError):
        codec.verify(tampered, REFRESH_TOKEN_TYPE)


def test_wrong_issuer_rejected(codec):
    other = JWTTokenCodec(
        access_secret=ACCESS_SECRET, refresh_secret=REFRESH_SECRET, issuer="someone-else"
    )
    issued = other.issue_refresh_token("1", "a@x.com")

    with pytest.raises(InvalidSignatureError):
        codec.verify(issued.value, REFRESH_TOKEN_TYPE)


def test_missing_claims_rejected(codec):
    now = datetime.now(UTC)
    value = jwt.encode(
        {"sub": "1", "type": "refresh", "iat": now, "exp": now + timedelta(minutes=5)},
        REFRESH_SECRET,
        algorithm="HS256",
    )
    with pytest.raises(InvalidSignatureError):
        codec.verify(value, REFRESH_TOKEN_TYPE)


@pytest.mark.parametrize("value", ["", "garbage", "a.b.c"])
def test_malformed_values(codec, value):
    with pytest.raises(TokenVerificationError):
        codec.verify(value, REFRESH_TOKEN_TYPE)


def test_unknown_expected_type(codec):
    issued = codec.issue_access_token("1", "a@x.com")
    with pytest.raises(ValueError):
        codec.verify(issued.value, "id")


def test_from_config_reads_flask_settings():
    codec = JWTTokenCodec.from_config(
        {
            "ACCESS_TOKEN_SECRET": ACCESS_SECRET,
            "REFRESH_TOKEN_SECRET": REFRESH_SECRET,
            "ACCESS_TOKEN_EXPIRES": timedelta(minutes=5),
            "REFRESH_TOKEN_EXPIRES": timedelta(days=1),
            "JWT_ISSUER": "",
        }
    )
    assert codec.issuer is None
    issued = codec.issue_access_token("1", "a@x.com")
    assert issued.expires_at - issued.issued_at == timedelta(minutes=5)
