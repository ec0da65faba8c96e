"""Service errors -> HTTP problem mapping."""

from __future__ import annotations

import pytest

from tokenauth.core import errors as api_errors
from tokenauth.services._shared.base import BaseService
from tokenauth.services._shared.errors import (
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    NotFoundError,
    UnavailableError,
    unavailable_on,
)


@pytest.mark.parametrize(
    "exc, status, code",
    [
        (InvalidCredentialsError(), 401, "invalid_credentials"),
        (InvalidTokenError(), 401, "invalid_token"),
        (MissingTokenError(), 400, "missing_token"),
        (NotFoundError("User", 1), 404, "not_found"),
        (ConflictError("User", "email already in use"), 409, "conflict"),
        (UnavailableError("redis", "connection refused"), 503, "service_unavailable"),
    ],
)
def test_translate_exceptions(exc, status, code):
    translated = BaseService.translate_exceptions(exc)
    assert isinstance(translated, api_errors.APIError)
    assert translated.status_code == status
    assert translated.code == code


def test_unavailable_is_retryable_with_header():
    translated = BaseService.translate_exceptions(UnavailableError("sqlalchemy"))
    assert translated.details == {"retryable": True}
    assert translated.headers["Retry-After"] == "1"


def test_unavailable_hides_backend_detail():
    translated = BaseService.translate_exceptions(UnavailableError("redis", "10.0.0.7:6379"))
    assert "10.0.0.7" not in translated.message


def test_unknown_exceptions_pass_through():
    exc = KeyError("x")
    assert BaseService.translate_exceptions(exc) is exc


def test_unavailable_on_wraps_only_listed_types():
    @unavailable_on(ConnectionError, backend="redis")
    def flaky(kind):
        raise kind("down")

    with pytest.raises(UnavailableError):
        flaky(ConnectionError)
    with pytest.raises(ValueError):
        flaky(ValueError)
