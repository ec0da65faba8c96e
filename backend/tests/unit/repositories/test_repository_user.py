"""Tests for :class:`UserRepository` lookups and password checks."""

from __future__ import annotations

import pytest

from tests.factories.user import UserFactory
from tokenauth.repositories import user as user_repo_module
from tokenauth.repositories.user import UserRepository


@pytest.fixture
def repo(session) -> UserRepository:
    return UserRepository(session=session)


def test_get_by_email_is_case_insensitive(repo):
    user = UserFactory(email="mixed@example.com")
    assert repo.get_by_email("  MIXED@Example.com ").id == user.id
    assert repo.exists_by_email("mixed@EXAMPLE.com") is True
    assert repo.exists_by_email("other@example.com") is False


def test_authenticate(repo):
    user = UserFactory(email="auth@example.com", password="secret1")
    assert repo.authenticate("auth@example.com", "secret1").id == user.id
    assert repo.authenticate("auth@example.com", "nope") is None


def test_unknown_email_still_checks_a_hash(repo, monkeypatch):
    calls: list[str] = []
    real = user_repo_module.check_password_hash

    def spy(pwhash, password):
        calls.append(password)
        return real(pwhash, password)

    monkeypatch.setattr(user_repo_module, "check_password_hash", spy)

    assert repo.authenticate("ghost@example.com", "whatever") is None
    assert calls == ["whatever"]


def test_password_is_write_only(app):
    user = UserFactory.build(email="w@example.com", password="secret1")
    with pytest.raises(AttributeError):
        _ = user.password
    assert user.verify_password("secret1")
