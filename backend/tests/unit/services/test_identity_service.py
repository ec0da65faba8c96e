# tests/unit/services/test_identity_service.py
from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from tests.factories.user import UserFactory
from tokenauth.models.user import User
from tokenauth.services._shared.errors import ConflictError, UnavailableError
from tokenauth.services._shared.ports import SubjectSummary
from tokenauth.services.identity.dto import UserAuthIn, UserRegisterIn


def test_register_user_hashes_password(identity_service, session):
    summary = identity_service.register_user(
        UserRegisterIn(email="New@Example.com", password="secret1")
    )

    assert isinstance(summary, SubjectSummary)
    assert summary.email == "new@example.com"
    assert summary.created_at is not None

    user = session.get(User, summary.id)
    assert user is not None
    assert user.password_hash != "secret1"
    assert user.verify_password("secret1")


def test_register_duplicate_email_conflicts(identity_service):
    UserFactory(email="dup@example.com")

    with pytest.raises(ConflictError):
        identity_service.create("DUP@example.com", "secret1")


def test_verify_matches_and_mismatches(identity_service):
    user = UserFactory(email="v@example.com", password="secret1")

    assert identity_service.verify("v@example.com", "secret1").id == user.id
    assert identity_service.verify("v@example.com", "wrong") is None
    assert identity_service.verify("nobody@example.com", "secret1") is None


def test_authenticate_dto_entry_point(identity_service):
    user = UserFactory(email="dto@example.com", password="secret1")
    out = identity_service.authenticate(UserAuthIn(email="dto@example.com", password="secret1"))
    assert out is not None and out.subject_id == str(user.id)


@pytest.mark.parametrize("subject_id", ["abc", "", "-1"])
def test_find_by_id_rejects_non_numeric(identity_service, subject_id):
    assert identity_service.find_by_id(subject_id) is None


def test_find_by_id_accepts_str_and_int(identity_service):
    user = UserFactory()
    assert identity_service.find_by_id(user.id).email == user.email
    assert identity_service.find_by_id(str(user.id)).email == user.email


def test_database_outage_is_unavailable_not_credentials(identity_service, monkeypatch):
    def boom(self, email, password):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr("tokenauth.repositories.user.UserRepository.authenticate", boom)

    with pytest.raises(UnavailableError) as exc_info:
        identity_service.verify("any@example.com", "secret1")
    assert exc_info.value.backend == "sqlalchemy"


def test_dto_canonicalizes_email_and_hides_password():
    dto = UserAuthIn(email="  Mixed@Example.COM ", password="s3cret")

    assert dto.email == "mixed@example.com"
    assert "s3cret" not in repr(dto)
