"""
IdentityService
===============

Credential collaborator for the token lifecycle:

- Registration (email uniqueness, password hashing by the model)
- Credential verification (no token issuance)
- Subject lookup by id

It implements both :class:`~tokenauth.services._shared.ports.CredentialVerifier`
and :class:`~tokenauth.services._shared.ports.SubjectRegistry`.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tokenauth.models.user import User
from tokenauth.repositories.user import UserRepository
from tokenauth.services._shared.base import BaseService
from tokenauth.services._shared.errors import ConflictError, unavailable_on, violates
from tokenauth.services._shared.ports.credentials import SubjectSummary
from tokenauth.services.identity.dto import UserAuthIn, UserRegisterIn


def to_summary(user: User) -> SubjectSummary:
    """Project a ``User`` row onto the non-sensitive subject summary."""
    return SubjectSummary(id=user.id, email=user.email, created_at=user.created_at)


class IdentityService(BaseService):
    """
    Application service for the ``User`` aggregate.

    Database outages surface as ``UnavailableError`` so they are never mistaken
    for a credential mismatch.
    """

    # --------------------------------------------------------------------- #
    # Registration
    # --------------------------------------------------------------------- #

    @unavailable_on(SQLAlchemyError, backend="sqlalchemy")
    def register_user(self, dto: UserRegisterIn) -> SubjectSummary:
        """
        Register a new user.

        :param dto: User registration input DTO.
        :returns: Public-safe subject summary.
        :raises ConflictError: When the email is already registered.
        """
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users

            if repo.exists_by_email(dto.email):
                raise ConflictError("User", "email already in use")

            try:
                user = repo.add(User(email=dto.email, password=dto.password))
            except IntegrityError as exc:
                # Lost a race against a concurrent registration
                if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                    raise ConflictError("User", "email already in use") from exc
                raise

            summary = to_summary(user)

        self.log.info(
            "identity.registered", extra={"event": "identity.registered", "subject_id": summary.id}
        )
        return summary

    def create(self, identifier: str, secret: str) -> SubjectSummary:
        """:class:`SubjectRegistry` entry point."""
        return self.register_user(UserRegisterIn(email=identifier, password=secret))

    # --------------------------------------------------------------------- #
    # Authentication
    # --------------------------------------------------------------------- #

    @unavailable_on(SQLAlchemyError, backend="sqlalchemy")
    def authenticate(self, dto: UserAuthIn) -> SubjectSummary | None:
        """
        Authenticate a user by email and password.

        :returns: Subject summary, or ``None`` for any mismatch.
        """
        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.authenticate(dto.email, dto.password)
            return to_summary(user) if user is not None else None

    def verify(self, identifier: str, secret: str) -> SubjectSummary | None:
        """:class:`CredentialVerifier` entry point."""
        return self.authenticate(UserAuthIn(email=identifier, password=secret))

    # --------------------------------------------------------------------- #
    # Retrieval
    # --------------------------------------------------------------------- #

    @unavailable_on(SQLAlchemyError, backend="sqlalchemy")
    def find_by_id(self, subject_id: int | str) -> SubjectSummary | None:
        """
        Retrieve a subject by identifier.

        Non-numeric identifiers (e.g. a forged ``sub`` claim) yield ``None``.
        """
        if isinstance(subject_id, str):
            if not subject_id.isdigit():
                return None
            subject_id = int(subject_id)

        with self.ro_uow() as uow:
            user = uow.users.get(subject_id)
            return to_summary(user) if user is not None else None
