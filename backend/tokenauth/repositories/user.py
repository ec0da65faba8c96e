"""User repository for persistence and credential checks."""

from __future__ import annotations

import functools
from typing import cast

from sqlalchemy import select
from werkzeug.security import check_password_hash, generate_password_hash

from tokenauth.models.user import User
from tokenauth.repositories.base import BaseRepository


@functools.lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    """Hash compared against when the email is unknown, so both paths cost the same."""
    return generate_password_hash("timing-equalizer")


def normalize_email(email: str) -> str:
    """Canonical login identifier: trimmed, lowercase."""
    return email.lower().strip()


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    This repository focuses on safe lookup and password verification.
    It never handles tokens; only DB-level user management.
    """

    model = User

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :returns: User instance or ``None`` when not found.
        """
        stmt = select(User).where(User.email == normalize_email(email))
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists."""
        stmt = select(User.id).where(User.email == normalize_email(email))
        return bool(self.session.execute(stmt).first())

    # ---------------------------- Password ops ----------------------------

    def authenticate(self, email: str, password: str) -> User | None:
        """Authenticate a user by email and password.

        Unknown emails still run one password-hash comparison so the response
        time does not reveal whether the account exists.

        :param email: Email address to authenticate.
        :param password: Raw password to verify.
        :returns: Authenticated user or ``None`` when credentials fail.
        """
        user = self.get_by_email(email)
        if user is None:
            check_password_hash(_dummy_password_hash(), password)
            return None
        if not user.verify_password(password):
            return None
        return user
