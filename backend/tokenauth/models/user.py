"""Persisted login identities; every token's ``sub`` claim is a ``users.id``."""

from __future__ import annotations

from typing import Any

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from tokenauth.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    A subject that can log in.

    Only the werkzeug hash of the secret is stored; assign the raw value to
    ``password`` and compare with :meth:`verify_password`. Emails are kept in
    canonical form so lookups and the unique constraint are case-insensitive.
    """

    __tablename__ = "users"
    __repr_key__ = "email"

    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)

    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    @property
    def password(self) -> Any:  # pragma: no cover - write-only
        raise AttributeError("User.password is write-only; use verify_password().")

    @password.setter
    def password(self, raw: str) -> None:
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Compare ``raw`` against the stored hash.

        :returns: ``False`` when no hash is set yet.
        """
        return bool(self.password_hash) and bool(check_password_hash(self.password_hash, raw))

    @validates("email")
    def _canonical_email(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Email is required.")
        email = value.strip().lower()
        local, _, domain = email.partition("@")
        # shape only; the API schema does the real validation
        if not local or "." not in domain:
            raise ValueError("Email format looks invalid.")
        return email
