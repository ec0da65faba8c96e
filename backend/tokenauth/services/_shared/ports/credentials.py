from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class SubjectSummary:
    """
    Non-sensitive view of a subject; never carries the password hash.

    :ivar id: Subject identifier.
    :ivar email: Login identifier.
    :ivar created_at: Registration time.
    """

    id: int
    email: str
    created_at: datetime | None = None

    @property
    def subject_id(self) -> str:
        """Identifier in the string form used by tokens and the token store."""
        return str(self.id)


class CredentialVerifier(Protocol):
    """Verify an identifier/secret pair."""

    def verify(self, identifier: str, secret: str) -> SubjectSummary | None:
        """Return the subject on a match; ``None`` for any mismatch."""


class SubjectRegistry(Protocol):
    """Create and look up subjects."""

    def create(self, identifier: str, secret: str) -> SubjectSummary:
        """:raises ConflictError: If the identifier is already registered."""

    def find_by_id(self, subject_id: int | str) -> SubjectSummary | None: ...
