from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol

from tokenauth.services._shared.errors import ConflictError


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Persisted state of one refresh token.

    :ivar token: Signed token value (unique key).
    :ivar subject_id: Owning subject.
    :ivar issued_at: Issuance time (UTC).
    :ivar expires_at: Absolute expiration (UTC).
    :ivar revoked: Monotonic revocation flag.
    """

    token: str
    subject_id: str
    issued_at: datetime
    expires_at: datetime
    revoked: bool = False

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def is_active_for(self, subject_id: str, now: datetime) -> bool:
        """All three conditions: not revoked, not expired, same subject."""
        return not self.revoked and not self.is_expired(now) and self.subject_id == subject_id

    def __repr__(self) -> str:
        # never echo the token value into logs
        return (
            f"RefreshTokenRecord(subject_id={self.subject_id!r}, "
            f"expires_at={self.expires_at.isoformat()}, revoked={self.revoked})"
        )


class RefreshTokenStore(Protocol):
    """
    Durable record of issued refresh tokens.

    ``rotate`` and ``revoke`` MUST be atomic compare-and-set operations on a
    single record; they are the only synchronization primitive the lifecycle
    service relies on.
    """

    def insert(self, record: RefreshTokenRecord) -> None:
        """
        Persist a new record.

        :raises ConflictError: If the token value already exists.
        """

    def find_active(self, token: str, subject_id: str) -> RefreshTokenRecord | None:
        """Return the record only if not revoked, not expired and owned by ``subject_id``."""

    def rotate(self, old_token: str, subject_id: str, new_record: RefreshTokenRecord) -> bool:
        """
        Atomically revoke ``old_token`` (only if currently active for
        ``subject_id``) and insert ``new_record``.

        :returns: ``False`` when the old token was not active; nothing is written.
        """

    def revoke(self, token: str) -> bool:
        """
        Idempotent revocation.

        :returns: ``True`` only if this call flipped ``revoked``.
        """

    def revoke_all_for_subject(self, subject_id: str) -> int:
        """
        Revoke every non-revoked record of ``subject_id``.

        :returns: Number of records flipped.
        """

    def purge_expired(self) -> int:
        """
        Delete records whose ``expires_at`` has passed (revoked or not).

        :returns: Number of records removed.
        """

    def get(self, token: str) -> RefreshTokenRecord | None:
        """Raw lookup (includes revoked and not-yet-swept expired records)."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token store with atomic rotation behavior.

    Expired records are swept lazily on every insert.

    .. note::
       A single :class:`threading.Lock` makes each operation atomic; suitable
       for tests and single-process deployments only.
    """

    def __init__(self) -> None:
        self._by_token: dict[str, RefreshTokenRecord] = {}
        self._by_subject: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    # ------------------------- helpers -------------------------

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def _put(self, record: RefreshTokenRecord) -> None:
        if record.token in self._by_token:
            raise ConflictError("RefreshToken", "token already exists")
        self._by_token[record.token] = record
        self._by_subject.setdefault(record.subject_id, set()).add(record.token)

    def _purge_locked(self, now: datetime) -> int:
        expired = [t for t, r in self._by_token.items() if r.is_expired(now)]
        for token in expired:
            record = self._by_token.pop(token)
            tokens = self._by_subject.get(record.subject_id)
            if tokens is not None:
                tokens.discard(token)
                if not tokens:
                    del self._by_subject[record.subject_id]
        return len(expired)

    # -------------------------- API ----------------------------

    def insert(self, record: RefreshTokenRecord) -> None:
        with self._lock:
            self._purge_locked(self._now())
            self._put(record)

    def find_active(self, token: str, subject_id: str) -> RefreshTokenRecord | None:
        with self._lock:
            record = self._by_token.get(token)
        if record is None or not record.is_active_for(subject_id, self._now()):
            return None
        return record

    def rotate(self, old_token: str, subject_id: str, new_record: RefreshTokenRecord) -> bool:
        with self._lock:
            old = self._by_token.get(old_token)
            if old is None or not old.is_active_for(subject_id, self._now()):
                return False
            if new_record.token in self._by_token:
                raise ConflictError("RefreshToken", "token already exists")
            self._by_token[old_token] = replace(old, revoked=True)
            self._put(new_record)
            return True

    def revoke(self, token: str) -> bool:
        with self._lock:
            record = self._by_token.get(token)
            if record is None or record.revoked:
                return False
            self._by_token[token] = replace(record, revoked=True)
            return True

    def revoke_all_for_subject(self, subject_id: str) -> int:
        with self._lock:
            flipped = 0
            for token in self._by_subject.get(subject_id, set()):
                record = self._by_token[token]
                if not record.revoked:
                    self._by_token[token] = replace(record, revoked=True)
                    flipped += 1
            return flipped

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked(self._now())

    def get(self, token: str) -> RefreshTokenRecord | None:
        with self._lock:
            return self._by_token.get(token)
