# comments in English; reST docstrings
from __future__ import annotations

import hashlib
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import redis  # type: ignore[import-untyped]

from tokenauth.services._shared.errors import ConflictError, unavailable_on
from tokenauth.services._shared.ports import RefreshTokenRecord, RefreshTokenStore


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _b(s: Any, default: str = "") -> str:
    if s is None:
        return default
    return s.decode() if isinstance(s, bytes | bytearray) else str(s)


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store with atomic rotation.

    Layout
    ------
    - ``rt:{sha256(token)}``: hash with ``token``, ``subject_id``, ``issued_at``,
      ``expires_at`` (epoch seconds) and ``revoked`` (``"0"``/``"1"``); the key
      TTL is the token's remaining lifetime, so Redis itself sweeps expired records.
    - ``rt:s:{subject_id}``: set of token digests owned by the subject; its
      TTL is stretched to the longest-lived member on every insert.

    Conditional writes use WATCH/MULTI/EXEC and retry on ``WatchError``.

    :param r: A Redis client (already connected).
    :param clock: Returns the current UTC time.
    """

    r: redis.Redis
    clock: Callable[[], datetime] = field(default=_utcnow)

    # -------------------- helpers --------------------

    @staticmethod
    def _digest(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def _k(self, token: str) -> str:
        return f"rt:{self._digest(token)}"

    @staticmethod
    def _ks(subject_id: str) -> str:
        return f"rt:s:{subject_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        # naive -> label as UTC (no conversion)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return int(dt.timestamp())

    def _ttl(self, expires_at: datetime) -> int:
        return max(1, self._to_ts(expires_at) - self._to_ts(self.clock()))

    @staticmethod
    def _mapping(record: RefreshTokenRecord) -> dict[str, str]:
        return {
            "token": record.token,
            "subject_id": record.subject_id,
            "issued_at": str(RedisRefreshTokenStore._to_ts(record.issued_at)),
            "expires_at": str(RedisRefreshTokenStore._to_ts(record.expires_at)),
            "revoked": "1" if record.revoked else "0",
        }

    @staticmethod
    def _from_hash(h: dict[Any, Any]) -> RefreshTokenRecord:
        def field_(name: str, default: str = "") -> str:
            return _b(h.get(name.encode(), h.get(name)), default)

        return RefreshTokenRecord(
            token=field_("token"),
            subject_id=field_("subject_id"),
            issued_at=datetime.fromtimestamp(int(field_("issued_at", "0")), tz=UTC),
            expires_at=datetime.fromtimestamp(int(field_("expires_at", "0")), tz=UTC),
            revoked=field_("revoked", "0") == "1",
        )

    def _stage_insert(self, p: Any, record: RefreshTokenRecord) -> None:
        key = self._k(record.token)
        key_s = self._ks(record.subject_id)
        ttl = self._ttl(record.expires_at)
        p.hset(key, mapping=self._mapping(record))
        p.expire(key, ttl)
        p.sadd(key_s, self._digest(record.token))
        # the index lives as long as its longest-lived member: NX arms a fresh
        # set, GT only ever extends
        p.expire(key_s, ttl, nx=True)
        p.expire(key_s, ttl, gt=True)

    # -------------------- API ------------------------

    @unavailable_on(redis.RedisError, backend="redis")
    def insert(self, record: RefreshTokenRecord) -> None:
        key = self._k(record.token)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    if p.exists(key):
                        p.unwatch()
                        raise ConflictError("RefreshToken", "token already exists")
                    p.multi()
                    self._stage_insert(p, record)
                    p.execute()
                return
            except redis.WatchError:
                # Concurrent modification detected; retry loop
                continue

    @unavailable_on(redis.RedisError, backend="redis")
    def find_active(self, token: str, subject_id: str) -> RefreshTokenRecord | None:
        h = self.r.hgetall(self._k(token))
        if not h:
            return None
        record = self._from_hash(h)
        # TTL granularity is one second; never trust it for the expiry check
        if record.token != token or not record.is_active_for(subject_id, self.clock()):
            return None
        return record

    @unavailable_on(redis.RedisError, backend="redis")
    def rotate(self, old_token: str, subject_id: str, new_record: RefreshTokenRecord) -> bool:
        """
        Atomically revoke ``old_token`` and create ``new_record``.

        The old hash and the new key are WATCHed; a concurrent rotation of the
        same token aborts the EXEC and the loser re-reads ``revoked=1`` on
        retry. The subject index is only appended to, so it is not watched.
        """
        k_old = self._k(old_token)
        k_new = self._k(new_record.token)

        while True:
            try:
                with self.r.pipeline() as p:
                    # Watch the keys that participate in the invariant
                    p.watch(k_old, k_new)

                    h = p.hgetall(k_old)
                    if not h:
                        p.unwatch()
                        return False
                    old = self._from_hash(h)
                    if old.token != old_token or not old.is_active_for(subject_id, self.clock()):
                        p.unwatch()
                        return False
                    if p.exists(k_new):
                        p.unwatch()
                        raise ConflictError("RefreshToken", "token already exists")

                    # Start the transactional block
                    p.multi()
                    p.hset(k_old, "revoked", "1")
                    self._stage_insert(p, new_record)
                    p.execute()
                return True
            except redis.WatchError:
                continue

    @unavailable_on(redis.RedisError, backend="redis")
    def revoke(self, token: str) -> bool:
        key = self._k(token)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    h = p.hgetall(key)
                    if not h or _b(h.get(b"revoked", h.get("revoked")), "0") == "1":
                        p.unwatch()
                        return False
                    p.multi()
                    p.hset(key, "revoked", "1")
                    p.execute()
                return True
            except redis.WatchError:
                continue

    @unavailable_on(redis.RedisError, backend="redis")
    def revoke_all_for_subject(self, subject_id: str) -> int:
        key_s = self._ks(subject_id)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key_s)
                    digests = [_b(m) for m in p.smembers(key_s)]
                    keys = [f"rt:{d}" for d in digests]
                    if keys:
                        p.watch(*keys)

                    to_flip: list[str] = []
                    stale: list[str] = []
                    for digest, key in zip(digests, keys, strict=True):
                        revoked = p.hget(key, "revoked")
                        if revoked is None:
                            # Underlying hash missing (expired) -> index cleanup
                            stale.append(digest)
                        elif _b(revoked) != "1":
                            to_flip.append(key)

                    p.multi()
                    for key in to_flip:
                        p.hset(key, "revoked", "1")
                    if stale:
                        p.srem(key_s, *stale)
                    p.execute()
                return len(to_flip)
            except redis.WatchError:
                continue

    @unavailable_on(redis.RedisError, backend="redis")
    def purge_expired(self) -> int:
        """
        Delete expired hashes Redis has not evicted yet and drop dangling
        index members.

        :returns: Number of records removed (dangling members included).
        """
        now = self.clock()
        removed = 0
        for raw_key in self.r.scan_iter(match="rt:s:*"):
            key_s = _b(raw_key)
            stale: list[str] = []
            for member in self.r.smembers(key_s):
                digest = _b(member)
                key = f"rt:{digest}"
                h = self.r.hgetall(key)
                if not h:
                    stale.append(digest)
                elif self._from_hash(h).is_expired(now):
                    self.r.delete(key)
                    stale.append(digest)
            if stale:
                self.r.srem(key_s, *stale)
                removed += len(stale)
        return removed

    @unavailable_on(redis.RedisError, backend="redis")
    def get(self, token: str) -> RefreshTokenRecord | None:
        h = self.r.hgetall(self._k(token))
        if not h:
            return None
        record = self._from_hash(h)
        return record if record.token == token else None
