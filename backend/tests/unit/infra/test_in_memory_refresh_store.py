# tests/unit/infra/test_in_memory_refresh_store.py
"""Unit tests for InMemoryRefreshTokenStore (thread-safe, no I/O)."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

import pytest

from tokenauth.services._shared.errors import ConflictError
from tokenauth.services._shared.ports import InMemoryRefreshTokenStore, RefreshTokenRecord


def _now() -> datetime:
    """Return a timezone-aware UTC "now"."""
    return datetime.now(UTC)


def _record(token: str, subject_id: str = "s1", *, ttl: timedelta = timedelta(hours=1)):
    now = _now()
    return RefreshTokenRecord(
        token=token, subject_id=subject_id, issued_at=now, expires_at=now + ttl
    )


@pytest.fixture
def store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


def test_insert_and_get(store):
    store.insert(_record("t1"))
    record = store.get("t1")
    assert record is not None
    assert record.subject_id == "s1"
    assert record.revoked is False


def test_insert_duplicate_conflicts(store):
    store.insert(_record("t1"))
    with pytest.raises(ConflictError):
        store.insert(_record("t1"))


def test_find_active_checks_subject_revocation_and_expiry(store):
    store.insert(_record("live"))
    store.insert(_record("old", ttl=timedelta(seconds=-1)))

    assert store.find_active("live", "s1") is not None
    assert store.find_active("live", "s2") is None
    assert store.find_active("old", "s1") is None
    assert store.find_active("missing", "s1") is None

    store.revoke("live")
    assert store.find_active("live", "s1") is None


def test_rotate_success(store):
    store.insert(_record("t1"))
    assert store.rotate("t1", "s1", _record("t2")) is True

    assert store.get("t1").revoked is True
    assert store.find_active("t2", "s1") is not None


@pytest.mark.parametrize(
    "setup, subject",
    [
        ("revoked", "s1"),
        ("expired", "s1"),
        ("missing", "s1"),
        ("active", "someone-else"),
    ],
)
def test_rotate_refuses_inactive(store, setup, subject):
    if setup == "revoked":
        store.insert(_record("t1"))
        store.revoke("t1")
    elif setup == "expired":
        store.insert(_record("t1", ttl=timedelta(seconds=-5)))
    elif setup == "active":
        store.insert(_record("t1"))

    assert store.rotate("t1", subject, _record("t2")) is False
    assert store.get("t2") is None


def test_revoke_is_idempotent(store):
    store.insert(_record("t1"))
    assert store.revoke("t1") is True
    assert store.revoke("t1") is False
    assert store.revoke("unknown") is False
    assert store.get("t1").revoked is True


def test_revoke_all_for_subject(store):
    store.insert(_record("a1", "alice"))
    store.insert(_record("a2", "alice"))
    store.insert(_record("b1", "bob"))
    store.revoke("a2")

    assert store.revoke_all_for_subject("alice") == 1
    assert store.revoke_all_for_subject("alice") == 0
    assert store.find_active("b1", "bob") is not None


def test_purge_expired_removes_expired_only(store):
    store.insert(_record("keep"))
    store.insert(_record("gone", ttl=timedelta(seconds=-1)))

    assert store.purge_expired() == 1
    assert store.purge_expired() == 0
    assert store.get("gone") is None
    assert store.get("keep") is not None


def test_insert_sweeps_expired_lazily(store):
    store.insert(_record("stale", ttl=timedelta(seconds=-1)))
    # still visible to raw inspection until the next insert
    assert store.get("stale") is not None

    store.insert(_record("fresh"))
    assert store.get("stale") is None


def test_concurrent_rotate_single_winner(store):
    store.insert(_record("t0"))
    barrier = threading.Barrier(10)
    wins: list[bool] = []

    def worker(i: int) -> None:
        barrier.wait()
        wins.append(store.rotate("t0", "s1", _record(f"next-{i}")))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert wins.count(True) == 1
    active = [t for t in (f"next-{i}" for i in range(10)) if store.find_active(t, "s1")]
    assert len(active) == 1


def test_record_repr_hides_token():
    assert "secret-token" not in repr(_record("secret-token"))
