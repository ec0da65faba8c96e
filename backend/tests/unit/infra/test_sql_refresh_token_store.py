# tests/unit/infra/test_sql_refresh_token_store.py
"""SQLRefreshTokenStore against the per-test in-memory SQLite database."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from tokenauth.core.config import TestingConfig
from tokenauth.core.extensions import db
from tokenauth.factory import create_app
from tokenauth.infra.sqlalchemy.sql_refresh_token_store import SQLRefreshTokenStore, to_row
from tokenauth.models.refresh_token import RefreshToken
from tokenauth.services._shared.errors import ConflictError, UnavailableError
from tokenauth.services._shared.ports import RefreshTokenRecord


def _record(
    token: str, subject_id: str = "1", *, ttl: timedelta = timedelta(hours=1), revoked=False
):
    now = datetime.now(UTC).replace(microsecond=0)
    return RefreshTokenRecord(
        token=token, subject_id=subject_id, issued_at=now, expires_at=now + ttl, revoked=revoked
    )


@pytest.fixture
def store(app) -> SQLRefreshTokenStore:
    return SQLRefreshTokenStore()


def test_insert_and_get_round_trip_is_utc(store):
    original = _record("t1")
    store.insert(original)

    loaded = store.get("t1")
    assert loaded is not None
    assert loaded.expires_at == original.expires_at
    assert loaded.expires_at.tzinfo is not None
    assert loaded.revoked is False


def test_insert_duplicate_conflicts(store):
    store.insert(_record("t1"))
    with pytest.raises(ConflictError):
        store.insert(_record("t1"))


def test_find_active_filters(store):
    store.insert(_record("live"))
    store.insert(_record("expired", ttl=timedelta(seconds=-1)))

    assert store.find_active("live", "1") is not None
    assert store.find_active("live", "2") is None
    assert store.find_active("expired", "1") is None
    assert store.get("expired") is not None


def test_rotate_is_compare_and_set(store):
    store.insert(_record("t1"))

    assert store.rotate("t1", "1", _record("t2")) is True
    assert store.rotate("t1", "1", _record("t3")) is False

    assert store.get("t1").revoked is True
    assert store.find_active("t2", "1") is not None
    assert store.get("t3") is None


def test_rotate_wrong_subject_writes_nothing(store):
    store.insert(_record("t1", subject_id="1"))

    assert store.rotate("t1", "2", _record("t2", subject_id="2")) is False
    assert store.get("t1").revoked is False
    assert store.get("t2") is None


def test_rotate_duplicate_successor_rolls_back(store):
    store.insert(_record("t1"))
    store.insert(_record("taken"))

    with pytest.raises(ConflictError):
        store.rotate("t1", "1", _record("taken"))

    # the revoke was part of the failed transaction
    assert store.get("t1").revoked is False


def test_revoke_and_revoke_all(store):
    store.insert(_record("a"))
    store.insert(_record("b"))
    store.insert(_record("c", subject_id="2"))

    assert store.revoke("a") is True
    assert store.revoke("a") is False
    assert store.revoke("missing") is False

    assert store.revoke_all_for_subject("1") == 1
    assert store.revoke_all_for_subject("1") == 0
    assert store.find_active("c", "2") is not None


def test_purge_expired_deletes_rows(store, session):
    store.insert(_record("current"))
    # written behind the store so no lazy sweep runs
    session.add(to_row(_record("old-live", ttl=timedelta(seconds=-10))))
    session.add(to_row(_record("old-revoked", ttl=timedelta(seconds=-10), revoked=True)))
    session.commit()

    assert store.purge_expired() == 2

    tokens = set(session.execute(select(RefreshToken.token)).scalars())
    assert tokens == {"current"}


def test_backend_failure_is_unavailable(store, monkeypatch):
    def boom(self, token):
        raise OperationalError("UPDATE", {}, Exception("database is locked"))

    monkeypatch.setattr("tokenauth.repositories.refresh_token.RefreshTokenRepository.revoke", boom)

    with pytest.raises(UnavailableError) as exc_info:
        store.revoke("t1")
    assert exc_info.value.backend == "sqlalchemy"


def test_writes_sweep_expired_rows(store, session):
    for i in range(5):
        store.insert(_record(f"stale-{i}", ttl=timedelta(seconds=-30)))
    for i in range(3):
        store.insert(_record(f"live-{i}"))

    assert store.find_active("live-0", "1") is not None
    assert store.rotate("live-0", "1", _record("live-0-next")) is True

    # 3 live rows + the successor; the rotated row stays until it expires
    count = session.execute(select(func.count()).select_from(RefreshToken)).scalar_one()
    assert count == 4
    assert all(store.get(f"stale-{i}") is None for i in range(5))
    assert store.get("live-0").revoked is True


# -------------------------- concurrent rotation ---------------------------- #
@pytest.fixture
def file_app(tmp_path):
    """App bound to a file-backed SQLite DB so each thread gets its own connection."""
    db_path = tmp_path / "race.db"

    class FileConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{db_path}"
        ACCESS_TOKEN_SECRET = "race-access-secret-0123456789abcdef01234"
        REFRESH_TOKEN_SECRET = "race-refresh-secret-fedcba9876543210fedc"
        REDIS_URL = None
        LOG_LEVEL = "WARNING"

    app = create_app(FileConfig, instance_relative_config=False)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def test_concurrent_rotate_only_one_wins(file_app):
    store = SQLRefreshTokenStore()
    with file_app.app_context():
        store.insert(_record("seed"))

    workers = 6
    results: list[bool] = []
    errors: list[BaseException] = []
    barrier = threading.Barrier(workers)

    def worker(i: int) -> None:
        barrier.wait()
        try:
            with file_app.app_context():
                results.append(store.rotate("seed", "1", _record(f"next-{i}")))
        except BaseException as exc:  # surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert results.count(True) == 1
    with file_app.app_context():
        assert store.get("seed").revoked is True
        successors = [store.get(f"next-{i}") for i in range(workers)]
        assert sum(s is not None for s in successors) == 1
