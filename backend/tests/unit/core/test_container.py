"""Refresh-store backend selection and service wiring."""

from __future__ import annotations

import fakeredis
import pytest

from tests.helpers.utils import not_raises
from tokenauth.core.container import build_refresh_store, get_auth_service, get_refresh_store
from tokenauth.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from tokenauth.infra.sqlalchemy.sql_refresh_token_store import SQLRefreshTokenStore
from tokenauth.services._shared.ports import InMemoryRefreshTokenStore
from tokenauth.services.auth.service import AuthService


def test_factory_wires_sql_store_by_default(app):
    assert isinstance(get_refresh_store(app), SQLRefreshTokenStore)
    assert isinstance(get_auth_service(app), AuthService)


def test_memory_backend(app):
    app.config["REFRESH_STORE_BACKEND"] = "Memory"
    assert isinstance(build_refresh_store(app), InMemoryRefreshTokenStore)


def test_redis_backend_uses_shared_client(app):
    client = fakeredis.FakeRedis()
    app.config["REFRESH_STORE_BACKEND"] = "redis"
    app.extensions["redis_client"] = client

    with not_raises(RuntimeError):
        store = build_refresh_store(app)

    assert isinstance(store, RedisRefreshTokenStore)
    assert store.r is client


def test_redis_backend_without_client_fails(app):
    app.config["REFRESH_STORE_BACKEND"] = "redis"
    app.extensions.pop("redis_client", None)

    with pytest.raises(RuntimeError, match="REDIS_URL"):
        build_refresh_store(app)


def test_unknown_backend_fails_fast(app):
    app.config["REFRESH_STORE_BACKEND"] = "cassandra"

    with pytest.raises(RuntimeError, match="cassandra"):
        build_refresh_store(app)
