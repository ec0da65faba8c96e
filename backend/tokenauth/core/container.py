"""Startup wiring for the token lifecycle service.

One :class:`~tokenauth.services.auth.service.AuthService` is built per
application from explicit handles and kept in ``app.extensions``; request
handlers fetch it with :func:`get_auth_service`.
"""

from __future__ import annotations

import logging

from flask import Flask, current_app

from tokenauth.services._shared.ports import InMemoryRefreshTokenStore, RefreshTokenStore
from tokenauth.services.auth.service import AuthService

LOGGER = logging.getLogger(__name__)

STORE_BACKENDS = ("sqlalchemy", "redis", "memory")


def build_refresh_store(app: Flask) -> RefreshTokenStore:
    """Instantiate the refresh-token store selected by ``REFRESH_STORE_BACKEND``."""
    backend = str(app.config.get("REFRESH_STORE_BACKEND", "sqlalchemy")).lower()

    if backend == "sqlalchemy":
        from tokenauth.infra.sqlalchemy.sql_refresh_token_store import SQLRefreshTokenStore

        return SQLRefreshTokenStore()

    if backend == "redis":
        from tokenauth.core.extensions import get_redis
        from tokenauth.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore

        return RedisRefreshTokenStore(get_redis(app))

    if backend == "memory":
        return InMemoryRefreshTokenStore()

    raise RuntimeError(
        f"Unknown REFRESH_STORE_BACKEND {backend!r}; expected one of {', '.join(STORE_BACKENDS)}"
    )


def init_app(app: Flask) -> None:
    """Build the lifecycle service and attach it to ``app.extensions``."""
    from tokenauth.infra.jwt.jwt_token_codec import JWTTokenCodec
    from tokenauth.services.identity.service import IdentityService

    identity = IdentityService()
    store = build_refresh_store(app)
    app.extensions["identity_service"] = identity
    app.extensions["refresh_token_store"] = store
    app.extensions["auth_service"] = AuthService(
        codec=JWTTokenCodec.from_config(app.config),
        refresh_store=store,
        verifier=identity,
        registry=identity,
    )
    LOGGER.info(
        "auth.wired",
        extra={"event": "auth.wired", "backend": type(store).__name__},
    )


def get_auth_service(app: Flask | None = None) -> AuthService:
    target = app or current_app
    return target.extensions["auth_service"]


def get_identity_service(app: Flask | None = None):
    target = app or current_app
    return target.extensions["identity_service"]


def get_refresh_store(app: Flask | None = None) -> RefreshTokenStore:
    target = app or current_app
    return target.extensions["refresh_token_store"]
