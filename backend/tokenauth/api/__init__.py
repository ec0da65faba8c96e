"""HTTP surface: versioned blueprints mounted under ``API_BASE_PREFIX``."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """
    Mount each ``(blueprint, relative_prefix)`` pair below ``base_prefix``.

    An empty relative prefix mounts the blueprint at the version root, which
    is how ``/api/v1/health`` sits next to ``/api/v1/auth/...``.
    """
    base = "/" + base_prefix.strip("/")
    for bp, rel_prefix in entries:
        rel = rel_prefix.strip("/")
        app.register_blueprint(bp, url_prefix=f"{base}/{rel}" if rel else base)


def init_app(app: Flask) -> None:
    """Register API v1 on ``app``."""

    from tokenauth.api.v1 import API_VERSION, REGISTRY

    base = app.config.get("API_BASE_PREFIX", "/api")
    register_blueprint_group(app, base_prefix=f"{base}/{API_VERSION}", entries=REGISTRY)


__all__ = ["init_app", "register_blueprint_group"]
