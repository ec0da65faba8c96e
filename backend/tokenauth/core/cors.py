"""CORS configuration helper for API resources."""

from __future__ import annotations

import re

from flask import Flask
from flask_cors import CORS


def parse_origins(raw: str) -> list[str | re.Pattern[str]]:
    """Split ``CORS_ORIGINS`` into literal origins and compiled patterns.

    Entries wrapped in ``^...$`` are compiled as regular expressions so
    preview deployments (e.g. ``^https://.*\\.vercel\\.app$``) can be allowed
    without enumerating them.
    """
    origins: list[str | re.Pattern[str]] = []
    for item in (o.strip() for o in raw.split(",")):
        if not item:
            continue
        if item.startswith("^") and item.endswith("$"):
            origins.append(re.compile(item))
        else:
            origins.append(item)
    return origins


def init_app(app: Flask) -> None:
    """Configure CORS for API endpoints based on application config.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted. When ``CORS_ORIGINS`` is blank or ``"*"`` the policy allows
        any origin but disables credential support.
    """
    origins = parse_origins(app.config.get("CORS_ORIGINS", ""))
    wildcard = len(origins) == 0 or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID", "Retry-After"],
        supports_credentials=not wildcard,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
