"""Pytest fixtures configuring the application and an isolated database.

Each test gets its own application instance bound to a fresh in-memory SQLite
database, so rows committed by a Unit of Work never leak between cases.
"""

from __future__ import annotations

import os

import pytest

from tokenauth.core.config import TestingConfig
from tokenauth.core.extensions import db as _db  # Flask-SQLAlchemy instance
from tokenauth.factory import create_app  # application factory under test


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Explicit, distinct token secrets (no placeholder warnings).
    - Avoids hitting external services (no Redis).
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    ACCESS_TOKEN_SECRET = "test-access-secret-0123456789abcdef0123"
    REFRESH_TOKEN_SECRET = "test-refresh-secret-fedcba9876543210fedc"
    JWT_ISSUER = "tokenauth-test"
    REFRESH_STORE_BACKEND = "sqlalchemy"
    REDIS_URL = None
    LOG_LEVEL = "WARNING"
    CORS_ORIGINS = r"http://localhost:5173,^https://.*\.vercel\.app$"


@pytest.fixture()
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and an app
        context pushed for the duration of the test.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig, instance_relative_config=False)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def session(app):
    """Return the Flask-scoped SQLAlchemy session used by the application."""
    return _db.session


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def auth_service(app):
    """The :class:`AuthService` wired by the factory."""
    from tokenauth.core.container import get_auth_service

    return get_auth_service(app)


@pytest.fixture()
def identity_service(app):
    """The :class:`IdentityService` wired by the factory."""
    from tokenauth.core.container import get_identity_service

    return get_identity_service(app)


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to the Flask-scoped session ---------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper when the test uses the database."""
    from tests.factories import SQLAlchemySession

    if "app" in request.fixturenames:
        SQLAlchemySession.set(request.getfixturevalue("session"))
    else:
        SQLAlchemySession.set(None)
    yield
    SQLAlchemySession.set(None)
