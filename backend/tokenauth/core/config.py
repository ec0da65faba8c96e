"""Application settings with environment-based simple classes."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Placeholders shipped for local development only
DEV_ACCESS_SECRET: Final[str] = "CHANGE_ME_ACCESS"
DEV_REFRESH_SECRET: Final[str] = "CHANGE_ME_REFRESH"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}

log = logging.getLogger(__name__)

# Load .env during development (no-op when the file is absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_duration(raw: str | int | timedelta) -> timedelta:
    """Parse a compact duration such as ``"15m"``, ``"7d"`` or ``"3600"``.

    Parameters
    ----------
    raw: str | int | timedelta
        Duration expression. Bare numbers are seconds.

    Returns
    -------
    timedelta
        Parsed, strictly positive duration.

    Raises
    ------
    ValueError
        If the expression is malformed or not positive.
    """
    if isinstance(raw, timedelta):
        value = raw
    elif isinstance(raw, int):
        value = timedelta(seconds=raw)
    else:
        match = _DURATION_RE.match(raw)
        if match is None:
            raise ValueError(f"Invalid duration: {raw!r}")
        amount, unit = match.groups()
        value = timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})
    if value <= timedelta(0):
        raise ValueError(f"Duration must be positive: {raw!r}")
    return value


def env_duration(name: str, default: str) -> timedelta:
    """Read a duration from the environment using :func:`parse_duration`."""
    return parse_duration(os.getenv(name, default))


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    ACCESS_TOKEN_SECRET: str
        HMAC secret for access tokens. Must be supplied outside development.
    REFRESH_TOKEN_SECRET: str
        HMAC secret for refresh tokens. Must differ from the access secret.
    ACCESS_TOKEN_EXPIRES: datetime.timedelta
        Access token lifetime (``JWT_ACCESS_EXPIRES_IN``, default ``15m``).
    REFRESH_TOKEN_EXPIRES: datetime.timedelta
        Refresh token lifetime (``JWT_REFRESH_EXPIRES_IN``, default ``7d``).
    JWT_SECRET_KEY: str
        Key used by ``flask-jwt-extended`` to verify access tokens on guarded
        endpoints; mirrors ``ACCESS_TOKEN_SECRET``.
    REFRESH_STORE_BACKEND: str
        ``"sqlalchemy"`` (default), ``"redis"`` or ``"memory"``.
    REDIS_URL: str | None
        Connection URL, required for the Redis backend.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    LOG_FORMAT: str
        ``"json"`` (default) or ``"text"``.
    CORS_ORIGINS: str
        Comma-separated list of allowed origins; ``^...$`` entries are regexes.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    ACCESS_TOKEN_SECRET = os.getenv("JWT_ACCESS_SECRET", DEV_ACCESS_SECRET)
    REFRESH_TOKEN_SECRET = os.getenv("JWT_REFRESH_SECRET", DEV_REFRESH_SECRET)
    ACCESS_TOKEN_EXPIRES = env_duration("JWT_ACCESS_EXPIRES_IN", "15m")
    REFRESH_TOKEN_EXPIRES = env_duration("JWT_REFRESH_EXPIRES_IN", "7d")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "tokenauth")
    REQUIRE_EXPLICIT_SECRETS = False

    # flask-jwt-extended guards access-token endpoints with the access secret
    JWT_SECRET_KEY = ACCESS_TOKEN_SECRET
    JWT_ACCESS_TOKEN_EXPIRES = ACCESS_TOKEN_EXPIRES
    JWT_DECODE_ISSUER = JWT_ISSUER

    # Refresh token persistence
    REFRESH_STORE_BACKEND = os.getenv("REFRESH_STORE_BACKEND", "sqlalchemy").strip().lower()
    REDIS_URL = os.getenv("REDIS_URL") or None

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, proxy & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    PROXYFIX_HOPS = int(os.getenv("PROXYFIX_HOPS", "1"))
    CORS_ORIGINS = os.getenv(
        "CORS_ORIGINS",
        r"http://localhost:5173,http://localhost:3000,^https://.*\.vercel\.app$",
    )
    CORS_MAX_AGE = 600

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default. Placeholder secrets are tolerated here but
    reported as a warning on startup.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = True
    REFRESH_STORE_BACKEND = "sqlalchemy"
    USE_PROXYFIX = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Refuses to boot with placeholder or shared token secrets
    (see :func:`ensure_secure_settings`).
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REQUIRE_EXPLICIT_SECRETS = True


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def insecure_secret_problems(config: Mapping[str, Any]) -> list[str]:
    """List the reasons the configured token secrets are unsafe.

    :param config: Flask config mapping.
    :returns: Human-readable problems; empty when the secrets look sane.
    """
    problems: list[str] = []
    access = config.get("ACCESS_TOKEN_SECRET") or ""
    refresh = config.get("REFRESH_TOKEN_SECRET") or ""
    if not access or access == DEV_ACCESS_SECRET:
        problems.append("JWT_ACCESS_SECRET is unset or uses the development placeholder")
    if not refresh or refresh == DEV_REFRESH_SECRET:
        problems.append("JWT_REFRESH_SECRET is unset or uses the development placeholder")
    if access and access == refresh:
        problems.append("access and refresh secrets must differ")
    return problems


def ensure_secure_settings(config: Mapping[str, Any]) -> None:
    """Validate token secrets at startup.

    :param config: Flask config mapping.
    :raises RuntimeError: When ``REQUIRE_EXPLICIT_SECRETS`` is set and the
        secrets are placeholders, empty or identical.
    """
    problems = insecure_secret_problems(config)
    if not problems:
        return
    if config.get("REQUIRE_EXPLICIT_SECRETS"):
        raise RuntimeError("Insecure token configuration: " + "; ".join(problems))
    if not config.get("TESTING"):
        log.warning("config.insecure_secrets: %s", "; ".join(problems))
