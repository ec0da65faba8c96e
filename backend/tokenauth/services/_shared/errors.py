"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never depend on Flask or HTTP.
They are the stable contract between the token store adapters, the identity
collaborator and the lifecycle service.

The translation to HTTP responses (RFC 7807) is handled by
``tokenauth/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError

F = TypeVar("F", bound=Callable[..., Any])


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    # PostgreSQL includes the constraint name; SQLite reports "table.column"
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to APIError.
    """

    pass


# --------------------------------------------------------------------------- #
# Authentication errors
# --------------------------------------------------------------------------- #


class InvalidCredentialsError(ServiceError):
    """
    Login failed.

    The message is identical for unknown identifiers and wrong secrets.
    """

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class InvalidTokenError(ServiceError):
    """
    A refresh token was rejected.

    Forged, expired, already rotated, revoked and wrong-subject tokens all
    raise this same error with the same message.
    """

    def __init__(self) -> None:
        super().__init__("Invalid refresh token")


class MissingTokenError(ServiceError):
    """Raised when logout is called without a token."""

    def __init__(self) -> None:
        super().__init__("Refresh token is required")


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


@dataclass(slots=True)
class UnavailableError(ServiceError):
    """
    Raised when a backing collaborator (database, Redis) cannot be reached.

    Callers may retry. Never raised for authentication failures.

    :param backend: Short backend name (``"sqlalchemy"``, ``"redis"``).
    :type backend: str
    :param detail: Operator-facing description (not shown to clients).
    :type detail: str
    """

    backend: str
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.backend} unavailable"


def unavailable_on(*exc_types: type[BaseException], backend: str) -> Callable[[F], F]:
    """
    Convert backend exceptions raised by an adapter method into
    :class:`UnavailableError`.

    :param exc_types: Backend exception types to translate.
    :param backend: Backend name recorded on the error.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except exc_types as exc:
                raise UnavailableError(backend, str(exc)) from exc

        return wrapper  # type: ignore[return-value]

    return decorator
