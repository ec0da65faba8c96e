"""Inputs accepted by :class:`~tokenauth.services.identity.service.IdentityService`."""

from __future__ import annotations

from dataclasses import dataclass, field

from tokenauth.repositories.user import normalize_email


@dataclass(frozen=True, slots=True)
class UserRegisterIn:
    """
    Account creation request.

    :param email: Login identifier; canonicalized on construction.
    :param password: Raw secret, hashed by the ``User`` model.
    """

    email: str
    password: str = field(repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "email", normalize_email(self.email))


@dataclass(frozen=True, slots=True)
class UserAuthIn:
    """Credential pair presented at login. The secret never shows up in ``repr``."""

    email: str
    password: str = field(repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "email", normalize_email(self.email))
