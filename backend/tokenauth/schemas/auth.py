"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from .user import SubjectSchema


class RegisterSchema(Schema):
    """Input payload for account registration."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=6, max=128))


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    # no strength rules here: a policy mismatch must look like any wrong password
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    """Input payload for exchanging a refresh token."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class LogoutSchema(Schema):
    """Input payload for revoking a refresh token.

    The token is optional at this level; an absent token is reported by the
    service as ``missing_token`` rather than as a validation error.
    """

    refresh_token = fields.String(load_default=None, allow_none=True)


class TokenPairSchema(Schema):
    """Response payload containing an access/refresh token pair."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")
    expires_in = fields.Integer(required=True)


class LoginResponseSchema(TokenPairSchema):
    """Token pair plus the authenticated user."""

    user = fields.Nested(SubjectSchema, required=True)


class LogoutAllResponseSchema(Schema):
    """Number of sessions closed by ``logout-all``."""

    revoked = fields.Integer(required=True)
