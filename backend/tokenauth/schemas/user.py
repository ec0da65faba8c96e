"""User resource schemas."""

from __future__ import annotations

from marshmallow import Schema, fields


class SubjectSchema(Schema):
    """Public representation of an authenticated user; never carries the password hash."""

    id = fields.Integer(required=True)
    email = fields.Email(required=True)
    created_at = fields.DateTime(allow_none=True)
