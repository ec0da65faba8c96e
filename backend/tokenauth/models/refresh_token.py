"""Persisted refresh-token records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from tokenauth.core.extensions import db

from .base import ReprMixin


class RefreshToken(ReprMixin, db.Model):
    """
    One issued refresh token.

    Fields
    ------
    token : str
        The signed token value; primary key.
    subject_id : str
        Owner identity (opaque to the store).
    issued_at, expires_at : datetime
        Fixed validity window.
    revoked : bool
        Monotonic ``False`` -> ``True``; the only column ever updated.
    """

    __tablename__ = "refresh_tokens"
    __repr_key__ = "subject_id"

    token: Mapped[str] = mapped_column(Text, primary_key=True)
    subject_id: Mapped[str] = mapped_column(String(64), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    __table_args__ = (
        # bulk revocation ("logout everywhere")
        Index("ix_refresh_tokens_subject_id_revoked", "subject_id", "revoked"),
        # expiry sweep
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )
