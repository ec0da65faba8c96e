"""Refresh-token repository: conditional updates used as compare-and-set."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import CursorResult, delete, select, update

from tokenauth.models.refresh_token import RefreshToken
from tokenauth.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`.

    Every write other than insert is a single conditional ``UPDATE``/``DELETE``
    whose affected row count tells the caller whether it won.
    """

    model = RefreshToken
    pk_name = "token"

    def find_active(self, token: str, subject_id: str, now: datetime) -> RefreshToken | None:
        """Return the row only if not revoked, not expired and owned by ``subject_id``."""
        stmt = select(RefreshToken).where(
            RefreshToken.token == token,
            RefreshToken.subject_id == subject_id,
            RefreshToken.revoked.is_(False),
            RefreshToken.expires_at > now,
        )
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def revoke_if_active(self, token: str, subject_id: str, now: datetime) -> bool:
        """Flip ``revoked`` only when the row is still active for ``subject_id``."""
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.token == token,
                RefreshToken.subject_id == subject_id,
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at > now,
            )
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt) == 1

    def revoke(self, token: str) -> bool:
        """Flip ``revoked`` if currently ``False``; ``True`` when this call did it."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token == token, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt) == 1

    def revoke_all_for_subject(self, subject_id: str) -> int:
        # served by ix_refresh_tokens_subject_id_revoked
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.subject_id == subject_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt)

    def delete_expired(self, now: datetime) -> int:
        # served by ix_refresh_tokens_expires_at
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt)

    def _rowcount(self, stmt) -> int:
        result = cast(CursorResult, self.session.execute(stmt))
        return int(result.rowcount or 0)
