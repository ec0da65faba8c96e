# tokenauth/infra/sqlalchemy/sql_refresh_token_store.py
from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tokenauth.models.base import as_utc
from tokenauth.models.refresh_token import RefreshToken
from tokenauth.services._shared.errors import ConflictError, unavailable_on
from tokenauth.services._shared.ports import RefreshTokenRecord, RefreshTokenStore
from tokenauth.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


def to_record(row: RefreshToken) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        token=row.token,
        subject_id=row.subject_id,
        issued_at=as_utc(row.issued_at),
        expires_at=as_utc(row.expires_at),
        revoked=bool(row.revoked),
    )


def to_row(record: RefreshTokenRecord) -> RefreshToken:
    return RefreshToken(
        token=record.token,
        subject_id=record.subject_id,
        issued_at=as_utc(record.issued_at),
        expires_at=as_utc(record.expires_at),
        revoked=record.revoked,
    )


class SQLRefreshTokenStore(RefreshTokenStore):
    """
    Durable refresh token store over the ``refresh_tokens`` table.

    Every call runs in its own Unit of Work. ``rotate`` performs the
    conditional revoke and the insert in one transaction: when the
    ``UPDATE ... WHERE revoked = false`` touches no row nothing is written.

    Expired rows are swept lazily by every ``insert`` and ``rotate`` (same
    transaction) and in bulk by ``flask tokens purge-expired``.
    Requires an active Flask app context.
    """

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    @unavailable_on(SQLAlchemyError, backend="sqlalchemy")
    def insert(self, record: RefreshTokenRecord) -> None:
        try:
            with SQLAlchemyUnitOfWork() as uow:
                if uow.refresh_tokens.get(record.token) is not None:
                    raise ConflictError("RefreshToken", "token already exists")
                uow.refresh_tokens.delete_expired(self._now())
                uow.refresh_tokens.add(to_row(record))
        except IntegrityError as exc:
            raise ConflictError("RefreshToken", "token already exists") from exc

    @unavailable_on(SQLAlchemyError, backend="sqlalchemy")
    def find_active(self, token: str, subject_id: str) -> RefreshTokenRecord | None:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            row = uow.refresh_tokens.find_active(token, subject_id, self._now())
            return to_record(row) if row is not None else None

    @unavailable_on(SQLAlchemyError, backend="sqlalchemy")
    def rotate(self, old_token: str, subject_id: str, new_record: RefreshTokenRecord) -> bool:
        try:
            with SQLAlchemyUnitOfWork() as uow:
                if not uow.refresh_tokens.revoke_if_active(old_token, subject_id, self._now()):
                    return False
                if uow.refresh_tokens.get(new_record.token) is not None:
                    # raising rolls the revoke back with the rest of the unit of work
                    raise ConflictError("RefreshToken", "token already exists")
                uow.refresh_tokens.delete_expired(self._now())
                uow.refresh_tokens.add(to_row(new_record))
        except IntegrityError as exc:
            raise ConflictError("RefreshToken", "token already exists") from exc
        return True

    @unavailable_on(SQLAlchemyError, backend="sqlalchemy")
    def revoke(self, token: str) -> bool:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.revoke(token)

    @unavailable_on(SQLAlchemyError, backend="sqlalchemy")
    def revoke_all_for_subject(self, subject_id: str) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.revoke_all_for_subject(subject_id)

    @unavailable_on(SQLAlchemyError, backend="sqlalchemy")
    def purge_expired(self) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.delete_expired(self._now())

    @unavailable_on(SQLAlchemyError, backend="sqlalchemy")
    def get(self, token: str) -> RefreshTokenRecord | None:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            row = uow.refresh_tokens.get(token)
            return to_record(row) if row is not None else None
