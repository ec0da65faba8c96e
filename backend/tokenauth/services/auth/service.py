# tokenauth/services/auth/service.py
from __future__ import annotations

from tokenauth.services._shared.base import BaseService
from tokenauth.services._shared.errors import (
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    NotFoundError,
)
from tokenauth.services._shared.ports.credentials import (
    CredentialVerifier,
    SubjectRegistry,
    SubjectSummary,
)
from tokenauth.services._shared.ports.refresh_token_store import (
    RefreshTokenRecord,
    RefreshTokenStore,
)
from tokenauth.services._shared.ports.token_codec import (
    REFRESH_TOKEN_TYPE,
    IssuedToken,
    TokenCodec,
    TokenVerificationError,
)
from tokenauth.services.auth.dto import LoginIn, LoginOut, LogoutIn, RefreshIn, TokenPairOut


class AuthService(BaseService):
    """
    Token lifecycle service (login / refresh / logout / profile).

    Tokens are issued and verified via a pluggable :class:`TokenCodec`; refresh
    state lives in a :class:`RefreshTokenStore` whose ``rotate`` is the only
    synchronization point. Per lineage a refresh token moves through
    ``ISSUED -> ACTIVE -> ROTATED | REVOKED | EXPIRED`` and never comes back.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        refresh_store: RefreshTokenStore,
        verifier: CredentialVerifier,
        registry: SubjectRegistry,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param codec: Adapter for issuing/verifying JWTs.
        :param refresh_store: Stateful store for refresh tokens (atomic rotation).
        :param verifier: Credential collaborator used by ``login``.
        :param registry: Subject lookup used by ``refresh`` and ``get_profile``.
        """
        super().__init__()
        self.codec = codec
        self.refresh_store = refresh_store
        self.verifier = verifier
        self.registry = registry

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> LoginOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :param dto: Login input.
        :returns: Subject summary plus the access/refresh pair.
        :raises InvalidCredentialsError: Unknown email or wrong password (same error).
        """
        subject = self.verifier.verify(dto.email, dto.password)
        if subject is None:
            self.log.info("auth.login.failed", extra={"event": "auth.login.failed"})
            raise InvalidCredentialsError()

        access = self.codec.issue_access_token(subject.subject_id, subject.email, fresh=True)
        refresh = self.codec.issue_refresh_token(subject.subject_id, subject.email)
        self.refresh_store.insert(self._record_for(subject.subject_id, refresh))

        self.log.info(
            "auth.login.succeeded",
            extra={"event": "auth.login.succeeded", "subject_id": subject.subject_id},
        )
        return LoginOut(subject=subject, access_token=access.value, refresh_token=refresh.value)

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        Forged, expired, already rotated, revoked and wrong-subject tokens all
        raise the same :class:`InvalidTokenError`.

        :param dto: Refresh input.
        :returns: New access/refresh pair; the presented token is revoked.
        :raises InvalidTokenError: The token cannot be exchanged.
        """
        old_token = dto.refresh_token

        # 1) Signature, expiry and type
        try:
            claims = self.codec.verify(old_token, REFRESH_TOKEN_TYPE)
        except TokenVerificationError as exc:
            self._reject(type(exc).__name__)
            raise InvalidTokenError() from exc

        subject_id = claims.subject_id

        # 2) Server-side state
        if self.refresh_store.find_active(old_token, subject_id) is None:
            self._reject("inactive", subject_id=subject_id)
            raise InvalidTokenError()

        # 3) The subject may have been deleted since issuance
        subject = self.registry.find_by_id(subject_id)
        if subject is None:
            self._reject("unknown_subject", subject_id=subject_id)
            raise InvalidTokenError()

        # 4) Issue, then compare-and-set: the old token is revoked and the new
        #    one stored in the same step, or nothing is written at all.
        access = self.codec.issue_access_token(subject.subject_id, subject.email, fresh=False)
        refresh = self.codec.issue_refresh_token(subject.subject_id, subject.email)
        new_record = self._record_for(subject.subject_id, refresh)

        if not self.refresh_store.rotate(old_token, subject_id, new_record):
            # Lost a race against a concurrent refresh/logout of the same token
            self._reject("rotation_lost", subject_id=subject_id)
            raise InvalidTokenError()

        self.log.info(
            "auth.refresh.rotated",
            extra={"event": "auth.refresh.rotated", "subject_id": subject_id},
        )
        return TokenPairOut(access_token=access.value, refresh_token=refresh.value)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Revoke a single refresh token.

        Idempotent: unknown or already revoked tokens succeed silently.

        :raises MissingTokenError: No token was provided.
        """
        if not dto.refresh_token:
            raise MissingTokenError()

        flipped = self.refresh_store.revoke(dto.refresh_token)
        self.log.info("auth.logout", extra={"event": "auth.logout", "revoked": int(flipped)})

    def logout_all(self, subject_id: int | str) -> int:
        """
        Revoke every active refresh token of ``subject_id``.

        :returns: Number of records revoked by this call.
        """
        subject_key = str(subject_id)
        revoked = self.refresh_store.revoke_all_for_subject(subject_key)
        self.log.info(
            "auth.logout_all",
            extra={"event": "auth.logout_all", "subject_id": subject_key, "revoked": revoked},
        )
        return revoked

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def get_profile(self, subject_id: int | str) -> SubjectSummary:
        """
        Return the non-sensitive summary of a subject.

        :raises NotFoundError: The subject does not exist.
        """
        subject = self.registry.find_by_id(subject_id)
        if subject is None:
            raise NotFoundError("User", subject_id)
        return subject

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    @staticmethod
    def _record_for(subject_id: str, issued: IssuedToken) -> RefreshTokenRecord:
        return RefreshTokenRecord(
            token=issued.value,
            subject_id=subject_id,
            issued_at=issued.issued_at,
            expires_at=issued.expires_at,
        )

    def _reject(self, reason: str, *, subject_id: str | None = None) -> None:
        self.log.info(
            "auth.refresh.rejected",
            extra={"event": "auth.refresh.rejected", "reason": reason, "subject_id": subject_id},
        )
