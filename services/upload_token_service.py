from __future__ import annotations

import logging
import secrets
import time
from datetime import timedelta
from typing import Callable, Iterable
from urllib.parse import urlencode

from pymongo.errors import PyMongoError

from core.errors import auth_invalid_token, storage_error, validation_failed
from core.logging import mask_token
from core.upload_limits import BATCH_FIELD_LABEL, BATCH_TOKEN_TTL, MAX_TOKEN_TTL, SINGLE_FIELD_TOKEN_TTL
from repositories.claim_repo import ClaimRepository
from repositories.upload_token_repo import UploadTokenRepository
from repositories.user_repo import UserRepository
from schemas.upload_token_schema import IssuedUploadToken, ScopeContext, TokenKind, UploadTokenCreate
from security.claim_access_check import ensure_claim_access
from security.principal import AuthPrincipal

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16
ALL_TOKEN_KINDS = frozenset(TokenKind)
DEFAULT_TTL = {
    TokenKind.SINGLE_FIELD: SINGLE_FIELD_TOKEN_TTL,
    TokenKind.BATCH: BATCH_TOKEN_TTL,
}


def build_upload_url(public_app_origin: str, token: str) -> str:
    return f"{public_app_origin.rstrip('/')}/public-upload?{urlencode({'token': token})}"


class UploadTokenIssuer:
    def __init__(
        self,
        *,
        tokens: UploadTokenRepository,
        users: UserRepository,
        claims: ClaimRepository,
        public_app_origin: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._tokens = tokens
        self._users = users
        self._claims = claims
        self._public_app_origin = public_app_origin
        self._clock = clock

    async def issue(
        self,
        principal: AuthPrincipal | None,
        claim_id: str,
        *,
        kind: TokenKind = TokenKind.BATCH,
        field_label: str | None = None,
        ttl: timedelta | None = None,
    ) -> IssuedUploadToken:
        if principal is None:
            raise auth_invalid_token()

        ttl = DEFAULT_TTL[kind] if ttl is None else ttl
        if ttl < timedelta(0):
            raise validation_failed("Upload link lifetime cannot be negative", details={"ttl_seconds": ttl.total_seconds()})
        if ttl > MAX_TOKEN_TTL:
            raise validation_failed(
                f"Upload link lifetime cannot exceed {MAX_TOKEN_TTL.days} days",
                details={"ttl_seconds": ttl.total_seconds(), "max_ttl_seconds": MAX_TOKEN_TTL.total_seconds()},
            )

        if kind is TokenKind.BATCH:
            label = BATCH_FIELD_LABEL
        else:
            label = (field_label or "").strip()
            if not label:
                raise validation_failed("field_label is required for single-field upload links")

        company_id = await ensure_claim_access(principal, claim_id, users=self._users, claims=self._claims)

        token = secrets.token_urlsafe(TOKEN_BYTES)
        issued_at = int(self._clock())
        record = UploadTokenCreate(
            token=token,
            kind=kind,
            claim_id=claim_id,
            company_id=company_id,
            field_label=label,
            issued_by=principal.user_id,
            issued_at=issued_at,
            expires_at=issued_at + int(ttl.total_seconds()),
        )

        try:
            stored = await self._tokens.create(record)
        except PyMongoError as err:
            logger.error("Failed to persist upload token for claim %s: %s", claim_id, err)
            raise storage_error("Could not create upload link", details={"claim_id": claim_id}) from err

        logger.info(
            "Issued %s upload token %s for claim %s",
            kind.value,
            mask_token(token),
            claim_id,
            extra={"company_id": company_id, "expires_at": stored.expires_at},
        )
        return IssuedUploadToken(
            token=stored.token,
            kind=stored.kind,
            claim_id=stored.claim_id,
            company_id=stored.company_id,
            field_label=stored.field_label,
            issued_at=stored.issued_at,
            expires_at=stored.expires_at,
            upload_url=build_upload_url(self._public_app_origin, stored.token),
        )


class UploadTokenValidator:
    """Resolves a presented upload token to the scope it grants.

    Every rejection returns None. Callers surface one generic "invalid or
    expired" message so a bearer cannot tell a missing token from an
    expired one. A failed lookup is not a rejection and raises STORAGE_ERROR.
    """

    def __init__(self, *, tokens: UploadTokenRepository, clock: Callable[[], float] = time.time) -> None:
        self._tokens = tokens
        self._clock = clock

    async def validate(self, token: str | None, *, accept: Iterable[TokenKind] = ALL_TOKEN_KINDS) -> ScopeContext | None:
        if not token:
            return None

        try:
            record = await self._tokens.get_by_token(token)
        except PyMongoError as err:
            logger.error("Upload token lookup failed for %s: %s", mask_token(token), err)
            raise storage_error("Could not verify upload link, please try again") from err

        if record is None:
            logger.info("Upload token %s rejected: not found", mask_token(token))
            return None

        if not record.is_valid_at(int(self._clock())):
            logger.info("Upload token %s rejected: expired", mask_token(token))
            return None

        if record.kind not in set(accept):
            logger.info("Upload token %s rejected: %s link not accepted here", mask_token(token), record.kind.value)
            return None

        return ScopeContext(
            claim_id=record.claim_id,
            company_id=record.company_id,
            field_label=record.field_label,
            kind=record.kind,
            expires_at=record.expires_at,
        )

    async def validate_single_field(self, token: str | None) -> ScopeContext | None:
        return await self.validate(token, accept=(TokenKind.SINGLE_FIELD,))
