from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Path

from core.context import AppContext, get_app_context
from core.errors import auth_permission_denied, precondition_failed, resource_not_found
from repositories.claim_repo import ClaimRepository
from repositories.user_repo import UserRepository
from security.auth import verify_any_token
from security.principal import AuthPrincipal


@dataclass(frozen=True)
class MemberAccess:
    principal: AuthPrincipal
    company_id: str


@dataclass(frozen=True)
class ClaimAccess:
    principal: AuthPrincipal
    company_id: str
    claim_id: str


async def resolve_member_company(principal: AuthPrincipal, users: UserRepository) -> str:
    company_id = await users.get_company_id(principal.user_id)
    if not company_id:
        raise precondition_failed("User has no company", details={"user_id": principal.user_id})
    return company_id


async def ensure_claim_access(
    principal: AuthPrincipal,
    claim_id: str,
    *,
    users: UserRepository,
    claims: ClaimRepository,
) -> str:
    company_id = await resolve_member_company(principal, users)
    claim_company_id = await claims.get_company_id(claim_id)
    if claim_company_id is None:
        raise resource_not_found("Claim", claim_id)
    if claim_company_id != company_id:
        raise auth_permission_denied("Claim", claim_id)
    return company_id


async def require_member_access(
    principal: AuthPrincipal = Depends(verify_any_token),
    context: AppContext = Depends(get_app_context),
) -> MemberAccess:
    company_id = await resolve_member_company(principal, UserRepository(context.database))
    return MemberAccess(principal=principal, company_id=company_id)


async def require_claim_access(
    claim_id: str = Path(..., description="Claim identifier"),
    principal: AuthPrincipal = Depends(verify_any_token),
    context: AppContext = Depends(get_app_context),
) -> ClaimAccess:
    company_id = await ensure_claim_access(
        principal,
        claim_id,
        users=UserRepository(context.database),
        claims=ClaimRepository(context.database),
    )
    return ClaimAccess(principal=principal, company_id=company_id, claim_id=claim_id)
