from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_token_issuer
from core.response_envelope import document_response
from schemas.upload_token_schema import IssueUploadTokenRequest
from security.auth import verify_any_token
from security.principal import AuthPrincipal
from services.upload_token_service import UploadTokenIssuer

router = APIRouter(prefix="/claims", tags=["Upload Links"])


@router.post("/{claim_id}/upload-tokens")
@document_response(message="Upload link created", status_code=201)
async def issue_upload_token(
    request: Request,
    claim_id: str,
    payload: IssueUploadTokenRequest | None = None,
    principal: AuthPrincipal = Depends(verify_any_token),
    issuer: UploadTokenIssuer = Depends(get_token_issuer),
):
    payload = payload or IssueUploadTokenRequest()
    ttl = timedelta(hours=payload.ttl_hours) if payload.ttl_hours is not None else None
    return await issuer.issue(
        principal,
        claim_id,
        kind=payload.kind,
        field_label=payload.field_label,
        ttl=ttl,
    )
