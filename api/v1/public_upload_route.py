from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from api.dependencies import get_token_validator, get_upload_orchestrator
from api.uploads import incoming_file_from_upload
from core.context import AppContext, get_app_context
from core.errors import invalid_or_expired_upload_link
from core.response_envelope import document_response
from schemas.upload_token_schema import PublicUploadSession
from services.upload_orchestrator import UploadOrchestrator
from services.upload_token_service import UploadTokenValidator

router = APIRouter(prefix="/public-upload", tags=["Public Upload"])


@router.get("/tokens/{token}")
@document_response(message="Upload link is valid")
async def get_public_upload_session(
    request: Request,
    token: str,
    context: AppContext = Depends(get_app_context),
    validator: UploadTokenValidator = Depends(get_token_validator),
):
    context.rate_limiter.check_token_lookup(request)
    scope = await validator.validate(token)
    if scope is None:
        raise invalid_or_expired_upload_link()
    return PublicUploadSession(**scope.model_dump())


@router.post("/documents")
@document_response(message="Document uploaded", status_code=201)
async def upload_public_document(
    request: Request,
    token: str = Form(...),
    uploader_name: str = Form(...),
    file: UploadFile = File(...),
    context: AppContext = Depends(get_app_context),
    orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
):
    context.rate_limiter.check_upload(request, token)
    return await orchestrator.run_public_file(token, uploader_name, incoming_file_from_upload(file))


@router.post("/batches")
@document_response(message="Batch upload processed")
async def upload_public_batch(
    request: Request,
    token: str = Form(...),
    uploader_name: str = Form(...),
    files: list[UploadFile] = File(...),
    context: AppContext = Depends(get_app_context),
    orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
):
    incoming = [incoming_file_from_upload(upload) for upload in files]
    orchestrator.check_selection(incoming)
    context.rate_limiter.check_upload(request, token, file_count=len(incoming))
    return await orchestrator.run_public_batch(token, uploader_name, incoming)
