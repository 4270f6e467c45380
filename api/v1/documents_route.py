from __future__ import annotations

import mimetypes

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import Response

from api.dependencies import get_document_service, get_upload_orchestrator
from api.uploads import incoming_file_from_upload
from core.context import AppContext, get_app_context
from core.response_envelope import document_response
from core.storage.local_provider import LocalStorageProvider
from security.claim_access_check import ClaimAccess, MemberAccess, require_claim_access, require_member_access
from services.document_service import DocumentService
from services.upload_orchestrator import UploadOrchestrator

router = APIRouter(tags=["Documents"])


@router.post("/claims/{claim_id}/documents")
@document_response(message="Documents uploaded", status_code=201)
async def upload_claim_documents(
    request: Request,
    files: list[UploadFile] = File(...),
    access: ClaimAccess = Depends(require_claim_access),
    orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
):
    incoming = [incoming_file_from_upload(upload) for upload in files]
    return await orchestrator.run_member_batch(access, incoming)


@router.get("/claims/{claim_id}/documents")
@document_response(message="Documents fetched")
async def list_claim_documents(
    request: Request,
    access: ClaimAccess = Depends(require_claim_access),
    documents: DocumentService = Depends(get_document_service),
):
    return await documents.list_claim_documents(access.claim_id)


@router.get("/documents/{document_id}/download-url")
@document_response(message="Download link created")
async def get_document_download_url(
    request: Request,
    document_id: str,
    access: MemberAccess = Depends(require_member_access),
    documents: DocumentService = Depends(get_document_service),
):
    return await documents.download_url(document_id, company_id=access.company_id)


@router.get("/documents/local/{object_key:path}", include_in_schema=False)
async def read_local_document(object_key: str, context: AppContext = Depends(get_app_context)):
    provider = context.storage
    if not isinstance(provider, LocalStorageProvider):
        return Response(status_code=404)

    try:
        data = await provider.read_bytes(object_key=object_key)
    except ValueError:
        return Response(status_code=400)
    except (FileNotFoundError, IsADirectoryError):
        return Response(status_code=404)
    media_type = mimetypes.guess_type(object_key)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)


@router.get("/storage-usage")
@document_response(message="Storage usage fetched")
async def get_storage_usage(
    request: Request,
    access: MemberAccess = Depends(require_member_access),
    documents: DocumentService = Depends(get_document_service),
):
    return await documents.storage_usage(access.company_id)
