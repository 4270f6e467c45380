from __future__ import annotations

from fastapi import Depends

from core.context import AppContext, get_app_context
from repositories.claim_repo import ClaimRepository
from repositories.document_repo import DocumentRepository
from repositories.upload_token_repo import UploadTokenRepository
from repositories.user_repo import UserRepository
from services.document_ingest_service import DocumentIngestor
from services.document_service import DocumentService
from services.upload_orchestrator import UploadOrchestrator
from services.upload_token_service import UploadTokenIssuer, UploadTokenValidator


def get_token_issuer(context: AppContext = Depends(get_app_context)) -> UploadTokenIssuer:
    return UploadTokenIssuer(
        tokens=UploadTokenRepository(context.database),
        users=UserRepository(context.database),
        claims=ClaimRepository(context.database),
        public_app_origin=context.settings.public_app_origin,
        clock=context.clock,
    )


def get_token_validator(context: AppContext = Depends(get_app_context)) -> UploadTokenValidator:
    return UploadTokenValidator(tokens=UploadTokenRepository(context.database), clock=context.clock)


def get_upload_orchestrator(
    context: AppContext = Depends(get_app_context),
    validator: UploadTokenValidator = Depends(get_token_validator),
) -> UploadOrchestrator:
    ingestor = DocumentIngestor(
        documents=DocumentRepository(context.database),
        tokens=UploadTokenRepository(context.database),
        storage=context.storage,
        clock=context.clock,
    )
    return UploadOrchestrator(ingestor=ingestor, validator=validator)


def get_document_service(context: AppContext = Depends(get_app_context)) -> DocumentService:
    return DocumentService(documents=DocumentRepository(context.database), storage=context.storage)
