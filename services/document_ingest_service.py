from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from pymongo.errors import PyMongoError

from core.errors import file_too_large, storage_error
from core.logging import mask_token
from core.storage import DocumentStorageProvider, IncomingFile, StorageTarget
from core.upload_limits import MAX_FILE_SIZE_BYTES, check_file_size, file_type_label
from repositories.document_repo import DocumentRepository
from repositories.upload_token_repo import UploadTokenRepository
from schemas.document_schema import DocumentCreate, IngestResult, UploaderIdentity

logger = logging.getLogger(__name__)

PUBLIC_LINK_SOURCE = "public_link"


class DocumentIngestor:
    """Moves one file into the content store and records it against a claim.

    The size ceiling is enforced before any bytes leave the process. When the
    blob is stored but the metadata write fails, the blob is left in place and
    its path is logged so it can be reconciled by hand.
    """

    def __init__(
        self,
        *,
        documents: DocumentRepository,
        tokens: UploadTokenRepository,
        storage: DocumentStorageProvider,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._documents = documents
        self._tokens = tokens
        self._storage = storage
        self._clock = clock

    async def _resolve_issuer(self, source_token: str | None) -> str | None:
        if not source_token:
            return None
        try:
            record = await self._tokens.get_by_token(source_token)
        except PyMongoError as err:
            logger.warning("Could not resolve issuer of upload token %s: %s", mask_token(source_token), err)
            return None
        return record.issued_by if record is not None else None

    async def ingest(
        self,
        file: IncomingFile,
        *,
        claim_id: str,
        company_id: str,
        uploader: UploaderIdentity,
        source_token: str | None = None,
    ) -> IngestResult:
        rejection = check_file_size(file.file_name, file.size_bytes)
        if rejection is not None:
            raise file_too_large(
                file_name=file.file_name,
                size_bytes=file.size_bytes,
                limit_bytes=MAX_FILE_SIZE_BYTES,
                message=rejection,
            )

        stored = await self._storage.store(
            file,
            target=StorageTarget(claim_id=claim_id, company_id=company_id, uploader_name=uploader.display_name),
        )

        now = int(self._clock())
        if uploader.via_public_link:
            uploaded_by = await self._resolve_issuer(source_token)
            field_label = f"Uploaded by: {uploader.display_name}"
            metadata = {
                "uploader_name": uploader.display_name,
                "upload_date": datetime.fromtimestamp(now, tz=timezone.utc).isoformat(),
                "upload_source": PUBLIC_LINK_SOURCE,
                "upload_token_used": source_token,
            }
        else:
            uploaded_by = uploader.user_id
            field_label = None
            metadata = None

        record = DocumentCreate(
            claim_id=claim_id,
            company_id=company_id,
            file_name=stored.file_name,
            storage_path=stored.url,
            object_key=stored.object_key,
            backend=stored.backend.value,
            file_type=file_type_label(stored.file_name),
            content_type=file.content_type,
            size_bytes=file.size_bytes,
            uploaded_by=uploaded_by,
            uploader_name=uploader.display_name,
            uploaded_via_link=uploader.via_public_link,
            source_token=source_token if uploader.via_public_link else None,
            field_label=field_label,
            metadata=metadata,
            created_at=now,
        )

        try:
            document = await self._documents.create(record)
        except PyMongoError as err:
            logger.error(
                "Stored %s for claim %s but could not record it; orphaned object at %s: %s",
                file.file_name,
                claim_id,
                stored.url,
                err,
            )
            raise storage_error(
                "Could not save document record",
                details={"file_name": file.file_name, "storage_path": stored.url},
            ) from err

        logger.info(
            "Ingested %s (%d bytes) for claim %s via %s",
            stored.file_name,
            file.size_bytes,
            claim_id,
            stored.backend.value,
            extra={"company_id": company_id, "document_id": document.id},
        )
        return IngestResult(stored_url=stored.url, file_name=stored.file_name, document=document)
