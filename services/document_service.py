from __future__ import annotations

from core.errors import auth_permission_denied, resource_not_found
from core.storage import DocumentStorageProvider
from core.upload_limits import DOWNLOAD_URL_TTL_SECONDS, format_file_size
from repositories.document_repo import DocumentRepository
from schemas.document_schema import DocumentOut, DownloadUrlOut, StorageUsageOut


class DocumentService:
    def __init__(self, *, documents: DocumentRepository, storage: DocumentStorageProvider) -> None:
        self._documents = documents
        self._storage = storage

    async def list_claim_documents(self, claim_id: str) -> list[DocumentOut]:
        return await self._documents.list_for_claim(claim_id)

    async def download_url(self, document_id: str, *, company_id: str) -> DownloadUrlOut:
        document = await self._documents.get_by_id(document_id)
        if document is None:
            raise resource_not_found("Document", document_id)
        if document.company_id != company_id:
            raise auth_permission_denied("Document", document_id)

        url = await self._storage.download_url(
            stored_url=document.storage_path,
            object_key=document.object_key,
            expires_in=DOWNLOAD_URL_TTL_SECONDS,
        )
        return DownloadUrlOut(document_id=document_id, url=url, expires_in=DOWNLOAD_URL_TTL_SECONDS)

    async def storage_usage(self, company_id: str) -> StorageUsageOut:
        sizes = await self._documents.list_sizes_for_company(company_id)
        total_bytes = sum(sizes)
        return StorageUsageOut(
            company_id=company_id,
            total_bytes=total_bytes,
            document_count=len(sizes),
            total_size=format_file_size(total_bytes),
        )
