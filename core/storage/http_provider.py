from __future__ import annotations

import logging

import httpx

from core.errors import transfer_failed
from core.storage.provider import DocumentStorageProvider
from core.storage.types import IncomingFile, StorageBackend, StorageTarget, StoredObject

logger = logging.getLogger(__name__)


class HttpUploadProvider(DocumentStorageProvider):
    """Content store reached through the document upload service.

    The service takes a multipart POST at ``/upload-doc`` with the fields
    ``file``, ``claimId``, ``uploaderName`` and ``companyId`` and answers with
    ``{"url" | "fileUrl": ..., "fileName": ...}``. Any non-2xx answer carries a
    plain-text diagnostic that is passed back to the caller untouched.
    """

    backend_name = StorageBackend.HTTP.value

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._upload_url = f"{base_url.rstrip('/')}/upload-doc"
        self._timeout = timeout_seconds
        self._transport = transport

    async def store(self, file: IncomingFile, *, target: StorageTarget) -> StoredObject:
        form = {
            "claimId": target.claim_id,
            "uploaderName": target.uploader_name,
            "companyId": target.company_id,
        }
        files = {"file": (file.file_name, file.stream, file.content_type)}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._upload_url, data=form, files=files)
        except httpx.HTTPError as err:
            logger.warning("Upload service request failed for %s: %s", file.file_name, err)
            raise transfer_failed(file_name=file.file_name, diagnostic=f"Upload service unreachable: {err}") from err

        if response.is_error:
            logger.warning(
                "Upload service rejected %s with status %s", file.file_name, response.status_code
            )
            raise transfer_failed(
                file_name=file.file_name,
                diagnostic=response.text,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as err:
            raise transfer_failed(
                file_name=file.file_name,
                diagnostic="Upload service returned invalid JSON",
                status_code=response.status_code,
            ) from err

        url = payload.get("url") or payload.get("fileUrl") if isinstance(payload, dict) else None
        if not url:
            raise transfer_failed(
                file_name=file.file_name,
                diagnostic="Upload service response did not include a file URL",
                status_code=response.status_code,
            )

        return StoredObject(
            url=url,
            file_name=payload.get("fileName") or file.file_name,
            backend=StorageBackend.HTTP,
        )

    async def download_url(self, *, stored_url: str, object_key: str | None, expires_in: int = 3600) -> str:
        return stored_url
