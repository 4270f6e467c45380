from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence

from core.errors import AppException, invalid_or_expired_upload_link, validation_failed
from core.logging import mask_token
from core.storage import IncomingFile
from core.upload_limits import MAX_FILES_PER_BATCH
from schemas.document_schema import (
    BatchUploadResult,
    FileUploadOutcome,
    FileUploadStatus,
    IngestResult,
    UploaderIdentity,
)
from security.claim_access_check import ClaimAccess
from services.document_ingest_service import DocumentIngestor
from services.upload_token_service import UploadTokenValidator

logger = logging.getLogger(__name__)

TransitionCallback = Callable[[FileUploadOutcome], None]


def summarize(succeeded: int, total: int) -> str:
    return f"{succeeded} of {total} uploaded"


class UploadOrchestrator:
    """Runs a batch of files through the ingestor one at a time.

    Each file moves pending -> uploading -> success | error exactly once. A
    failing file is recorded and the batch carries on with the next one.
    """

    def __init__(
        self,
        *,
        ingestor: DocumentIngestor,
        validator: UploadTokenValidator,
        max_files: int = MAX_FILES_PER_BATCH,
    ) -> None:
        self._ingestor = ingestor
        self._validator = validator
        self._max_files = max_files

    def check_selection(self, files: Sequence[IncomingFile]) -> None:
        if not files:
            raise validation_failed("Please select at least one file")
        if len(files) > self._max_files:
            raise validation_failed(
                f"Maximum {self._max_files} files allowed",
                details={"selected": len(files), "max_files": self._max_files},
            )

    async def _run(
        self,
        claim_id: str,
        files: Sequence[IncomingFile],
        ingest_one: Callable[[IncomingFile], Awaitable[tuple[str, str | None]]],
        on_transition: TransitionCallback | None,
    ) -> BatchUploadResult:
        outcomes = [
            FileUploadOutcome(index=index, file_name=file.file_name, size_bytes=file.size_bytes)
            for index, file in enumerate(files)
        ]

        def move(outcome: FileUploadOutcome, status: FileUploadStatus) -> None:
            outcome.status = status
            if on_transition is not None:
                on_transition(outcome.model_copy())

        for file, outcome in zip(files, outcomes):
            move(outcome, FileUploadStatus.UPLOADING)
            try:
                outcome.url, outcome.document_id = await ingest_one(file)
            except AppException as exc:
                outcome.error = exc.message
                outcome.error_code = exc.code
                logger.warning("Upload of %s for claim %s failed: %s", file.file_name, claim_id, exc.message)
                move(outcome, FileUploadStatus.ERROR)
                continue
            except Exception:
                outcome.error = "Upload failed"
                logger.exception("Unexpected failure uploading %s for claim %s", file.file_name, claim_id)
                move(outcome, FileUploadStatus.ERROR)
                continue
            move(outcome, FileUploadStatus.SUCCESS)

        succeeded = sum(1 for outcome in outcomes if outcome.status is FileUploadStatus.SUCCESS)
        total = len(outcomes)
        logger.info("Batch for claim %s finished: %s", claim_id, summarize(succeeded, total))
        return BatchUploadResult(
            claim_id=claim_id,
            total=total,
            succeeded=succeeded,
            failed=total - succeeded,
            all_succeeded=succeeded == total,
            summary=summarize(succeeded, total),
            files=outcomes,
        )

    async def run_public_batch(
        self,
        token: str,
        uploader_name: str,
        files: Sequence[IncomingFile],
        *,
        on_transition: TransitionCallback | None = None,
    ) -> BatchUploadResult:
        name = (uploader_name or "").strip()
        if not name:
            raise validation_failed("Please enter your name")
        self.check_selection(files)

        scope = await self._validator.validate(token)
        if scope is None:
            raise invalid_or_expired_upload_link()

        uploader = UploaderIdentity(display_name=name, via_public_link=True)

        async def ingest_one(file: IncomingFile) -> tuple[str, str | None]:
            # The link may expire part way through a batch.
            if await self._validator.validate(token) is None:
                raise invalid_or_expired_upload_link()
            result = await self._ingestor.ingest(
                file,
                claim_id=scope.claim_id,
                company_id=scope.company_id,
                uploader=uploader,
                source_token=token,
            )
            return result.stored_url, result.document.id

        logger.info("Public batch of %d file(s) started with token %s", len(files), mask_token(token))
        return await self._run(scope.claim_id, files, ingest_one, on_transition)

    async def run_member_batch(
        self,
        access: ClaimAccess,
        files: Sequence[IncomingFile],
        *,
        on_transition: TransitionCallback | None = None,
    ) -> BatchUploadResult:
        self.check_selection(files)
        uploader = UploaderIdentity(
            display_name=access.principal.display_name,
            user_id=access.principal.user_id,
        )

        async def ingest_one(file: IncomingFile) -> tuple[str, str | None]:
            result = await self._ingestor.ingest(
                file,
                claim_id=access.claim_id,
                company_id=access.company_id,
                uploader=uploader,
            )
            return result.stored_url, result.document.id

        return await self._run(access.claim_id, files, ingest_one, on_transition)

    async def run_public_file(self, token: str, uploader_name: str, file: IncomingFile) -> IngestResult:
        """Ingest one file through an upload link; failures surface to the caller."""
        name = (uploader_name or "").strip()
        if not name:
            raise validation_failed("Please enter your name")

        scope = await self._validator.validate(token)
        if scope is None:
            raise invalid_or_expired_upload_link()

        return await self._ingestor.ingest(
            file,
            claim_id=scope.claim_id,
            company_id=scope.company_id,
            uploader=UploaderIdentity(display_name=name, via_public_link=True),
            source_token=token,
        )
