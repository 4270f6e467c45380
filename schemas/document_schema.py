from __future__ import annotations

from enum import Enum
from typing import Any

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, model_validator


class DocumentCreate(BaseModel):
    claim_id: str
    company_id: str
    file_name: str
    storage_path: str
    object_key: str | None = None
    backend: str
    file_type: str
    content_type: str
    size_bytes: int
    uploaded_by: str | None = None
    uploader_name: str
    uploaded_via_link: bool
    source_token: str | None = None
    field_label: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: int


class DocumentOut(DocumentCreate):
    id: str | None = Field(default=None, alias="_id")

    @model_validator(mode="before")
    @classmethod
    def convert_objectid(cls, values):
        if isinstance(values, dict) and isinstance(values.get("_id"), ObjectId):
            values = {**values, "_id": str(values["_id"])}
        return values

    model_config = ConfigDict(populate_by_name=True)


class UploaderIdentity(BaseModel):
    display_name: str
    user_id: str | None = None
    via_public_link: bool = False


class IngestResult(BaseModel):
    stored_url: str
    file_name: str
    document: DocumentOut


class FileUploadStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


class FileUploadOutcome(BaseModel):
    index: int
    file_name: str
    size_bytes: int
    status: FileUploadStatus = FileUploadStatus.PENDING
    url: str | None = None
    document_id: str | None = None
    error: str | None = None
    error_code: str | None = None


class BatchUploadResult(BaseModel):
    claim_id: str
    total: int
    succeeded: int
    failed: int
    all_succeeded: bool
    summary: str
    files: list[FileUploadOutcome]


class DownloadUrlOut(BaseModel):
    document_id: str
    url: str
    expires_in: int


class StorageUsageOut(BaseModel):
    company_id: str
    total_bytes: int
    document_count: int
    total_size: str
