from __future__ import annotations

from enum import Enum

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.upload_limits import MAX_FILE_SIZE_BYTES, MAX_FILES_PER_BATCH, MAX_TOKEN_TTL


class TokenKind(str, Enum):
    SINGLE_FIELD = "single-field"
    BATCH = "batch"


class IssueUploadTokenRequest(BaseModel):
    kind: TokenKind = TokenKind.BATCH
    field_label: str | None = Field(default=None, max_length=200)
    ttl_hours: float | None = Field(
        default=None,
        ge=0,
        le=MAX_TOKEN_TTL.total_seconds() / 3600,
        description="Lifetime of the link; defaults to 7 days for single-field and 168 hours for batch links.",
    )


class UploadTokenCreate(BaseModel):
    token: str
    kind: TokenKind
    claim_id: str
    company_id: str
    field_label: str
    issued_by: str
    issued_at: int
    expires_at: int


class UploadTokenOut(UploadTokenCreate):
    id: str | None = Field(default=None, alias="_id")

    @model_validator(mode="before")
    @classmethod
    def convert_objectid(cls, values):
        if isinstance(values, dict) and isinstance(values.get("_id"), ObjectId):
            values = {**values, "_id": str(values["_id"])}
        return values

    model_config = ConfigDict(populate_by_name=True)

    def is_valid_at(self, now: int) -> bool:
        return now < self.expires_at


class IssuedUploadToken(BaseModel):
    token: str
    kind: TokenKind
    claim_id: str
    company_id: str
    field_label: str
    issued_at: int
    expires_at: int
    upload_url: str


class ScopeContext(BaseModel):
    claim_id: str
    company_id: str
    field_label: str
    kind: TokenKind
    expires_at: int


class PublicUploadSession(ScopeContext):
    max_files: int = MAX_FILES_PER_BATCH
    max_file_size_bytes: int = MAX_FILE_SIZE_BYTES
