from __future__ import annotations

import io
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO


class StorageBackend(str, Enum):
    HTTP = "http"
    LOCAL = "local"
    S3 = "s3"


@dataclass(frozen=True)
class IncomingFile:
    file_name: str
    content_type: str
    size_bytes: int
    stream: BinaryIO

    @classmethod
    def from_bytes(cls, file_name: str, payload: bytes, content_type: str = "application/octet-stream") -> "IncomingFile":
        return cls(file_name=file_name, content_type=content_type, size_bytes=len(payload), stream=io.BytesIO(payload))


@dataclass(frozen=True)
class StorageTarget:
    claim_id: str
    company_id: str
    uploader_name: str


@dataclass(frozen=True)
class StoredObject:
    url: str
    file_name: str
    backend: StorageBackend
    object_key: str | None = None
