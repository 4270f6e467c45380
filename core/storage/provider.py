from __future__ import annotations

from typing import Protocol

from core.storage.types import IncomingFile, StorageTarget, StoredObject


class DocumentStorageProvider(Protocol):
    backend_name: str

    async def store(self, file: IncomingFile, *, target: StorageTarget) -> StoredObject:
        ...

    async def download_url(self, *, stored_url: str, object_key: str | None, expires_in: int = 3600) -> str:
        ...
