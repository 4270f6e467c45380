from __future__ import annotations

import asyncio
import re
from pathlib import Path
from urllib.parse import quote
from uuid import uuid4

from core.errors import transfer_failed
from core.storage.provider import DocumentStorageProvider
from core.storage.types import IncomingFile, StorageBackend, StorageTarget, StoredObject

_CHUNK_SIZE = 64 * 1024
_UNSAFE_SEGMENT = re.compile(r"[^a-zA-Z0-9._-]")


def _safe_segment(value: str) -> str:
    return _UNSAFE_SEGMENT.sub("_", value.replace("..", "_"))[:128] or "_"


class LocalStorageProvider(DocumentStorageProvider):
    backend_name = StorageBackend.LOCAL.value

    def __init__(self, root_dir: str) -> None:
        self._root = Path(root_dir)
        self._root.mkdir(parents=True, exist_ok=True)

    def _object_key(self, file: IncomingFile, target: StorageTarget) -> str:
        suffix = Path(file.file_name).suffix.lower()
        extension = _safe_segment(suffix)[:16] if suffix else ""
        return f"{_safe_segment(target.company_id)}/{_safe_segment(target.claim_id)}/{uuid4().hex}{extension}"

    def _path_for(self, object_key: str) -> Path:
        """Resolve a key to a path inside the storage root, or raise ValueError."""
        root = self._root.resolve()
        file_path = (root / object_key).resolve()
        if file_path == root or not file_path.is_relative_to(root):
            raise ValueError(f"Object key escapes the storage root: {object_key!r}")
        return file_path

    @staticmethod
    def _write(file_path: Path, file: IncomingFile) -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "wb") as handle:
            while chunk := file.stream.read(_CHUNK_SIZE):
                handle.write(chunk)

    async def store(self, file: IncomingFile, *, target: StorageTarget) -> StoredObject:
        object_key = self._object_key(file, target)
        try:
            await asyncio.to_thread(self._write, self._path_for(object_key), file)
        except OSError as err:
            raise transfer_failed(file_name=file.file_name, diagnostic=f"Local storage write failed: {err}") from err

        return StoredObject(
            url=f"/v1/documents/local/{quote(object_key)}",
            file_name=file.file_name,
            backend=StorageBackend.LOCAL,
            object_key=object_key,
        )

    async def download_url(self, *, stored_url: str, object_key: str | None, expires_in: int = 3600) -> str:
        if object_key is None:
            return stored_url
        return f"/v1/documents/local/{quote(object_key)}"

    async def read_bytes(self, *, object_key: str) -> bytes:
        return await asyncio.to_thread(self._path_for(object_key).read_bytes)
