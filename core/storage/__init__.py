from core.storage.factory import build_storage_provider
from core.storage.provider import DocumentStorageProvider
from core.storage.types import IncomingFile, StorageBackend, StorageTarget, StoredObject

__all__ = [
    "DocumentStorageProvider",
    "IncomingFile",
    "StorageBackend",
    "StorageTarget",
    "StoredObject",
    "build_storage_provider",
]
