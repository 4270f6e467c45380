from __future__ import annotations

from core.settings import Settings
from core.storage.http_provider import HttpUploadProvider
from core.storage.local_provider import LocalStorageProvider
from core.storage.provider import DocumentStorageProvider
from core.storage.s3_provider import S3StorageProvider


def build_storage_provider(settings: Settings) -> DocumentStorageProvider:
    if settings.storage_backend == "s3":
        if not settings.s3_bucket_name:
            raise RuntimeError("S3_BUCKET_NAME is required when STORAGE_BACKEND=s3")
        return S3StorageProvider(
            bucket_name=settings.s3_bucket_name,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
        )

    if settings.storage_backend == "local":
        return LocalStorageProvider(root_dir=settings.storage_local_root)

    if not settings.upload_service_url:
        raise RuntimeError("UPLOAD_SERVICE_URL is required when STORAGE_BACKEND=http")
    return HttpUploadProvider(
        base_url=settings.upload_service_url,
        timeout_seconds=settings.upload_service_timeout_seconds,
    )
