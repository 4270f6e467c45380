from __future__ import annotations

import asyncio
from pathlib import Path
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from core.errors import transfer_failed
from core.storage.provider import DocumentStorageProvider
from core.storage.types import IncomingFile, StorageBackend, StorageTarget, StoredObject


class S3StorageProvider(DocumentStorageProvider):
    backend_name = StorageBackend.S3.value

    def __init__(
        self,
        *,
        bucket_name: str,
        region: str | None = None,
        endpoint_url: str | None = None,
        client=None,
    ) -> None:
        if client is None:
            client = boto3.client("s3", region_name=region, endpoint_url=endpoint_url)

        self._bucket = bucket_name
        self._client = client

    async def store(self, file: IncomingFile, *, target: StorageTarget) -> StoredObject:
        object_key = f"claims/{target.company_id}/{target.claim_id}/{uuid4().hex}{Path(file.file_name).suffix.lower()}"
        try:
            await asyncio.to_thread(
                self._client.upload_fileobj,
                file.stream,
                self._bucket,
                object_key,
                ExtraArgs={
                    "ContentType": file.content_type,
                    "Metadata": {"claim-id": target.claim_id, "company-id": target.company_id},
                },
            )
        except ClientError as err:
            message = err.response.get("Error", {}).get("Message")
            raise transfer_failed(file_name=file.file_name, diagnostic=message) from err
        except BotoCoreError as err:
            raise transfer_failed(file_name=file.file_name, diagnostic=str(err)) from err

        return StoredObject(
            url=f"s3://{self._bucket}/{object_key}",
            file_name=file.file_name,
            backend=StorageBackend.S3,
            object_key=object_key,
        )

    async def download_url(self, *, stored_url: str, object_key: str | None, expires_in: int = 3600) -> str:
        if object_key is None:
            return stored_url
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self._bucket, "Key": object_key},
            ExpiresIn=expires_in,
        )
