from __future__ import annotations

from typing import Any

from schemas.upload_token_schema import UploadTokenCreate, UploadTokenOut


class UploadTokenRepository:
    def __init__(self, db: Any) -> None:
        self._collection = db.upload_tokens
        self._indexes_ready = False

    async def _ensure_indexes(self) -> None:
        if self._indexes_ready:
            return
        await self._collection.create_index("token", name="idx_upload_token_unique", unique=True)
        await self._collection.create_index("claim_id", name="idx_upload_token_claim_id")
        self._indexes_ready = True

    async def create(self, payload: UploadTokenCreate) -> UploadTokenOut:
        await self._ensure_indexes()
        document = payload.model_dump(mode="json")
        result = await self._collection.insert_one(document)
        return UploadTokenOut(**{**document, "_id": result.inserted_id})

    async def get_by_token(self, token: str) -> UploadTokenOut | None:
        row = await self._collection.find_one({"token": token})
        if row is None:
            return None
        return UploadTokenOut(**row)
