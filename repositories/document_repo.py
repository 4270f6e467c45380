from __future__ import annotations

from typing import Any

from bson import ObjectId
from pymongo import DESCENDING

from schemas.document_schema import DocumentCreate, DocumentOut


class DocumentRepository:
    def __init__(self, db: Any) -> None:
        self._collection = db.claim_documents

    async def create(self, document: DocumentCreate) -> DocumentOut:
        payload = document.model_dump(mode="json")
        result = await self._collection.insert_one(payload)
        return DocumentOut(**{**payload, "_id": result.inserted_id})

    async def get_by_id(self, document_id: str) -> DocumentOut | None:
        if not ObjectId.is_valid(document_id):
            return None
        row = await self._collection.find_one({"_id": ObjectId(document_id)})
        if row is None:
            return None
        return DocumentOut(**row)

    async def list_for_claim(self, claim_id: str) -> list[DocumentOut]:
        cursor = self._collection.find({"claim_id": claim_id}).sort("created_at", DESCENDING)
        rows = await cursor.to_list(length=None)
        return [DocumentOut(**row) for row in rows]

    async def list_sizes_for_company(self, company_id: str) -> list[int]:
        cursor = self._collection.find({"company_id": company_id}, {"size_bytes": 1})
        rows = await cursor.to_list(length=None)
        return [int(row.get("size_bytes") or 0) for row in rows]
