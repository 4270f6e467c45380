from __future__ import annotations

from typing import Any


class ClaimRepository:
    def __init__(self, db: Any) -> None:
        self._collection = db.claims

    async def get_company_id(self, claim_id: str) -> str | None:
        row = await self._collection.find_one({"_id": claim_id}, {"company_id": 1})
        if row is None:
            return None
        return row.get("company_id") or None
