from __future__ import annotations

from typing import Any


class UserRepository:
    def __init__(self, db: Any) -> None:
        self._collection = db.users

    async def get_company_id(self, user_id: str) -> str | None:
        row = await self._collection.find_one({"_id": user_id}, {"company_id": 1})
        if row is None:
            return None
        return row.get("company_id") or None
