from __future__ import annotations

from typing import Any

from pymongo import AsyncMongoClient

from core.settings import Settings


def create_mongo_client(settings: Settings) -> AsyncMongoClient:
    return AsyncMongoClient(settings.mongo_url, serverSelectionTimeoutMS=2000, tz_aware=True)


def database_from_client(client: AsyncMongoClient, settings: Settings) -> Any:
    return client[settings.db_name]
