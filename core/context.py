from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable

from fastapi import Request

from core.database import create_mongo_client, database_from_client
from core.rate_limit import PublicUploadRateLimiter
from core.settings import Settings
from core.storage import DocumentStorageProvider, build_storage_provider


@dataclass
class AppContext:
    """Collaborators shared by every request, built once per application."""

    settings: Settings
    database: Any
    storage: DocumentStorageProvider
    rate_limiter: PublicUploadRateLimiter
    clock: Callable[[], float] = field(default=time.time)
    mongo_client: Any | None = None

    async def close(self) -> None:
        if self.mongo_client is not None:
            await self.mongo_client.close()


def build_app_context(settings: Settings) -> AppContext:
    client = create_mongo_client(settings)
    return AppContext(
        settings=settings,
        database=database_from_client(client, settings),
        storage=build_storage_provider(settings),
        rate_limiter=PublicUploadRateLimiter.from_settings(settings),
        mongo_client=client,
    )


def get_app_context(request: Request) -> AppContext:
    return request.app.state.context
