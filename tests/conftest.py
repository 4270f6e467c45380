from __future__ import annotations

import pytest

from core.context import AppContext
from core.storage.local_provider import LocalStorageProvider
from fakes import FakeClock, FakeDatabase, make_rate_limiter, make_settings


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def local_storage(tmp_path) -> LocalStorageProvider:
    return LocalStorageProvider(root_dir=str(tmp_path / "uploads"))


@pytest.fixture
def app_context(fake_db: FakeDatabase, clock: FakeClock, local_storage: LocalStorageProvider, tmp_path) -> AppContext:
    return AppContext(
        settings=make_settings(storage_local_root=str(tmp_path / "uploads")),
        database=fake_db,
        storage=local_storage,
        rate_limiter=make_rate_limiter(),
        clock=clock,
    )
