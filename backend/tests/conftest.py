import os
from typing import AsyncIterator, Iterator

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from backend.hortus.config import Settings, StoreSettings
from backend.hortus.main import create_app
from backend.tests.fakes import InMemoryPlantStore


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    # Let anyio know we use asyncio
    return "asyncio"


@pytest.fixture(autouse=True)
def _override_test_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point the store at a test schema and make sure it is not the runtime one."""
    monkeypatch.setenv("HORTUS_DB_URL", os.getenv("TEST_HORTUS_DB_URL", "mysql://hortus:hortus@db:3306/hortus_test"))

    runtime_url = os.getenv("RUNTIME_HORTUS_DB_URL", "mysql://hortus:hortus@db:3306/hortus")
    test_url = os.getenv("HORTUS_DB_URL")
    assert test_url != runtime_url, (
        f"Tests are configured to use the runtime database '{runtime_url}'. "
        "Set TEST_HORTUS_DB_URL to a dedicated test schema (e.g. '.../hortus_test')."
    )
    assert test_url and test_url.rstrip("/").endswith("_test"), (
        "Test schema name must end with '_test' to avoid collisions (got: %r)" % test_url
    )
    yield


@pytest.fixture
def store() -> InMemoryPlantStore:
    return InMemoryPlantStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(store=StoreSettings(url=os.getenv("HORTUS_DB_URL")), retry_after=3)


@pytest.fixture
def app(store: InMemoryPlantStore, settings: Settings) -> FastAPI:
    """Application bound to a fresh in-memory store."""
    return create_app(store=store, settings=settings)


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """httpx AsyncClient bound to the ASGI app (lifespan is not run)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
