"""
Pytest configuration and fixtures.

Provides reusable fixtures for FastAPI testing:
- settings: Settings pointing at an in-memory SQLite store and a tmp upload dir
- image_host: Fake image host that records uploads/deletes
- app / client: Application built by create_app, served through TestClient
- memory_client: Same app with the durable store "down" and fallback enabled
- admin_headers: Static admin key header for mutating routes
"""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.api.config import Settings
from apps.api.main import create_app
from db.session import ConnectivityMonitor, build_engine, build_session_factory, create_tables
from tests.helpers import ADMIN_SECRET, Clock, FakeImageHost, StaticMonitor

# =============================================================================
# Settings / App Fixtures
# =============================================================================


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir: Path) -> Settings:
    """Settings for an isolated app: in-memory SQLite, local blobs under tmp_path."""
    return Settings(
        database_url="sqlite+aiosqlite://",
        allow_memory_fallback=False,
        admin_api_key=ADMIN_SECRET,
        storage_backend="local",
        local_upload_path=str(upload_dir),
        max_file_size_mb=1,
        max_image_size_mb=1,
        log_level="WARNING",
    )


@pytest.fixture
def image_host() -> FakeImageHost:
    return FakeImageHost()


@pytest.fixture
def app(settings: Settings, image_host: FakeImageHost) -> FastAPI:
    return create_app(settings, image_host=image_host)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """TestClient with the lifespan running (durable mode)."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def memory_client(settings: Settings, image_host: FakeImageHost) -> Generator[TestClient, None, None]:
    """TestClient whose record stores serve from the in-memory fallback."""
    settings = settings.model_copy(update={"allow_memory_fallback": True})
    app = create_app(settings, image_host=image_host, monitor=StaticMonitor(connected=False))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(params=["durable", "memory"])
def any_client(request: pytest.FixtureRequest) -> TestClient:
    """Run a test once against each record store mode."""
    fixture = "client" if request.param == "durable" else "memory_client"
    return request.getfixturevalue(fixture)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Api-Key": ADMIN_SECRET}


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def sqlite_engine():
    """Fresh in-memory SQLite engine with tables created."""
    engine = build_engine("sqlite+aiosqlite://")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    return build_session_factory(sqlite_engine)


@pytest.fixture
async def monitor(sqlite_engine) -> AsyncGenerator[ConnectivityMonitor, None]:
    yield ConnectivityMonitor(sqlite_engine, probe_interval=0)


@pytest.fixture
def clock() -> Clock:
    return Clock()
