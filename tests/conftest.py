"""Shared pytest fixtures for gallery tests.

A single FastAPI app is created per test session to avoid duplicate
Prometheus metric registration (the instrumentator registers collectors in
the global prometheus_client registry).

Fresh in-memory stores are put on ``app.state`` before each test; the
lifespan does not run under ASGITransport.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from gallery.config import (
    GalleryConfig,
    MetadataConfig,
    ObservabilityConfig,
    ServerConfig,
    StorageConfig,
)
from gallery.metadata.memory import MemoryRecordStore
from gallery.server import create_app
from gallery.storage.memory import MemoryObjectStore


@pytest.fixture(scope="session")
def config() -> GalleryConfig:
    """Create a test GalleryConfig using in-memory stores."""
    return GalleryConfig(
        server=ServerConfig(host="127.0.0.1", port=3010),
        storage=StorageConfig(
            backend="memory", bucket="test-bucket", region="eu-west-1", upload_prefix="uploads/"
        ),
        metadata=MetadataConfig(engine="memory", table="test-uploads"),
        observability=ObservabilityConfig(metrics=True),
    )


@pytest.fixture(scope="session")
def app(config: GalleryConfig):
    """Create a single test FastAPI application for the whole session."""
    return create_app(config)


@pytest.fixture
def metadata() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def storage(config: GalleryConfig) -> MemoryObjectStore:
    return MemoryObjectStore(bucket_name=config.storage.bucket, region=config.storage.region)


@pytest.fixture
async def client(app, metadata, storage) -> AsyncClient:
    """Create an async test client with fresh in-memory stores."""
    await metadata.init_db()
    await storage.init()
    app.state.metadata = metadata
    app.state.storage = storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
