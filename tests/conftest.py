"""Shared fixtures: the ASGI test client wired to in-memory fakes."""

import pytest
from httpx import ASGITransport, AsyncClient

from backoffice.main import app
from backoffice.routes.deps import get_catalog_store
from backoffice.services.media_storage import get_media_storage
from tests.fakes import FakeCatalogStore, FakeMediaStorage


@pytest.fixture
def store() -> FakeCatalogStore:
    store = FakeCatalogStore()
    store.add_category(1, "Ferramentas")
    return store


@pytest.fixture
def media() -> FakeMediaStorage:
    return FakeMediaStorage()


@pytest.fixture
async def client(store: FakeCatalogStore, media: FakeMediaStorage):
    """Create test client."""
    app.dependency_overrides[get_catalog_store] = lambda: store
    app.dependency_overrides[get_media_storage] = lambda: media
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
