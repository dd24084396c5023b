import json

import httpx
import pytest

from backoffice.services.media_storage import MediaStorage, MediaStorageError


def _storage(handler, page_size: int = 2) -> MediaStorage:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MediaStorage(
        "https://storage.test/storage/v1/",
        "service-key",
        "products",
        page_size=page_size,
        client=client,
    )


def _bucket_handler(bucket: list[str], removed: list[list[str]], *, apply_removal: bool = True):
    """Mock storage API over an in-memory bucket listed by name."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer service-key"
        if request.method == "POST":
            assert request.url.path == "/storage/v1/object/list/products"
            body = json.loads(request.content)
            assert body["prefix"] == "p1"
            page = sorted(bucket)[body["offset"] : body["offset"] + body["limit"]]
            return httpx.Response(200, json=[{"name": name} for name in page])
        assert request.method == "DELETE"
        assert request.url.path == "/storage/v1/object/products"
        paths = json.loads(request.content)["prefixes"]
        removed.append(paths)
        if apply_removal:
            for path in paths:
                bucket.remove(path.split("/", 1)[1])
        return httpx.Response(200, json=[])

    return handler


@pytest.mark.asyncio
async def test_purge_removes_every_object_across_pages():
    bucket = ["a.jpg", "b.jpg", "c.jpg", "d.jpg", "e.jpg"]
    removed: list[list[str]] = []

    count = await _storage(_bucket_handler(bucket, removed)).purge_prefix("p1")

    assert count == 5
    assert bucket == []
    assert removed == [["p1/a.jpg", "p1/b.jpg"], ["p1/c.jpg", "p1/d.jpg"], ["p1/e.jpg"]]


@pytest.mark.asyncio
async def test_purge_stops_when_listing_does_not_shrink():
    bucket = ["a.jpg", "b.jpg", "c.jpg"]
    removed: list[list[str]] = []

    count = await _storage(_bucket_handler(bucket, removed, apply_removal=False)).purge_prefix("p1")

    assert removed == [["p1/a.jpg", "p1/b.jpg"]]
    assert count == 2
    assert len(bucket) == 3


@pytest.mark.asyncio
async def test_purge_stops_at_first_error():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(200, json=[{"name": "a.jpg"}, {"name": "b.jpg"}])
        return httpx.Response(500, text="boom")

    assert await _storage(handler).purge_prefix("p1") == 0


@pytest.mark.asyncio
async def test_purge_is_noop_when_not_configured():
    storage = MediaStorage("", "", "products")
    assert not storage.enabled
    assert await storage.purge_prefix("p1") == 0


@pytest.mark.asyncio
async def test_list_objects_raises_on_bad_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="forbidden")

    with pytest.raises(MediaStorageError):
        await _storage(handler).list_objects("p1", limit=10)
