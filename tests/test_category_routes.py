import pytest
from httpx import AsyncClient

from tests.fakes import FakeCatalogStore


@pytest.mark.asyncio
async def test_create_and_list_categories(client: AsyncClient, store: FakeCatalogStore):
    response = await client.post(
        "/v1/admin/categories",
        json={"name": "Jardim", "slug": "jardim", "image_url": "https://cdn/jardim.png"},
    )
    assert response.status_code == 201
    assert response.json()["data"]["id"] == 2

    response = await client.get("/v1/admin/categories")
    body = response.json()
    assert body["total"] == 2
    assert {c["slug"] for c in body["data"]} == {"ferramentas", "jardim"}


@pytest.mark.asyncio
async def test_create_category_conflict(client: AsyncClient):
    response = await client.post("/v1/admin/categories", json={"name": "Ferramentas", "slug": "outra"})
    assert response.status_code == 409
    assert response.json()["error"]["detail"] == {"field": "name"}


@pytest.mark.asyncio
async def test_create_category_rejects_relative_image_url(client: AsyncClient):
    response = await client.post(
        "/v1/admin/categories",
        json={"name": "Jardim", "slug": "jardim", "image_url": "/img.png"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_category_in_use(client: AsyncClient, store: FakeCatalogStore):
    store.add_product(sku="A1", name="Martelo", slug="martelo", price=10, category_id=1)

    response = await client.delete("/v1/admin/categories/1")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CATEGORY_IN_USE"
    assert 1 in store.categories


@pytest.mark.asyncio
async def test_update_and_delete_category(client: AsyncClient, store: FakeCatalogStore):
    response = await client.patch("/v1/admin/categories/1", json={"description": "Manuais"})
    assert response.json()["data"]["description"] == "Manuais"

    response = await client.delete("/v1/admin/categories/1")
    assert response.status_code == 200
    assert store.categories == {}

    response = await client.get("/v1/admin/categories/1")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_patch_category_rejects_null_name(client: AsyncClient, store: FakeCatalogStore):
    response = await client.patch("/v1/admin/categories/1", json={"name": None})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REQUEST"
    assert store.categories[1].name == "Ferramentas"

    response = await client.patch("/v1/admin/categories/1", json={"description": None})
    assert response.status_code == 200
