import pytest

from backoffice.services.product_import import (
    ALREADY_EXISTS_MESSAGE,
    prepare_import,
    reconcile_products,
    strip_empty_fields,
)
from tests.fakes import FakeCatalogStore

HEADER = "SKU,Nome,Slug,Preço,ID Categoria,Estoque,Descrição"


def _csv(*lines: str) -> str:
    return "\n".join([HEADER, *lines])


def test_strip_empty_fields_keeps_falsey_values():
    assert strip_empty_fields({"a": "", "b": None, "c": 0, "d": False, "e": "x"}) == {
        "c": 0,
        "d": False,
        "e": "x",
    }


@pytest.mark.asyncio
async def test_prepare_import_rejects_existing_sku_without_overwrite():
    store = FakeCatalogStore()
    store.add_product(sku="A1", name="Serra", slug="serra", price=10)

    preview = await prepare_import(store, _csv("A1,Serra,serra,10,1,5,"), overwrite=False)
    assert not preview.is_valid
    assert [e.message for e in preview.errors] == ["SKU already exists"]
    assert preview.records == []


@pytest.mark.asyncio
async def test_prepare_import_allows_existing_sku_with_overwrite():
    store = FakeCatalogStore()
    store.add_product(sku="A1", name="Serra", slug="serra", price=10)

    preview = await prepare_import(store, _csv("A1,Serra,serra,12.5,1,5,"), overwrite=True)
    assert preview.is_valid
    assert preview.records[0]["price"] == 12.5


@pytest.mark.asyncio
async def test_prepare_import_empty_text_has_no_rows():
    preview = await prepare_import(FakeCatalogStore(), HEADER, overwrite=False)
    assert preview.rows == []
    assert not preview.is_valid


@pytest.mark.asyncio
async def test_partial_failure_does_not_stop_the_batch():
    store = FakeCatalogStore()
    store.add_product(sku="B2", name="Serra", slug="serra", price=10)
    store.fail_skus["B2"] = "update rejected"

    preview = await prepare_import(
        store,
        _csv("A1,Martelo,martelo,20,1,1,", "B2,Serra,serra,30,1,1,", "C3,Trena,trena,5,1,1,"),
        overwrite=True,
    )
    result = await reconcile_products(store, preview.rows, overwrite=True)

    assert result.created == 2
    assert result.updated == 0
    assert [(e.sku, e.error) for e in result.errors] == [("B2", "update rejected")]
    assert [call for call, _ in store.calls] == ["create_product", "update_product", "create_product"]
    assert result.message == "Import finished: 2 created, 0 updated, 1 errors"


@pytest.mark.asyncio
async def test_overwrite_gate():
    rows = [{"SKU": "A1", "Nome": "Serra", "Slug": "serra", "Preço": "15", "ID Categoria": "1"}]

    store = FakeCatalogStore()
    existing = store.add_product(sku="A1", name="Serra", slug="serra", price=10)

    result = await reconcile_products(store, rows, overwrite=False)
    assert result.updated == 0
    assert [(e.sku, e.error) for e in result.errors] == [("A1", ALREADY_EXISTS_MESSAGE)]
    assert existing.price == 10

    result = await reconcile_products(store, rows, overwrite=True)
    assert result.updated == 1
    assert result.errors == []
    assert existing.price == 15


@pytest.mark.asyncio
async def test_overwrite_update_is_a_partial_patch():
    store = FakeCatalogStore()
    existing = store.add_product(sku="A1", name="Serra", slug="serra", price=10, description="original")

    rows = [{"SKU": "A1", "Nome": "Serra nova", "Slug": "serra", "Preço": "10", "ID Categoria": "1", "Descrição": ""}]
    await reconcile_products(store, rows, overwrite=True)

    assert existing.name == "Serra nova"
    assert existing.description == "original"


@pytest.mark.asyncio
async def test_rows_without_sku_are_skipped():
    store = FakeCatalogStore()
    result = await reconcile_products(store, [{"SKU": "", "Nome": "x"}], overwrite=False)
    assert (result.created, result.updated, result.errors) == (0, 0, [])
    assert store.calls == []


@pytest.mark.asyncio
async def test_unexpected_error_becomes_row_error():
    class ExplodingStore(FakeCatalogStore):
        async def find_product_by_sku(self, sku):
            raise ValueError("boom")

    store = ExplodingStore()
    rows = [
        {"SKU": "A1", "Nome": "a", "Slug": "a", "Preço": "1", "ID Categoria": "1"},
        {"SKU": "B2", "Nome": "b", "Slug": "b", "Preço": "1", "ID Categoria": "1"},
    ]
    result = await reconcile_products(store, rows, overwrite=False)
    assert [(e.sku, e.error) for e in result.errors] == [("A1", "boom"), ("B2", "boom")]
    assert store.session.rollbacks == 2


@pytest.mark.asyncio
async def test_rows_after_an_unexpected_error_still_run_on_a_rolled_back_session():
    class FlakyStore(FakeCatalogStore):
        async def find_product_by_sku(self, sku):
            if sku == "A1":
                raise ValueError("boom")
            assert self.session.rollbacks == 1
            return await super().find_product_by_sku(sku)

    store = FlakyStore()
    rows = [
        {"SKU": "A1", "Nome": "a", "Slug": "a", "Preço": "1", "ID Categoria": "1"},
        {"SKU": "B2", "Nome": "b", "Slug": "b", "Preço": "1", "ID Categoria": "1"},
    ]
    result = await reconcile_products(store, rows, overwrite=False)
    assert result.created == 1
    assert [e.sku for e in result.errors] == ["A1"]
    assert await store.find_product_by_sku("B2") is not None
