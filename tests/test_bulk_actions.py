import pytest

from backoffice.services.bulk_actions import (
    CART_ITEMS_GUARD,
    BulkAction,
    DeleteGuard,
    ReferentialIntegrityError,
    check_delete_guards,
    delete_products,
    run_bulk_action,
)
from tests.fakes import FakeCatalogStore, FakeMediaStorage


def _store_with(n: int) -> tuple[FakeCatalogStore, list[str]]:
    store = FakeCatalogStore()
    ids = [store.add_product(sku=f"S{i}", name=f"P{i}", slug=f"p{i}", price=1).id for i in range(n)]
    return store, ids


@pytest.mark.asyncio
async def test_activate_and_deactivate_report_affected_count():
    store, ids = _store_with(2)

    count = await run_bulk_action(store, BulkAction.DEACTIVATE, [*ids, "00000000-0000-0000-0000-000000000000"])
    assert count == 2
    assert all(not p.is_active for p in store.products.values())

    count = await run_bulk_action(store, BulkAction.ACTIVATE, ids[:1])
    assert count == 1
    assert store.products[ids[0]].is_active


@pytest.mark.asyncio
async def test_delete_rejected_when_any_id_is_in_an_order():
    store, ids = _store_with(3)
    store.order_item_product_ids.add(ids[1])
    media = FakeMediaStorage()

    with pytest.raises(ReferentialIntegrityError) as exc_info:
        await delete_products(store, ids, media=media)

    assert exc_info.value.reason == "REFERENCED_BY_ORDERS"
    assert len(store.products) == 3
    assert media.purged == []
    assert ("delete_products", ids) not in store.calls


@pytest.mark.asyncio
async def test_delete_rejected_when_in_a_cart():
    store, ids = _store_with(1)
    store.cart_item_product_ids.add(ids[0])

    with pytest.raises(ReferentialIntegrityError) as exc_info:
        await delete_products(store, ids)
    assert exc_info.value.reason == "REFERENCED_BY_CARTS"


@pytest.mark.asyncio
async def test_delete_purges_media_best_effort():
    store, ids = _store_with(2)
    media = FakeMediaStorage(failing=[ids[0]])

    count = await delete_products(store, ids, media=media)

    assert count == 2
    assert media.purged == [ids[1]]
    assert store.products == {}


@pytest.mark.asyncio
async def test_guards_are_composable():
    store, ids = _store_with(1)

    async def always(store, ids):
        return True

    custom = DeleteGuard(reason="LOCKED", message="locked", is_referenced=always)

    await check_delete_guards(store, ids, [CART_ITEMS_GUARD])
    with pytest.raises(ReferentialIntegrityError) as exc_info:
        await check_delete_guards(store, ids, [CART_ITEMS_GUARD, custom])
    assert exc_info.value.reason == "LOCKED"
