"""Bulk product actions on an explicit id list: activate, deactivate, delete.

Delete is guarded: if any id is still referenced by an order line or a cart
line the whole batch is rejected before anything is touched. Guards are
independent predicates run in order, so new ones can be appended.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from backoffice.services.media_storage import MediaStorage
    from backoffice.stores.catalog import CatalogStore

logger = logging.getLogger("uvicorn.error")


class BulkAction(str, Enum):
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    DELETE = "delete"


class ReferentialIntegrityError(Exception):
    """Delete rejected because some product is still referenced."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message


@dataclass(frozen=True)
class DeleteGuard:
    """A named check that blocks deletion when `is_referenced` returns True."""

    reason: str
    message: str
    is_referenced: Callable[["CatalogStore", Sequence[str]], Awaitable[bool]]


async def _in_order_items(store: CatalogStore, ids: Sequence[str]) -> bool:
    return await store.products_in_order_items(ids)


async def _in_cart_items(store: CatalogStore, ids: Sequence[str]) -> bool:
    return await store.products_in_cart_items(ids)


ORDER_ITEMS_GUARD = DeleteGuard(
    reason="REFERENCED_BY_ORDERS",
    message="Some products cannot be deleted because they are used in orders",
    is_referenced=_in_order_items,
)
CART_ITEMS_GUARD = DeleteGuard(
    reason="REFERENCED_BY_CARTS",
    message="Some products cannot be deleted because they are in customer carts",
    is_referenced=_in_cart_items,
)
DEFAULT_DELETE_GUARDS: tuple[DeleteGuard, ...] = (ORDER_ITEMS_GUARD, CART_ITEMS_GUARD)


async def check_delete_guards(
    store: CatalogStore,
    ids: Sequence[str],
    guards: Sequence[DeleteGuard] = DEFAULT_DELETE_GUARDS,
) -> None:
    """Raise ReferentialIntegrityError at the first guard that trips."""
    for guard in guards:
        if await guard.is_referenced(store, ids):
            logger.info(f"[bulk] delete rejected ids={len(ids)} reason={guard.reason}")
            raise ReferentialIntegrityError(guard.reason, guard.message)


async def set_products_active(store: CatalogStore, ids: Sequence[str], *, active: bool) -> int:
    """Returns the number of products actually changed (unknown ids are ignored)."""
    count = await store.set_products_active(ids, active)
    logger.info(f"[bulk] is_active={active} requested={len(ids)} affected={count}")
    return count


async def delete_products(
    store: CatalogStore,
    ids: Sequence[str],
    *,
    media: MediaStorage | None = None,
    guards: Sequence[DeleteGuard] = DEFAULT_DELETE_GUARDS,
) -> int:
    """Delete products after the guards pass. Returns the number deleted.

    Media cleanup is best-effort: a storage failure never blocks the delete.
    """
    await check_delete_guards(store, ids, guards)

    if media is not None:
        for product_id in ids:
            try:
                await media.purge_prefix(product_id)
            except Exception:
                logger.exception(f"[bulk] media cleanup failed product={product_id}")

    count = await store.delete_products(ids)
    logger.info(f"[bulk] delete requested={len(ids)} deleted={count}")
    return count


async def run_bulk_action(
    store: CatalogStore,
    action: BulkAction,
    ids: Sequence[str],
    *,
    media: MediaStorage | None = None,
) -> int:
    if action is BulkAction.ACTIVATE:
        return await set_products_active(store, ids, active=True)
    if action is BulkAction.DEACTIVATE:
        return await set_products_active(store, ids, active=False)
    return await delete_products(store, ids, media=media)
