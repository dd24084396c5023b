"""Category management endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from backoffice.errors import AdminApiError, conflict, not_found
from backoffice.models import Category
from backoffice.routes.deps import get_catalog_store, store_error
from backoffice.schemas import CategoryCreate, CategoryOut, CategoryUpdate
from backoffice.stores.catalog import CatalogStore, StoreError

router = APIRouter()
logger = logging.getLogger("uvicorn.error")

UNIQUE_CATEGORY_FIELDS = ("name", "slug")


def _category_out(category: Category) -> dict[str, Any]:
    return CategoryOut.model_validate(category).model_dump(mode="json")


async def _check_unique_fields(
    store: CatalogStore,
    values: dict[str, Any],
    *,
    exclude_id: int | None = None,
) -> None:
    for field in UNIQUE_CATEGORY_FIELDS:
        value = values.get(field)
        if value and await store.category_field_taken(field, value, exclude_id=exclude_id):
            raise conflict(f"A category with this {field} already exists", {"field": field})


async def _require_category(store: CatalogStore, category_id: int) -> Category:
    category = await store.get_category(category_id)
    if category is None:
        raise not_found("Category not found")
    return category


@router.get("")
async def list_categories(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100, alias="pageSize"),
    q: str | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    sort: str = Query(default="name.asc"),
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    categories, total = await store.list_categories(
        page=page,
        page_size=page_size,
        q=q.strip() if q else None,
        is_active=is_active,
        sort=sort,
    )
    return {
        "data": [_category_out(c) for c in categories],
        "page": page,
        "pageSize": page_size,
        "total": total,
    }


@router.post("", status_code=201)
async def create_category(
    request: CategoryCreate,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    data = request.model_dump()
    await _check_unique_fields(store, data)
    try:
        category = await store.create_category(data)
    except StoreError as e:
        raise store_error(e)
    logger.info(f"[categories] created slug={category.slug}")
    return {"data": _category_out(category)}


@router.get("/{category_id}")
async def get_category(
    category_id: int,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    return {"data": _category_out(await _require_category(store, category_id))}


@router.patch("/{category_id}")
async def update_category(
    category_id: int,
    request: CategoryUpdate,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    category = await _require_category(store, category_id)
    changes = request.model_dump(exclude_unset=True)
    await _check_unique_fields(store, changes, exclude_id=category_id)
    try:
        category = await store.update_category(category, changes)
    except StoreError as e:
        raise store_error(e)
    return {"data": _category_out(category)}


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    """Delete an unused category. Categories with products are kept."""
    await _require_category(store, category_id)
    if await store.category_has_products(category_id):
        raise AdminApiError(409, "CATEGORY_IN_USE", "Category has products and cannot be deleted")
    await store.delete_category(category_id)
    logger.info(f"[categories] deleted id={category_id}")
    return {"success": True}
