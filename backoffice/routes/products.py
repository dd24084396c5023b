"""Product management endpoints: CRUD, price history, variants, related products."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from backoffice.errors import AdminApiError, bad_request, conflict, not_found
from backoffice.models import Category, Product, ProductVariant
from backoffice.routes.deps import get_catalog_store, store_error
from backoffice.schemas import (
    ProductCreate,
    ProductOut,
    ProductUpdate,
    RelatedProductCreate,
    VariantCreate,
    VariantOut,
    VariantUpdate,
)
from backoffice.services.bulk_actions import ReferentialIntegrityError, delete_products
from backoffice.services.media_storage import MediaStorage, get_media_storage
from backoffice.services.price_history import get_price_history
from backoffice.settings import get_settings
from backoffice.stores.catalog import CatalogStore, StoreError

router = APIRouter()
logger = logging.getLogger("uvicorn.error")

# Fields that must be unique across products on the single-record path
UNIQUE_PRODUCT_FIELDS = ("sku", "slug", "name")


def _product_out(product: Product, category: Category | None = None) -> dict[str, Any]:
    data = ProductOut.model_validate(product).model_dump(mode="json", exclude={"category"})
    data["category"] = {"id": category.id, "name": category.name} if category is not None else None
    return data


def _variant_out(variant: ProductVariant) -> dict[str, Any]:
    return VariantOut.model_validate(variant).model_dump(mode="json")


async def _require_product(store: CatalogStore, product_id: str) -> Product:
    product = await store.get_product(product_id)
    if product is None:
        raise not_found("Product not found")
    return product


async def _check_unique_fields(
    store: CatalogStore,
    values: dict[str, Any],
    *,
    exclude_id: str | None = None,
) -> None:
    for field in UNIQUE_PRODUCT_FIELDS:
        value = values.get(field)
        if value and await store.product_field_taken(field, value, exclude_id=exclude_id):
            raise conflict(f"A product with this {field} already exists", {"field": field})


async def _require_category(store: CatalogStore, category_id: int | None) -> None:
    if category_id is not None and await store.get_category(category_id) is None:
        raise bad_request("INVALID_REQUEST", "Category not found", {"field": "category_id"})


# ============================================================
# Products
# ============================================================


@router.get("")
async def list_products(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100, alias="pageSize"),
    q: str | None = Query(default=None),
    category_id: int | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    sort: str = Query(default="created_at.desc"),
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    rows, total = await store.list_products(
        page=page,
        page_size=page_size,
        q=q.strip() if q else None,
        category_id=category_id,
        is_active=is_active,
        sort=sort,
    )
    return {
        "data": [_product_out(product, category) for product, category in rows],
        "page": page,
        "pageSize": page_size,
        "total": total,
    }


@router.post("", status_code=201)
async def create_product(
    request: ProductCreate,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    """Create one product. Zero is an accepted price here."""
    data = request.model_dump()
    await _check_unique_fields(store, data)
    await _require_category(store, request.category_id)
    try:
        product = await store.create_product(data)
    except StoreError as e:
        raise store_error(e)
    logger.info(f"[products] created sku={product.sku}")
    return {"data": _product_out(product, await store.get_category(product.category_id))}


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    found = await store.get_product_with_category(product_id)
    if found is None:
        raise not_found("Product not found")
    return {"data": _product_out(*found)}


@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    request: ProductUpdate,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    """Partial update through the ORM path, so price changes are audited."""
    await _require_product(store, product_id)
    changes = request.model_dump(exclude_unset=True)
    await _check_unique_fields(store, changes, exclude_id=product_id)
    await _require_category(store, changes.get("category_id"))
    try:
        product = await store.update_product(product_id, changes)
    except StoreError as e:
        raise store_error(e)
    if product is None:
        raise not_found("Product not found")
    return {"data": _product_out(product, await store.get_category(product.category_id))}


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    store: CatalogStore = Depends(get_catalog_store),
    media: MediaStorage = Depends(get_media_storage),
) -> dict:
    await _require_product(store, product_id)
    try:
        await delete_products(store, [product_id], media=media)
    except ReferentialIntegrityError as e:
        raise AdminApiError(409, e.reason, e.message)
    return {"success": True}


@router.get("/{product_id}/price-history")
async def product_price_history(
    product_id: str,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    """Newest-first price changes of a product."""
    await _require_product(store, product_id)
    entries = await get_price_history(store, product_id, limit=get_settings().price_history_limit)
    return {"data": entries, "count": len(entries)}


# ============================================================
# Variants
# ============================================================


@router.get("/{product_id}/variants")
async def list_variants(
    product_id: str,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    await _require_product(store, product_id)
    variants = await store.list_variants(product_id)
    return {"data": [_variant_out(v) for v in variants]}


@router.post("/{product_id}/variants", status_code=201)
async def create_variant(
    product_id: str,
    request: VariantCreate,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    await _require_product(store, product_id)
    if await store.variant_exists(product_id, request.name, request.value):
        raise conflict("A variant with this name and value already exists")
    try:
        variant = await store.create_variant(product_id, request.model_dump())
    except StoreError as e:
        raise store_error(e)
    return {"data": _variant_out(variant)}


@router.get("/{product_id}/variants/{variant_id}")
async def get_variant(
    product_id: str,
    variant_id: str,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    variant = await store.get_variant(product_id, variant_id)
    if variant is None:
        raise not_found("Variant not found")
    return {"data": _variant_out(variant)}


@router.patch("/{product_id}/variants/{variant_id}")
async def update_variant(
    product_id: str,
    variant_id: str,
    request: VariantUpdate,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    variant = await store.get_variant(product_id, variant_id)
    if variant is None:
        raise not_found("Variant not found")

    changes = request.model_dump(exclude_unset=True)
    name = changes.get("name", variant.name)
    value = changes.get("value", variant.value)
    if ("name" in changes or "value" in changes) and await store.variant_exists(
        product_id, name, value, exclude_id=variant_id
    ):
        raise conflict("A variant with this name and value already exists")

    try:
        variant = await store.update_variant(variant, changes)
    except StoreError as e:
        raise store_error(e)
    return {"data": _variant_out(variant)}


@router.delete("/{product_id}/variants/{variant_id}")
async def delete_variant(
    product_id: str,
    variant_id: str,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    if not await store.delete_variant(product_id, variant_id):
        raise not_found("Variant not found")
    return {"success": True}


# ============================================================
# Related products
# ============================================================


@router.get("/{product_id}/related")
async def list_related(
    product_id: str,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    """Relations whose target product is active."""
    await _require_product(store, product_id)
    rows = await store.list_related(product_id)
    return {
        "data": [
            {
                "id": relation.id,
                "related_product_id": relation.related_product_id,
                "relation_type": relation.relation_type,
                "sort_order": relation.sort_order,
                "product": {
                    "id": target.id,
                    "sku": target.sku,
                    "name": target.name,
                    "slug": target.slug,
                    "price": target.price,
                    "sale_price": target.sale_price,
                    "images": target.images or [],
                    "category_name": category_name,
                },
            }
            for relation, target, category_name in rows
        ]
    }


@router.post("/{product_id}/related", status_code=201)
async def create_related(
    product_id: str,
    request: RelatedProductCreate,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    await _require_product(store, product_id)
    related_id = str(request.related_product_id)
    if related_id == product_id:
        raise bad_request("INVALID_REQUEST", "A product cannot be related to itself")

    target = await store.get_product(related_id)
    if target is None:
        raise bad_request("INVALID_REQUEST", "Related product not found")
    if not target.is_active:
        raise bad_request("INVALID_REQUEST", "Related product is not active")
    if await store.relation_exists(product_id, related_id, request.relation_type):
        raise conflict("This relation already exists")

    try:
        relation = await store.create_relation(
            product_id,
            {
                "related_product_id": related_id,
                "relation_type": request.relation_type,
                "sort_order": request.sort_order,
            },
        )
    except StoreError as e:
        raise store_error(e)
    return {
        "data": {
            "id": relation.id,
            "product_id": relation.product_id,
            "related_product_id": relation.related_product_id,
            "relation_type": relation.relation_type,
            "sort_order": relation.sort_order,
        }
    }


@router.delete("/{product_id}/related/{relation_id}")
async def delete_related(
    product_id: str,
    relation_id: str,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    if await store.get_relation(product_id, relation_id) is None:
        raise not_found("Relation not found")
    await store.delete_relation(relation_id)
    return {"success": True}
