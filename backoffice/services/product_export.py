"""CSV product export."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

from backoffice.models import Product
from backoffice.services.csv_codec import serialize_csv
from backoffice.services.product_mapper import EXPORT_HEADER_ORDER, product_to_row

if TYPE_CHECKING:
    from backoffice.stores.catalog import CatalogStore

SUPPORTED_FORMATS = ("csv",)


def product_record(product: Product) -> dict[str, Any]:
    """Plain dict of the exported product columns."""
    return {
        "sku": product.sku,
        "name": product.name,
        "slug": product.slug,
        "description": product.description,
        "price": product.price,
        "sale_price": product.sale_price,
        "stock_quantity": product.stock_quantity,
        "category_id": product.category_id,
        "specifications": product.specifications,
        "is_featured": product.is_featured,
        "is_active": product.is_active,
        "meta_title": product.meta_title,
        "meta_description": product.meta_description,
        "meta_keywords": product.meta_keywords,
        "images": product.images,
    }


def export_filename(today: date | None = None) -> str:
    return f"produtos-{(today or date.today()).isoformat()}.csv"


async def export_products_csv(
    store: CatalogStore,
    *,
    is_active: bool | None = None,
    category_id: int | None = None,
) -> tuple[str, int]:
    """Render matching products as CSV.

    Returns:
        Tuple of (csv text, number of products). Zero products yields ("", 0).
    """
    products = await store.list_products_for_export(is_active=is_active, category_id=category_id)
    if not products:
        return "", 0

    rows = [product_to_row(product_record(product), category_name) for product, category_name in products]
    return serialize_csv(rows, EXPORT_HEADER_ORDER), len(rows)
