"""Product record <-> flat CSV row conversion.

Export always writes the Portuguese display labels (CSV_HEADERS values).
Import accepts, per field, either the display label or the internal key.

Conversion from a row is lenient: it never raises. Unparsable numbers become 0,
broken specification JSON becomes {}, non-http image entries are dropped.
Rejecting bad input is the job of backoffice.services.csv_validation, which
looks at the raw cells instead of the mapped values.
"""

from collections.abc import Mapping
import json
import re
from typing import Any

# Internal key -> display label, in export column order
CSV_HEADERS: dict[str, str] = {
    "sku": "SKU",
    "name": "Nome",
    "slug": "Slug",
    "description": "Descrição",
    "price": "Preço",
    "sale_price": "Preço Promocional",
    "stock_quantity": "Estoque",
    "category_id": "ID Categoria",
    "category_name": "Nome da Categoria",
    "specifications": "Especificações (JSON)",
    "is_featured": "Destaque",
    "is_active": "Ativo",
    "meta_title": "Título SEO",
    "meta_description": "Descrição SEO",
    "meta_keywords": "Palavras-chave SEO",
    "images": "Imagens (URLs separadas por vírgula)",
}

EXPORT_HEADER_ORDER: list[str] = list(CSV_HEADERS.values())

_TRUE_VALUES = {"true", "1", "sim"}

# Leading decimal number, same tolerance as a "parse the numeric prefix" reader:
# "12.5kg" -> 12.5, "abc" -> no match
_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def get_cell(row: Mapping[str, str], key: str, default: str = "") -> str:
    """Read a field by display label, falling back to the internal key.

    Empty cells fall through to the next candidate, then to `default`.
    """
    return row.get(CSV_HEADERS[key]) or row.get(key) or default


def parse_number(value: str) -> float | None:
    """Parse the leading decimal number of `value` ("." separator), None if there is none."""
    match = _NUMBER_RE.match(value or "")
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def parse_number_or_zero(value: str) -> float:
    number = parse_number(value)
    return 0.0 if number is None else number


def parse_boolean(value: str) -> bool:
    """"true", "1" and "sim" (any case) are true; anything else is false."""
    return (value or "").strip().lower() in _TRUE_VALUES


def parse_specifications(value: str) -> dict[str, Any]:
    if not (value or "").strip():
        return {}
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def parse_images(value: str) -> list[str]:
    return [url for url in (part.strip() for part in (value or "").split(",")) if url.startswith("http")]


def row_to_product(row: Mapping[str, str]) -> dict[str, Any]:
    """Convert one CSV row into a partial product record. Never raises.

    `sale_price` is None when its cell is empty. `category_name` is ignored.
    """
    sale_price_cell = get_cell(row, "sale_price")

    return {
        "sku": get_cell(row, "sku"),
        "name": get_cell(row, "name"),
        "slug": get_cell(row, "slug"),
        "description": get_cell(row, "description"),
        "price": parse_number_or_zero(get_cell(row, "price", "0")),
        "sale_price": parse_number_or_zero(sale_price_cell) if sale_price_cell else None,
        "stock_quantity": int(parse_number_or_zero(get_cell(row, "stock_quantity", "0"))),
        "category_id": int(parse_number_or_zero(get_cell(row, "category_id", "1"))),
        "specifications": parse_specifications(get_cell(row, "specifications", "{}")),
        "is_featured": parse_boolean(get_cell(row, "is_featured", "false")),
        "is_active": parse_boolean(get_cell(row, "is_active", "true")),
        "meta_title": get_cell(row, "meta_title"),
        "meta_description": get_cell(row, "meta_description"),
        "meta_keywords": get_cell(row, "meta_keywords"),
        "images": parse_images(get_cell(row, "images")),
    }


def product_to_row(product: Mapping[str, Any], category_name: str = "") -> dict[str, Any]:
    """Flatten a product record into a row keyed by display label."""
    values = {
        "sku": product.get("sku") or "",
        "name": product.get("name") or "",
        "slug": product.get("slug") or "",
        "description": product.get("description") or "",
        "price": product.get("price"),
        "sale_price": product.get("sale_price") or None,
        "stock_quantity": product.get("stock_quantity"),
        "category_id": product.get("category_id"),
        "category_name": category_name or "",
        "specifications": json.dumps(
            product.get("specifications") or {},
            ensure_ascii=False,
            separators=(",", ":"),
        ),
        "is_featured": bool(product.get("is_featured")),
        "is_active": bool(product.get("is_active")),
        "meta_title": product.get("meta_title") or "",
        "meta_description": product.get("meta_description") or "",
        "meta_keywords": product.get("meta_keywords") or "",
        "images": ", ".join(product.get("images") or []),
    }
    return {CSV_HEADERS[key]: value for key, value in values.items()}
