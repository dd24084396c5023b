"""Row-level validation of a CSV product batch.

Every row is checked and every problem collected; nothing short-circuits.
Checks read the raw cell strings, not mapped values (the mapper substitutes
defaults silently, so it cannot be trusted to surface bad input).

Import is stricter than single-product creation on price: a zero price in a
bulk file is treated as a data-entry error.
"""

from collections.abc import Collection, Mapping, Sequence
from dataclasses import asdict, dataclass

from backoffice.services.product_mapper import CSV_HEADERS, get_cell, parse_number

# Line 1 is the header, so the first data row is line 2
FIRST_DATA_ROW = 2


@dataclass(frozen=True)
class RowValidationError:
    """One problem found in one CSV line."""

    row: int  # 1-based line number in the file
    field: str  # display label of the column
    value: str  # raw cell
    message: str

    def as_dict(self) -> dict[str, object]:
        return asdict(self)


def validate_product_rows(
    rows: Sequence[Mapping[str, str]],
    existing_skus: Collection[str] = (),
) -> list[RowValidationError]:
    """Validate a parsed batch.

    Args:
        rows: Parsed CSV rows (display labels or internal keys).
        existing_skus: SKUs that must be reported as already existing.
            Callers pass an empty collection in overwrite mode.

    Returns:
        All errors, in row order. Empty means the batch is valid.
    """
    errors: list[RowValidationError] = []
    skus_in_file: set[str] = set()
    existing = set(existing_skus)

    for index, row in enumerate(rows):
        row_number = index + FIRST_DATA_ROW

        def error(key: str, value: str, message: str) -> None:
            errors.append(RowValidationError(row_number, CSV_HEADERS[key], value, message))

        sku = get_cell(row, "sku")
        if not sku.strip():
            error("sku", sku, "SKU is required")
        elif sku in skus_in_file:
            error("sku", sku, "SKU is duplicated in the file")
        elif sku in existing:
            error("sku", sku, "SKU already exists")
        else:
            skus_in_file.add(sku)

        name = get_cell(row, "name")
        if not name.strip():
            error("name", name, "Name is required")

        # Slug uniqueness is not checked here (single-product creation does check it).
        slug = get_cell(row, "slug")
        if not slug.strip():
            error("slug", slug, "Slug is required")

        price = get_cell(row, "price")
        price_value = parse_number(price) if price.strip() else None
        if price_value is None or price_value <= 0:
            error("price", price, "Price must be greater than zero")

        # Optional columns: only a present, negative value is an error
        sale_price = get_cell(row, "sale_price")
        sale_value = parse_number(sale_price) if sale_price.strip() else None
        if sale_value is not None and sale_value < 0:
            error("sale_price", sale_price, "Sale price cannot be negative")

        stock = get_cell(row, "stock_quantity")
        stock_value = parse_number(stock) if stock.strip() else None
        if stock_value is not None and stock_value < 0:
            error("stock_quantity", stock, "Stock cannot be negative")

        category_id = get_cell(row, "category_id")
        category_value = parse_number(category_id) if category_id.strip() else None
        if category_value is None or category_value <= 0:
            error("category_id", category_id, "Category ID must be a valid positive number")

    return errors
