"""CSV product import: validate, preview, reconcile.

Flow:
1. Parse CSV text into rows (csv_codec)
2. Validate every row and collect all errors (csv_validation); any error rejects the batch
3. Preview: mapped records, nothing persisted
4. Execute: per row, in file order, create or update by SKU

Execution is best-effort, not transactional: each row is its own store
mutation, a failing row is reported and the next row is attempted. Rows run
sequentially so error order matches file order and two rows can never race on
the same new SKU.

Updates go through CatalogStore.update_product (ORM path), so price changes
made by an import are recorded in price history like any other edit.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any

from backoffice.services.csv_codec import parse_csv
from backoffice.services.csv_validation import RowValidationError, validate_product_rows
from backoffice.services.product_mapper import row_to_product
from backoffice.stores.catalog import StoreError

if TYPE_CHECKING:
    from backoffice.stores.catalog import CatalogStore

logger = logging.getLogger("uvicorn.error")

ALREADY_EXISTS_MESSAGE = "Product already exists (use overwrite mode)"
UNKNOWN_SKU = "unknown"


@dataclass
class ImportRowError:
    sku: str
    error: str


@dataclass
class ImportResult:
    """Outcome of an import run. Always covers every row."""

    created: int = 0
    updated: int = 0
    errors: list[ImportRowError] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "created": self.created,
            "updated": self.updated,
            "errors": [{"sku": e.sku, "error": e.error} for e in self.errors],
        }

    @property
    def message(self) -> str:
        return (
            f"Import finished: {self.created} created, {self.updated} updated, "
            f"{len(self.errors)} errors"
        )


@dataclass
class ImportPreview:
    rows: list[dict[str, str]]
    errors: list[RowValidationError]
    records: list[dict[str, Any]]

    @property
    def is_valid(self) -> bool:
        return bool(self.rows) and not self.errors


def strip_empty_fields(record: Mapping[str, Any]) -> dict[str, Any]:
    """Drop None / "" values so an update only touches fields present in the file."""
    return {key: value for key, value in record.items() if value is not None and value != ""}


async def prepare_import(store: CatalogStore, csv_text: str, *, overwrite: bool) -> ImportPreview:
    """Parse and validate a CSV batch against the current catalog.

    In overwrite mode existing SKUs are allowed (they become updates).
    An empty `rows` list means the text held no data row.
    """
    rows = parse_csv(csv_text)
    if not rows:
        return ImportPreview(rows=[], errors=[], records=[])

    existing_skus: set[str] = set() if overwrite else await store.list_skus()
    errors = validate_product_rows(rows, existing_skus)
    records = [] if errors else [row_to_product(row) for row in rows]
    return ImportPreview(rows=rows, errors=errors, records=records)


async def reconcile_products(
    store: CatalogStore,
    rows: Sequence[Mapping[str, str]],
    *,
    overwrite: bool,
) -> ImportResult:
    """Create or update one product per row; collect per-row failures.

    Args:
        store: Catalog store (each mutation is committed on its own).
        rows: Parsed, already validated CSV rows.
        overwrite: Update products whose SKU exists instead of reporting them.

    Returns:
        Counts of created/updated rows and the ordered list of row errors.
    """
    result = ImportResult()

    for row in rows:
        record = row_to_product(row)
        sku = record.get("sku") or ""
        try:
            if not sku:
                continue

            existing = await store.find_product_by_sku(sku)
            if existing is not None and not overwrite:
                result.errors.append(ImportRowError(sku=sku, error=ALREADY_EXISTS_MESSAGE))
                continue

            if existing is not None:
                try:
                    await store.update_product(existing.id, strip_empty_fields(record))
                except StoreError as e:
                    logger.warning(f"[import] update failed sku={sku}: {e}")
                    result.errors.append(ImportRowError(sku=sku, error=str(e)))
                    continue
                result.updated += 1
            else:
                try:
                    await store.create_product(record)
                except StoreError as e:
                    logger.warning(f"[import] create failed sku={sku}: {e}")
                    result.errors.append(ImportRowError(sku=sku, error=str(e)))
                    continue
                result.created += 1
        except Exception as e:
            logger.exception(f"[import] unexpected error sku={sku or UNKNOWN_SKU}")
            # The session may be left mid-transaction; later rows need a clean one.
            await store.session.rollback()
            result.errors.append(ImportRowError(sku=sku or UNKNOWN_SKU, error=str(e) or "Unknown error"))

    return result
