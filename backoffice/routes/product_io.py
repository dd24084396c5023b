"""CSV import/export and bulk actions for products.

Import is two-step: POST validates and previews, PUT re-validates and
executes. Both reject the whole batch on any validation error; execution is
then best-effort per row (see services.product_import).
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from backoffice.errors import AdminApiError, bad_request
from backoffice.routes.deps import get_catalog_store
from backoffice.schemas import BulkActionRequest, ImportRequest
from backoffice.services.bulk_actions import ReferentialIntegrityError, run_bulk_action
from backoffice.services.media_storage import MediaStorage, get_media_storage
from backoffice.services.product_export import SUPPORTED_FORMATS, export_filename, export_products_csv
from backoffice.services.product_import import ImportPreview, prepare_import, reconcile_products
from backoffice.stores.catalog import CatalogStore

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


def _parse_bool_filter(value: str | None) -> bool | None:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _parse_int_filter(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


async def _validated_batch(store: CatalogStore, request: ImportRequest) -> ImportPreview:
    preview = await prepare_import(store, request.csv_data, overwrite=request.overwrite)
    if not preview.rows:
        raise bad_request("EMPTY_CSV", "CSV file is empty or invalid")
    if preview.errors:
        errors = [e.as_dict() for e in preview.errors]
        logger.info(f"[import] rejected rows={len(preview.rows)} errors={len(errors)}")
        raise AdminApiError(
            400,
            "CSV_VALIDATION_FAILED",
            "Validation errors found",
            {"validationErrors": errors},
            extra={"validationErrors": errors},
        )
    return preview


@router.post("/import")
async def validate_import(
    request: ImportRequest,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    """Validate a CSV batch and return the mapped records. Nothing is persisted."""
    preview = await _validated_batch(store, request)
    count = len(preview.records)
    return {
        "success": True,
        "preview": preview.records,
        "count": count,
        "message": f"{count} products ready to import",
    }


@router.put("/import")
async def execute_import(
    request: ImportRequest,
    store: CatalogStore = Depends(get_catalog_store),
) -> dict:
    """Re-validate, then create or update one product per row."""
    preview = await _validated_batch(store, request)
    logger.info(f"[import] start rows={len(preview.rows)} overwrite={request.overwrite}")
    result = await reconcile_products(store, preview.rows, overwrite=request.overwrite)
    logger.info(f"[import] {result.message}")
    return {"success": True, "results": result.as_dict(), "message": result.message}


@router.get("/export")
async def export_products(
    format: str = Query(default="csv"),
    is_active: str | None = Query(default=None),
    category_id: str | None = Query(default=None),
    store: CatalogStore = Depends(get_catalog_store),
) -> Response:
    """Download matching products as a CSV attachment."""
    if format not in SUPPORTED_FORMATS:
        raise bad_request("UNSUPPORTED_FORMAT", f"Unsupported format: {format}")

    csv_text, count = await export_products_csv(
        store,
        is_active=_parse_bool_filter(is_active),
        category_id=_parse_int_filter(category_id),
    )
    if count == 0:
        raise bad_request("NO_PRODUCTS_TO_EXPORT", "No products found to export")

    logger.info(f"[export] products={count}")
    return Response(
        content=csv_text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.post("/bulk")
async def bulk_action(
    request: BulkActionRequest,
    store: CatalogStore = Depends(get_catalog_store),
    media: MediaStorage = Depends(get_media_storage),
) -> dict:
    """Activate, deactivate or delete a list of products."""
    try:
        count = await run_bulk_action(store, request.action, request.id_strings(), media=media)
    except ReferentialIntegrityError as e:
        raise AdminApiError(409, e.reason, e.message)
    return {"success": True, "count": count, "action": request.action.value}
