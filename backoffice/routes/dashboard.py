"""Dashboard endpoint."""

import logging

from fastapi import APIRouter, Depends

from backoffice.errors import AdminApiError
from backoffice.routes.deps import get_store_opener
from backoffice.services.dashboard import StoreOpener, get_dashboard_metrics
from backoffice.settings import get_settings

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


@router.get("/metrics")
async def dashboard_metrics(open_store: StoreOpener = Depends(get_store_opener)) -> dict:
    """Order/customer/revenue totals for the current month and the latest orders."""
    try:
        return await get_dashboard_metrics(open_store, cache_ttl=get_settings().metrics_cache_ttl)
    except Exception:
        logger.exception("[metrics] dashboard query failed")
        raise AdminApiError(500, "METRICS_UNAVAILABLE", "Failed to load dashboard metrics")
