"""Dashboard metrics.

Five independent reads run concurrently, each on its own store/session
(a session cannot serve concurrent queries). The payload is only built when
all of them succeed: any failure fails the whole request, there is no partial
dashboard.

The computed payload is cached in Redis for a short TTL. If Redis is not
available the service still works but skips caching.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from redis.exceptions import RedisError

from backoffice.models.order import REVENUE_STATUSES
from backoffice.stores.redis import get_metrics_cache, set_metrics_cache

if TYPE_CHECKING:
    from backoffice.stores.catalog import CatalogStore

logger = logging.getLogger("uvicorn.error")

RECENT_ORDERS_LIMIT = 5

StoreOpener = Callable[[], AbstractAsyncContextManager["CatalogStore"]]
T = TypeVar("T")


def month_start(now: datetime, months_back: int = 0) -> datetime:
    """First instant of the month `months_back` months before `now`'s month."""
    month_index = now.year * 12 + (now.month - 1) - months_back
    year, month = divmod(month_index, 12)
    return datetime(year, month + 1, 1, tzinfo=now.tzinfo or timezone.utc)


def growth_percentage(current: float, previous: float) -> float:
    """Month-over-month revenue growth in percent."""
    if previous > 0:
        return (current - previous) / previous * 100
    if current > 0:
        return 100.0
    return 0.0


async def _read(open_store: StoreOpener, query: Callable[["CatalogStore"], Awaitable[T]]) -> T:
    async with open_store() as store:
        return await query(store)


async def _try_get_cached(period: str) -> dict[str, Any] | None:
    try:
        return await get_metrics_cache(period)
    except (RuntimeError, RedisError):
        # Redis may be unavailable in tests/local minimal env.
        return None


async def _try_set_cached(period: str, payload: dict[str, Any], ttl: int) -> None:
    try:
        await set_metrics_cache(period, payload, ttl)
    except (RuntimeError, RedisError):
        return


async def get_dashboard_metrics(
    open_store: StoreOpener,
    *,
    now: datetime | None = None,
    cache_ttl: int = 0,
) -> dict[str, Any]:
    """Build the dashboard payload.

    Args:
        open_store: Factory of store context managers, one per concurrent read.
        now: Reference time (defaults to current UTC time).
        cache_ttl: Seconds to cache the payload; 0 disables caching.

    Returns:
        {"metrics": {...}, "recentOrders": [...]}
    """
    now = now or datetime.now(timezone.utc)
    this_month = month_start(now)
    last_month = month_start(now, months_back=1)
    period = this_month.strftime("%Y-%m")

    if cache_ttl > 0:
        cached = await _try_get_cached(period)
        if cached is not None:
            logger.info(f"[metrics] loaded from cache period={period}")
            return cached

    total_orders, total_customers, current_revenue, last_month_revenue, recent = await asyncio.gather(
        _read(open_store, lambda s: s.count_orders_since(this_month)),
        _read(open_store, lambda s: s.count_profiles()),
        _read(open_store, lambda s: s.sum_revenue(this_month, None, REVENUE_STATUSES)),
        _read(open_store, lambda s: s.sum_revenue(last_month, this_month, REVENUE_STATUSES)),
        _read(open_store, lambda s: s.list_recent_orders(RECENT_ORDERS_LIMIT)),
    )

    payload = {
        "metrics": {
            "totalOrders": total_orders,
            "totalCustomers": total_customers,
            "currentRevenue": round(current_revenue, 2),
            "growthPercentage": f"{growth_percentage(current_revenue, last_month_revenue):.1f}",
        },
        "recentOrders": [
            {
                "id": order.id,
                "status": order.status,
                "total": order.total,
                "created_at": order.created_at.isoformat() if order.created_at else None,
                "customer": (
                    {"full_name": profile.full_name, "email": profile.email} if profile is not None else None
                ),
            }
            for order, profile in recent
        ],
    }

    if cache_ttl > 0:
        await _try_set_cached(period, payload, cache_ttl)
    return payload
