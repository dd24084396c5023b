from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from backoffice.main import app
from backoffice.models import Order, Profile
from backoffice.routes.deps import get_store_opener
from backoffice.services import dashboard
from backoffice.services.dashboard import get_dashboard_metrics, growth_percentage, month_start
from tests.fakes import FakeCatalogStore

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _order(order_id: str, total: float, status: str, created_at: datetime) -> Order:
    return Order(id=order_id, order_number=order_id, status=status, total=total, created_at=created_at)


def _opener(store: FakeCatalogStore):
    opened: list[FakeCatalogStore] = []

    @asynccontextmanager
    async def open_store():
        opened.append(store)
        yield store

    return open_store, opened


@pytest.fixture
def store() -> FakeCatalogStore:
    store = FakeCatalogStore()
    store.profile_count = 7
    customer = Profile(id="u1", email="ana@loja.test", full_name="Ana")
    store.orders = [
        (_order("o1", 100.0, "paid", datetime(2026, 3, 2, tzinfo=timezone.utc)), customer),
        (_order("o2", 50.0, "delivered", datetime(2026, 3, 10, tzinfo=timezone.utc)), None),
        (_order("o3", 999.0, "pending", datetime(2026, 3, 11, tzinfo=timezone.utc)), None),
        (_order("o4", 100.0, "shipped", datetime(2026, 2, 20, tzinfo=timezone.utc)), customer),
    ]
    return store


def test_month_start_handles_year_boundary():
    assert month_start(datetime(2026, 1, 10, tzinfo=timezone.utc), months_back=1) == datetime(
        2025, 12, 1, tzinfo=timezone.utc
    )
    assert month_start(NOW) == datetime(2026, 3, 1, tzinfo=timezone.utc)


def test_growth_percentage():
    assert growth_percentage(150, 100) == 50
    assert growth_percentage(50, 0) == 100
    assert growth_percentage(0, 0) == 0
    assert growth_percentage(50, 100) == -50


@pytest.mark.asyncio
async def test_dashboard_metrics(store: FakeCatalogStore):
    open_store, opened = _opener(store)

    payload = await get_dashboard_metrics(open_store, now=NOW)

    assert payload["metrics"] == {
        "totalOrders": 3,
        "totalCustomers": 7,
        "currentRevenue": 150.0,
        "growthPercentage": "50.0",
    }
    assert [o["id"] for o in payload["recentOrders"]] == ["o3", "o2", "o1", "o4"]
    assert payload["recentOrders"][2]["customer"] == {"full_name": "Ana", "email": "ana@loja.test"}
    assert len(opened) == 5


@pytest.mark.asyncio
async def test_dashboard_fails_as_a_whole(store: FakeCatalogStore):
    async def broken(start):
        raise RuntimeError("db down")

    store.count_orders_since = broken
    open_store, _ = _opener(store)

    with pytest.raises(RuntimeError):
        await get_dashboard_metrics(open_store, now=NOW)


@pytest.mark.asyncio
async def test_dashboard_uses_cache_when_available(store: FakeCatalogStore, monkeypatch: pytest.MonkeyPatch):
    cached = {"metrics": {"totalOrders": 1}, "recentOrders": []}
    saved = {}

    async def fake_get(period):
        return cached if period in saved else None

    async def fake_set(period, payload, ttl):
        saved[period] = payload

    monkeypatch.setattr(dashboard, "get_metrics_cache", fake_get)
    monkeypatch.setattr(dashboard, "set_metrics_cache", fake_set)
    open_store, opened = _opener(store)

    first = await get_dashboard_metrics(open_store, now=NOW, cache_ttl=60)
    assert "2026-03" in saved
    assert first["metrics"]["totalOrders"] == 3

    second = await get_dashboard_metrics(open_store, now=NOW, cache_ttl=60)
    assert second is cached
    assert len(opened) == 5


@pytest.mark.asyncio
async def test_dashboard_works_without_redis(store: FakeCatalogStore):
    # Redis is never initialized in the test process
    open_store, _ = _opener(store)
    payload = await get_dashboard_metrics(open_store, now=NOW, cache_ttl=60)
    assert payload["metrics"]["totalCustomers"] == 7


@pytest.mark.asyncio
async def test_metrics_endpoint_failure_is_structured(client: AsyncClient, store: FakeCatalogStore):
    @asynccontextmanager
    async def failing_opener():
        raise RuntimeError("db down")
        yield store

    app.dependency_overrides[get_store_opener] = lambda: failing_opener
    response = await client.get("/v1/admin/metrics")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "METRICS_UNAVAILABLE"
