"""Tests for health endpoint and admin access."""

from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from backoffice.errors import AdminApiError
from backoffice.routes import deps


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health endpoint returns ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_admin_key_required_when_configured(client: AsyncClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(deps, "get_settings", lambda: SimpleNamespace(admin_api_key="s3cret"))

    response = await client.get("/v1/admin/products")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"

    response = await client.get("/v1/admin/products", headers={"X-Admin-Key": "s3cret"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_require_admin_open_without_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(deps, "get_settings", lambda: SimpleNamespace(admin_api_key=""))
    assert await deps.require_admin(x_admin_key=None) is None


@pytest.mark.asyncio
async def test_require_admin_rejects_wrong_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(deps, "get_settings", lambda: SimpleNamespace(admin_api_key="s3cret"))
    with pytest.raises(AdminApiError) as exc_info:
        await deps.require_admin(x_admin_key="nope")
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_invalid_body_uses_error_envelope(client: AsyncClient):
    response = await client.post("/v1/admin/products/import", json={"overwrite": True})
    assert response.status_code == 400
    body = response.json()
    assert body["error"]["code"] == "INVALID_REQUEST"
    assert body["error"]["detail"]["errors"]
