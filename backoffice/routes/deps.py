"""Shared route dependencies: admin access and per-request catalog store."""

from collections.abc import AsyncGenerator
import hmac

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.errors import AdminApiError, bad_request, conflict
from backoffice.settings import get_settings
from backoffice.stores.catalog import CatalogStore, StoreConflictError, StoreError
from backoffice.stores.postgres import get_db_session, open_catalog_store
from backoffice.services.dashboard import StoreOpener


async def require_admin(x_admin_key: str | None = Header(default=None)) -> None:
    """Reject requests without the configured admin key.

    An empty ADMIN_API_KEY disables the check (local development).
    """
    expected = get_settings().admin_api_key
    if not expected:
        return
    if not x_admin_key or not hmac.compare_digest(x_admin_key, expected):
        raise AdminApiError(401, "UNAUTHORIZED", "Missing or invalid admin key")


async def get_actor_id(x_actor_id: str | None = Header(default=None)) -> str | None:
    return x_actor_id or None


async def get_catalog_store(
    session: AsyncSession = Depends(get_db_session),
    actor_id: str | None = Depends(get_actor_id),
) -> AsyncGenerator[CatalogStore, None]:
    yield CatalogStore(session, actor_id=actor_id)


def get_store_opener() -> StoreOpener:
    """Factory of independent stores (one session each) for concurrent reads."""
    return open_catalog_store


def store_error(exc: StoreError) -> AdminApiError:
    """Map a rejected mutation: unique violations are conflicts, the rest bad input."""
    if isinstance(exc, StoreConflictError):
        return conflict(str(exc))
    return bad_request("INVALID_REQUEST", str(exc))
