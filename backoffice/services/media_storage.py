"""Product media in object storage (Supabase-storage compatible REST API).

Objects of a product live under the "<product_id>/" prefix of the bucket.
Only listing and removal are needed: uploads are done by the storefront UI.

If storage is not configured (STORAGE_URL empty) every call is a no-op, so
local environments and tests work without it.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
import logging
from typing import Any

import httpx

from backoffice.settings import get_settings

logger = logging.getLogger("uvicorn.error")


class MediaStorageError(RuntimeError):
    pass


class MediaStorage:
    """Thin async client for the object-storage API."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        *,
        page_size: int = 1000,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self.page_size = page_size
        self._service_key = service_key
        self._timeout = timeout
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._service_key}",
            "apikey": self._service_key,
        }

    @asynccontextmanager
    async def _http(self) -> AsyncGenerator[httpx.AsyncClient, None]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def list_objects(self, prefix: str, *, limit: int, offset: int = 0) -> list[str]:
        """Names of the objects directly under `prefix`."""
        payload: dict[str, Any] = {
            "prefix": prefix,
            "limit": limit,
            "offset": offset,
            "sortBy": {"column": "name", "order": "asc"},
        }
        async with self._http() as client:
            resp = await client.post(
                f"{self.base_url}/object/list/{self.bucket}",
                json=payload,
                headers=self._headers(),
            )
        if resp.status_code != 200:
            raise MediaStorageError(f"list {prefix!r} failed: {resp.status_code} {resp.text[:200]}")
        data = resp.json()
        if not isinstance(data, list):
            raise MediaStorageError(f"list {prefix!r}: unexpected response")
        return [str(item["name"]) for item in data if isinstance(item, dict) and item.get("name")]

    async def remove(self, paths: Sequence[str]) -> None:
        if not paths:
            return
        async with self._http() as client:
            resp = await client.request(
                "DELETE",
                f"{self.base_url}/object/{self.bucket}",
                json={"prefixes": list(paths)},
                headers=self._headers(),
            )
        if resp.status_code != 200:
            raise MediaStorageError(f"remove failed: {resp.status_code} {resp.text[:200]}")

    async def purge_prefix(self, prefix: str) -> int:
        """Remove every object under `prefix`, one listing page at a time.

        Removal shifts the listing, so each round lists from offset 0 again.
        Stops at the first error or at a short page. A page identical to the
        previous one means the delete was accepted but not applied, which also
        stops the loop. Returns objects removed.
        """
        if not self.enabled:
            logger.info(f"[media] storage not configured, skipping purge of {prefix}")
            return 0

        removed = 0
        previous: list[str] | None = None
        while True:
            try:
                names = await self.list_objects(prefix, limit=self.page_size)
                if not names or names == previous:
                    break
                await self.remove([f"{prefix}/{name}" for name in names])
            except (MediaStorageError, httpx.HTTPError) as e:
                logger.warning(f"[media] purge of {prefix} stopped: {e}")
                break
            removed += len(names)
            if len(names) < self.page_size:
                break
            previous = names
        return removed


def get_media_storage() -> MediaStorage:
    """Build the storage client from settings (FastAPI dependency)."""
    settings = get_settings()
    return MediaStorage(
        settings.storage_url,
        settings.storage_service_key,
        settings.storage_bucket,
        page_size=settings.storage_page_size,
    )
