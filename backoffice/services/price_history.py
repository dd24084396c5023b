"""Price-history audit trail.

Write side: a `before_flush` hook on every ORM session appends a PriceHistory
row whenever a persistent Product is flushed with a changed `price` or
`sale_price`. It plays the role of a database trigger, so it only fires for
changes made through the unit of work; core UPDATE statements bypass it.
Price changes must therefore go through CatalogStore.update_product.

Read side: the newest entries of one product, with the acting profile.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from backoffice.models import PriceHistory, Product

if TYPE_CHECKING:
    from backoffice.stores.catalog import CatalogStore

logger = logging.getLogger("uvicorn.error")

PRICE_FIELDS = ("price", "sale_price")


def _as_number(value: Any) -> float | None:
    return None if value is None else float(value)


def _price_change(product: Product, field: str) -> tuple[float | None, float | None, bool]:
    """Return (old, new, changed) for one price attribute of a loaded product."""
    history = inspect(product).attrs[field].history
    current = getattr(product, field)
    if not history.has_changes():
        value = _as_number(current)
        return value, value, False

    old = _as_number(history.deleted[0]) if history.deleted else None
    new = _as_number(history.added[0]) if history.added else _as_number(current)
    return old, new, old != new


def record_price_changes(session: Session, flush_context: Any, instances: Any) -> None:
    """before_flush hook: audit price changes of dirty products."""
    for obj in list(session.dirty):
        if not isinstance(obj, Product) or not session.is_modified(obj):
            continue

        old_price, new_price, price_changed = _price_change(obj, "price")
        old_sale, new_sale, sale_changed = _price_change(obj, "sale_price")
        if not (price_changed or sale_changed):
            continue

        session.add(
            PriceHistory(
                product_id=obj.id,
                old_price=old_price,
                new_price=new_price,
                old_sale_price=old_sale,
                new_sale_price=new_sale,
                changed_by=session.info.get("actor_id"),
                changed_at=datetime.now(timezone.utc),
            )
        )
        logger.info(
            f"[price-history] product={obj.id} price {old_price}->{new_price} "
            f"sale_price {old_sale}->{new_sale}"
        )


def install_price_history_recorder() -> None:
    """Register the flush hook on all ORM sessions (idempotent)."""
    if not event.contains(Session, "before_flush", record_price_changes):
        event.listen(Session, "before_flush", record_price_changes)


async def get_price_history(store: CatalogStore, product_id: str, *, limit: int = 50) -> list[dict[str, Any]]:
    """Newest-first price changes of a product, each with the actor profile when known."""
    entries = await store.list_price_history(product_id, limit=limit)
    return [
        {
            "id": entry.id,
            "product_id": entry.product_id,
            "old_price": entry.old_price,
            "new_price": entry.new_price,
            "old_sale_price": entry.old_sale_price,
            "new_sale_price": entry.new_sale_price,
            "changed_by": entry.changed_by,
            "changed_at": entry.changed_at.isoformat() if entry.changed_at else None,
            "profile": (
                {"full_name": profile.full_name, "email": profile.email} if profile is not None else None
            ),
        }
        for entry, profile in entries
    ]
