"""PriceHistory model.

Append-only audit trail of price / sale_price changes. Rows are written by the
flush hook in backoffice.services.price_history, never by request handlers.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.stores.postgres import Base


class PriceHistory(Base):
    """One recorded price change."""

    __tablename__ = "price_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    product_id: Mapped[str] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
    )

    old_price: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False))
    new_price: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False))
    old_sale_price: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False))
    new_sale_price: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False))

    # Profile id of the actor, when known
    changed_by: Mapped[str | None] = mapped_column(ForeignKey("profiles.id", ondelete="SET NULL"))
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )
