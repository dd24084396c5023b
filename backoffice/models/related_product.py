"""Related product link (cross-sell / up-sell)."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.stores.postgres import Base

RELATION_TYPES = ("related", "accessory", "substitute", "upgrade")


class RelatedProduct(Base):
    """Directed relation product -> related_product of a given type."""

    __tablename__ = "related_products"
    __table_args__ = (
        UniqueConstraint("product_id", "related_product_id", "relation_type", name="uq_related_products_relation"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    product_id: Mapped[str] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
    )
    related_product_id: Mapped[str] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
    )
    relation_type: Mapped[str] = mapped_column(String(20), default="related")
    sort_order: Mapped[int] = mapped_column(default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    created_by: Mapped[str | None] = mapped_column(String(36))
