"""Product variant model (e.g. name="Voltage", value="220V")."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.stores.postgres import Base


class ProductVariant(Base):
    """Variant of a product. (name, value) is unique per product."""

    __tablename__ = "product_variants"
    __table_args__ = (UniqueConstraint("product_id", "name", "value", name="uq_product_variants_name_value"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    product_id: Mapped[str] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100))
    value: Mapped[str] = mapped_column(String(100))
    price_modifier: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    stock_quantity: Mapped[int] = mapped_column(default=0)
    sku_suffix: Mapped[str | None] = mapped_column(String(50))
    is_active: Mapped[bool] = mapped_column(default=True)
    sort_order: Mapped[int] = mapped_column(default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
