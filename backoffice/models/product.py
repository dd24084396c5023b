"""Product model.

A product is identified by a store-assigned UUID (`id`) and by its business
key (`sku`), which is what CSV import reconciles against.

Price changes are audited: see backoffice.services.price_history.
"""

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.stores.postgres import Base


def generate_product_id() -> str:
    """Generate unique product ID."""
    return str(uuid4())


class Product(Base):
    """Catalog product."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("sale_price IS NULL OR sale_price >= 0", name="ck_products_sale_price_non_negative"),
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_product_id)

    # Business key
    sku: Mapped[str] = mapped_column(String(100), unique=True, index=True)

    # Descriptive
    name: Mapped[str] = mapped_column(String(255), index=True)
    slug: Mapped[str] = mapped_column(String(255), index=True)
    description: Mapped[str | None] = mapped_column(Text)
    reference: Mapped[str | None] = mapped_column(String(100))

    # Commercial
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False))
    sale_price: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False))

    # Inventory
    stock_quantity: Mapped[int] = mapped_column(default=0)

    # Classification
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), index=True)

    # Media: ordered list of absolute URLs
    images: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Open key -> value attributes
    specifications: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    # Flags
    is_featured: Mapped[bool] = mapped_column(default=False)
    is_active: Mapped[bool] = mapped_column(default=True, index=True)

    # SEO
    meta_title: Mapped[str | None] = mapped_column(String(60))
    meta_description: Mapped[str | None] = mapped_column(Text)
    meta_keywords: Mapped[str | None] = mapped_column(Text)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product {self.sku}>"
