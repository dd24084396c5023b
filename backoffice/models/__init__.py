"""SQLAlchemy ORM models.

Models represent database tables:
- categories: product categories
- products: catalog products (business key: sku)
- product_variants / related_products: per-product extras
- price_history: append-only audit of price changes
- profiles / orders / order_items / cart_items: read by dashboard and delete guards
"""

from backoffice.models.category import Category
from backoffice.models.order import CartItem, Order, OrderItem
from backoffice.models.price_history import PriceHistory
from backoffice.models.product import Product
from backoffice.models.profile import Profile
from backoffice.models.related_product import RelatedProduct
from backoffice.models.variant import ProductVariant

__all__ = [
    "Category",
    "CartItem",
    "Order",
    "OrderItem",
    "PriceHistory",
    "Product",
    "ProductVariant",
    "Profile",
    "RelatedProduct",
]
