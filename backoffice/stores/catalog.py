"""Catalog repository over an AsyncSession.

One CatalogStore is built per request (see backoffice.routes.deps) and passed
explicitly into services, so tests can swap in an in-memory fake.

Mutations of a single record run inside a SAVEPOINT and are committed right
away: a failing record never poisons the surrounding session, which is what
lets batch operations continue row by row. Product updates always go through
the ORM unit of work so the price-history flush hook sees them.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
import logging
from typing import Any

from sqlalchemy import and_, delete, exists, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models import (
    CartItem,
    Category,
    Order,
    OrderItem,
    PriceHistory,
    Product,
    ProductVariant,
    Profile,
    RelatedProduct,
)
from backoffice.services.price_history import install_price_history_recorder

logger = logging.getLogger("uvicorn.error")

install_price_history_recorder()

# Columns accepted in "<column>.<asc|desc>" sort parameters
PRODUCT_SORT_COLUMNS = {"created_at", "updated_at", "name", "sku", "price", "stock_quantity"}
CATEGORY_SORT_COLUMNS = {"name", "slug", "created_at"}


class StoreError(RuntimeError):
    """A mutation was rejected by the database."""


class StoreConflictError(StoreError):
    """A mutation hit a unique constraint."""


# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


def _describe(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def _store_error(exc: SQLAlchemyError) -> StoreError:
    orig = getattr(exc, "orig", None)
    message = _describe(exc)
    if getattr(orig, "sqlstate", None) == UNIQUE_VIOLATION or "UNIQUE constraint failed" in message:
        return StoreConflictError(message)
    return StoreError(message)


def _order_by(model: Any, sort: str, allowed: set[str], default: str) -> Any:
    column, _, direction = (sort or default).partition(".")
    if column not in allowed:
        column, _, direction = default.partition(".")
    attr = getattr(model, column)
    return attr.asc().nulls_last() if direction == "asc" else attr.desc().nulls_last()


class CatalogStore:
    """Data access for the back-office catalog."""

    def __init__(self, session: AsyncSession, *, actor_id: str | None = None) -> None:
        self._session = session
        if actor_id:
            # Read by the price-history flush hook
            session.info["actor_id"] = actor_id

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def _persist(self, obj: Any, changes: dict[str, Any] | None = None) -> None:
        try:
            async with self._session.begin_nested():
                if changes:
                    for key, value in changes.items():
                        setattr(obj, key, value)
                self._session.add(obj)
                await self._session.flush()
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc
        await self._session.commit()
        await self._session.refresh(obj)

    async def _execute_returning(self, statement: Any) -> int:
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(statement)
                affected = len(result.all())
        except SQLAlchemyError as exc:
            raise _store_error(exc) from exc
        await self._session.commit()
        return affected

    # ============================================================
    # Products
    # ============================================================

    async def list_products(
        self,
        *,
        page: int = 1,
        page_size: int = 10,
        q: str | None = None,
        category_id: int | None = None,
        is_active: bool | None = None,
        sort: str = "created_at.desc",
    ) -> tuple[list[tuple[Product, Category]], int]:
        """Page through products joined with their category."""
        conditions = []
        if q:
            like = f"%{q}%"
            conditions.append(or_(Product.name.ilike(like), Product.sku.ilike(like)))
        if category_id is not None:
            conditions.append(Product.category_id == category_id)
        if is_active is not None:
            conditions.append(Product.is_active == is_active)

        query = select(Product, Category).join(Category, Category.id == Product.category_id)
        count_query = select(func.count(Product.id)).join(Category, Category.id == Product.category_id)
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        query = (
            query.order_by(_order_by(Product, sort, PRODUCT_SORT_COLUMNS, "created_at.desc"))
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self._session.execute(query)
        total = (await self._session.execute(count_query)).scalar() or 0
        return [(row[0], row[1]) for row in result.all()], total

    async def get_product(self, product_id: str) -> Product | None:
        return await self._session.get(Product, product_id)

    async def get_product_with_category(self, product_id: str) -> tuple[Product, Category | None] | None:
        result = await self._session.execute(
            select(Product, Category)
            .outerjoin(Category, Category.id == Product.category_id)
            .where(Product.id == product_id)
        )
        row = result.first()
        return (row[0], row[1]) if row else None

    async def find_product_by_sku(self, sku: str) -> Product | None:
        result = await self._session.execute(select(Product).where(Product.sku == sku))
        return result.scalar_one_or_none()

    async def list_skus(self) -> set[str]:
        result = await self._session.execute(select(Product.sku))
        return set(result.scalars().all())

    async def product_field_taken(self, field: str, value: str, *, exclude_id: str | None = None) -> bool:
        """True if another product already uses `value` for `field` (sku, slug or name)."""
        column = getattr(Product, field)
        clauses = [column == value]
        if exclude_id is not None:
            clauses.append(Product.id != exclude_id)
        return bool((await self._session.execute(select(exists().where(*clauses)))).scalar())

    async def create_product(self, data: dict[str, Any]) -> Product:
        product = Product(**data)
        await self._persist(product)
        return product

    async def update_product(self, product_id: str, changes: dict[str, Any]) -> Product | None:
        """Patch a product through the ORM (fires price-history recording)."""
        product = await self.get_product(product_id)
        if product is None:
            return None
        await self._persist(product, changes)
        return product

    async def set_products_active(self, ids: Sequence[str], is_active: bool) -> int:
        """Flip is_active for all ids in one statement. Returns rows affected."""
        statement = (
            update(Product)
            .where(Product.id.in_(list(ids)))
            .values(is_active=is_active)
            .returning(Product.id)
        )
        return await self._execute_returning(statement)

    async def delete_products(self, ids: Sequence[str]) -> int:
        statement = delete(Product).where(Product.id.in_(list(ids))).returning(Product.id)
        return await self._execute_returning(statement)

    async def products_in_order_items(self, ids: Sequence[str]) -> bool:
        query = select(OrderItem.product_id).where(OrderItem.product_id.in_(list(ids))).limit(1)
        return (await self._session.execute(query)).first() is not None

    async def products_in_cart_items(self, ids: Sequence[str]) -> bool:
        query = select(CartItem.product_id).where(CartItem.product_id.in_(list(ids))).limit(1)
        return (await self._session.execute(query)).first() is not None

    async def list_products_for_export(
        self,
        *,
        is_active: bool | None = None,
        category_id: int | None = None,
    ) -> list[tuple[Product, str]]:
        """All matching products, newest first, with their category name."""
        query = select(Product, Category.name).outerjoin(Category, Category.id == Product.category_id)
        if is_active is not None:
            query = query.where(Product.is_active == is_active)
        if category_id is not None:
            query = query.where(Product.category_id == category_id)
        query = query.order_by(Product.created_at.desc())
        result = await self._session.execute(query)
        return [(row[0], row[1] or "") for row in result.all()]

    # ============================================================
    # Categories
    # ============================================================

    async def list_categories(
        self,
        *,
        page: int = 1,
        page_size: int = 10,
        q: str | None = None,
        is_active: bool | None = None,
        sort: str = "name.asc",
    ) -> tuple[list[Category], int]:
        conditions = []
        if q:
            like = f"%{q}%"
            conditions.append(or_(Category.name.ilike(like), Category.description.ilike(like)))
        if is_active is not None:
            conditions.append(Category.is_active == is_active)

        query = select(Category)
        count_query = select(func.count(Category.id))
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        query = (
            query.order_by(_order_by(Category, sort, CATEGORY_SORT_COLUMNS, "name.asc"))
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        categories = list((await self._session.execute(query)).scalars().all())
        total = (await self._session.execute(count_query)).scalar() or 0
        return categories, total

    async def get_category(self, category_id: int) -> Category | None:
        return await self._session.get(Category, category_id)

    async def category_field_taken(self, field: str, value: str, *, exclude_id: int | None = None) -> bool:
        column = getattr(Category, field)
        clauses = [column == value]
        if exclude_id is not None:
            clauses.append(Category.id != exclude_id)
        return bool((await self._session.execute(select(exists().where(*clauses)))).scalar())

    async def create_category(self, data: dict[str, Any]) -> Category:
        category = Category(**data)
        await self._persist(category)
        return category

    async def update_category(self, category: Category, changes: dict[str, Any]) -> Category:
        await self._persist(category, changes)
        return category

    async def category_has_products(self, category_id: int) -> bool:
        query = select(Product.id).where(Product.category_id == category_id).limit(1)
        return (await self._session.execute(query)).first() is not None

    async def delete_category(self, category_id: int) -> int:
        return await self._execute_returning(
            delete(Category).where(Category.id == category_id).returning(Category.id)
        )

    # ============================================================
    # Variants
    # ============================================================

    async def list_variants(self, product_id: str) -> list[ProductVariant]:
        result = await self._session.execute(
            select(ProductVariant)
            .where(ProductVariant.product_id == product_id)
            .order_by(ProductVariant.sort_order.asc())
        )
        return list(result.scalars().all())

    async def get_variant(self, product_id: str, variant_id: str) -> ProductVariant | None:
        result = await self._session.execute(
            select(ProductVariant).where(
                ProductVariant.id == variant_id,
                ProductVariant.product_id == product_id,
            )
        )
        return result.scalar_one_or_none()

    async def variant_exists(
        self,
        product_id: str,
        name: str,
        value: str,
        *,
        exclude_id: str | None = None,
    ) -> bool:
        clauses = [
            ProductVariant.product_id == product_id,
            ProductVariant.name == name,
            ProductVariant.value == value,
        ]
        if exclude_id is not None:
            clauses.append(ProductVariant.id != exclude_id)
        return bool((await self._session.execute(select(exists().where(*clauses)))).scalar())

    async def create_variant(self, product_id: str, data: dict[str, Any]) -> ProductVariant:
        variant = ProductVariant(product_id=product_id, **data)
        await self._persist(variant)
        return variant

    async def update_variant(self, variant: ProductVariant, changes: dict[str, Any]) -> ProductVariant:
        await self._persist(variant, changes)
        return variant

    async def delete_variant(self, product_id: str, variant_id: str) -> int:
        return await self._execute_returning(
            delete(ProductVariant)
            .where(ProductVariant.id == variant_id, ProductVariant.product_id == product_id)
            .returning(ProductVariant.id)
        )

    # ============================================================
    # Related products
    # ============================================================

    async def list_related(self, product_id: str) -> list[tuple[RelatedProduct, Product, str]]:
        """Relations of a product whose target is active, with target and its category name."""
        result = await self._session.execute(
            select(RelatedProduct, Product, Category.name)
            .join(Product, Product.id == RelatedProduct.related_product_id)
            .outerjoin(Category, Category.id == Product.category_id)
            .where(RelatedProduct.product_id == product_id, Product.is_active.is_(True))
            .order_by(RelatedProduct.sort_order.asc())
        )
        return [(row[0], row[1], row[2] or "") for row in result.all()]

    async def get_relation(self, product_id: str, relation_id: str) -> RelatedProduct | None:
        result = await self._session.execute(
            select(RelatedProduct).where(
                RelatedProduct.id == relation_id,
                RelatedProduct.product_id == product_id,
            )
        )
        return result.scalar_one_or_none()

    async def relation_exists(self, product_id: str, related_product_id: str, relation_type: str) -> bool:
        clause = exists().where(
            RelatedProduct.product_id == product_id,
            RelatedProduct.related_product_id == related_product_id,
            RelatedProduct.relation_type == relation_type,
        )
        return bool((await self._session.execute(select(clause))).scalar())

    async def create_relation(self, product_id: str, data: dict[str, Any]) -> RelatedProduct:
        relation = RelatedProduct(
            product_id=product_id,
            created_by=self._session.info.get("actor_id"),
            **data,
        )
        await self._persist(relation)
        return relation

    async def delete_relation(self, relation_id: str) -> int:
        return await self._execute_returning(
            delete(RelatedProduct).where(RelatedProduct.id == relation_id).returning(RelatedProduct.id)
        )

    # ============================================================
    # Price history (read side)
    # ============================================================

    async def list_price_history(self, product_id: str, *, limit: int = 50) -> list[tuple[PriceHistory, Profile | None]]:
        result = await self._session.execute(
            select(PriceHistory, Profile)
            .outerjoin(Profile, Profile.id == PriceHistory.changed_by)
            .where(PriceHistory.product_id == product_id)
            .order_by(PriceHistory.changed_at.desc())
            .limit(limit)
        )
        return [(row[0], row[1]) for row in result.all()]

    # ============================================================
    # Dashboard reads
    # ============================================================

    async def count_orders_since(self, start: datetime) -> int:
        result = await self._session.execute(select(func.count(Order.id)).where(Order.created_at >= start))
        return result.scalar() or 0

    async def count_profiles(self) -> int:
        result = await self._session.execute(select(func.count(Profile.id)))
        return result.scalar() or 0

    async def sum_revenue(self, start: datetime, end: datetime | None, statuses: Iterable[str]) -> float:
        query = select(func.coalesce(func.sum(Order.total), 0)).where(
            Order.created_at >= start,
            Order.status.in_(list(statuses)),
        )
        if end is not None:
            query = query.where(Order.created_at < end)
        return float((await self._session.execute(query)).scalar() or 0)

    async def list_recent_orders(self, limit: int = 5) -> list[tuple[Order, Profile | None]]:
        result = await self._session.execute(
            select(Order, Profile)
            .outerjoin(Profile, Profile.id == Order.user_id)
            .order_by(Order.created_at.desc())
            .limit(limit)
        )
        return [(row[0], row[1]) for row in result.all()]
