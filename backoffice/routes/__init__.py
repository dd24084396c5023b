"""API routes."""

from fastapi import APIRouter, Depends

from backoffice.routes import categories, dashboard, product_io, products
from backoffice.routes.deps import require_admin

api_router = APIRouter(dependencies=[Depends(require_admin)])

# CSV import/export and bulk actions (before /{product_id} routes)
api_router.include_router(product_io.router, prefix="/v1/admin/products", tags=["products"])

# Product CRUD, price history, variants, related products
api_router.include_router(products.router, prefix="/v1/admin/products", tags=["products"])

# Categories
api_router.include_router(categories.router, prefix="/v1/admin/categories", tags=["categories"])

# Dashboard metrics
api_router.include_router(dashboard.router, prefix="/v1/admin", tags=["dashboard"])
