"""Pydantic schemas for API request/response validation."""

from backoffice.schemas.categories import CategoryCreate, CategoryOut, CategoryUpdate
from backoffice.schemas.common import ErrorDetail, ErrorResponse
from backoffice.schemas.products import (
    BulkActionRequest,
    ImportRequest,
    ProductCreate,
    ProductOut,
    ProductUpdate,
)
from backoffice.schemas.variants import (
    RelatedProductCreate,
    VariantCreate,
    VariantOut,
    VariantUpdate,
)

__all__ = [
    "BulkActionRequest",
    "CategoryCreate",
    "CategoryOut",
    "CategoryUpdate",
    "ErrorDetail",
    "ErrorResponse",
    "ImportRequest",
    "ProductCreate",
    "ProductOut",
    "ProductUpdate",
    "RelatedProductCreate",
    "VariantCreate",
    "VariantOut",
    "VariantUpdate",
]
