"""Schemas for product endpoints (/v1/admin/products)."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from backoffice.schemas.common import reject_explicit_nulls
from backoffice.services.bulk_actions import BulkAction


class ProductBase(BaseModel):
    """Fields shared by create and update.

    Price rules here are the single-record ones: zero is a valid price.
    """

    description: str | None = None
    reference: str | None = Field(default=None, max_length=100)
    sale_price: float | None = Field(default=None, ge=0)
    stock_quantity: int = Field(default=0, ge=0)
    category_id: int = Field(gt=0)
    images: list[str] = Field(default_factory=list)
    specifications: dict[str, Any] = Field(default_factory=dict)
    is_featured: bool = False
    is_active: bool = True
    meta_title: str | None = Field(default=None, max_length=60)
    meta_description: str | None = None
    meta_keywords: str | None = None


class ProductCreate(ProductBase):
    sku: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255)
    price: float = Field(ge=0)

    @field_validator("sku", "name", "slug")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ProductUpdate(BaseModel):
    """Partial update: only fields present in the body are applied."""

    sku: str | None = Field(default=None, min_length=1, max_length=100)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    reference: str | None = Field(default=None, max_length=100)
    price: float | None = Field(default=None, ge=0)
    sale_price: float | None = Field(default=None, ge=0)
    stock_quantity: int | None = Field(default=None, ge=0)
    category_id: int | None = Field(default=None, gt=0)
    images: list[str] | None = None
    specifications: dict[str, Any] | None = None
    is_featured: bool | None = None
    is_active: bool | None = None
    meta_title: str | None = Field(default=None, max_length=60)
    meta_description: str | None = None
    meta_keywords: str | None = None

    @model_validator(mode="after")
    def reject_nulls(self) -> "ProductUpdate":
        reject_explicit_nulls(
            self,
            (
                "sku",
                "name",
                "slug",
                "price",
                "stock_quantity",
                "category_id",
                "images",
                "specifications",
                "is_featured",
                "is_active",
            ),
        )
        return self


class CategorySummary(BaseModel):
    id: int
    name: str


class ProductOut(BaseModel):
    """Product as returned by the API."""

    id: str
    sku: str
    name: str
    slug: str
    description: str | None = None
    reference: str | None = None
    price: float
    sale_price: float | None = None
    stock_quantity: int = 0
    category_id: int
    images: list[str] = Field(default_factory=list)
    specifications: dict[str, Any] = Field(default_factory=dict)
    is_featured: bool = False
    is_active: bool = True
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    category: CategorySummary | None = None

    model_config = {"from_attributes": True}


class ImportRequest(BaseModel):
    """Body of the CSV validate / execute endpoints."""

    csv_data: str = Field(alias="csvData", min_length=1)
    overwrite: bool = False

    model_config = {"populate_by_name": True}


class BulkActionRequest(BaseModel):
    action: BulkAction
    ids: list[UUID] = Field(min_length=1)

    def id_strings(self) -> list[str]:
        # Order preserved, duplicates dropped
        return list(dict.fromkeys(str(i) for i in self.ids))
