"""Schemas for product variants and related products."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from backoffice.schemas.common import reject_explicit_nulls

RelationType = Literal["related", "accessory", "substitute", "upgrade"]


class VariantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    value: str = Field(min_length=1, max_length=100)
    price_modifier: float = 0
    stock_quantity: int = Field(default=0, ge=0)
    sku_suffix: str | None = Field(default=None, max_length=50)
    is_active: bool = True
    sort_order: int = 0


class VariantUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    value: str | None = Field(default=None, min_length=1, max_length=100)
    price_modifier: float | None = None
    stock_quantity: int | None = Field(default=None, ge=0)
    sku_suffix: str | None = Field(default=None, max_length=50)
    is_active: bool | None = None
    sort_order: int | None = None

    @model_validator(mode="after")
    def reject_nulls(self) -> "VariantUpdate":
        reject_explicit_nulls(
            self, ("name", "value", "price_modifier", "stock_quantity", "is_active", "sort_order")
        )
        return self


class VariantOut(BaseModel):
    id: str
    product_id: str
    name: str
    value: str
    price_modifier: float = 0
    stock_quantity: int = 0
    sku_suffix: str | None = None
    is_active: bool = True
    sort_order: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class RelatedProductCreate(BaseModel):
    related_product_id: UUID
    relation_type: RelationType = "related"
    sort_order: int = 0
