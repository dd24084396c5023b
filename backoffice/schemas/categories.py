"""Schemas for category endpoints (/v1/admin/categories)."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from backoffice.schemas.common import reject_explicit_nulls


def _check_image_url(v: str | None) -> str | None:
    if v is None or v == "":
        return v
    if not v.startswith(("http://", "https://")):
        raise ValueError("image_url must be an absolute http(s) URL or empty")
    return v


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=200)
    description: str | None = None
    image_url: str | None = None
    is_active: bool = True

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str | None) -> str | None:
        return _check_image_url(v)


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    image_url: str | None = None
    is_active: bool | None = None

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str | None) -> str | None:
        return _check_image_url(v)

    @model_validator(mode="after")
    def reject_nulls(self) -> "CategoryUpdate":
        reject_explicit_nulls(self, ("name", "slug", "is_active"))
        return self


class CategoryOut(BaseModel):
    id: int
    name: str
    slug: str
    description: str | None = None
    image_url: str | None = None
    is_active: bool = True
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
