"""Catalog Schemas — categories and vendor products.

Invariants:
    - price and student_price strictly positive; student_price never above price
    - stock >= 0
    - Update models: every field optional; an empty update is rejected by the service
"""

from typing import Literal
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from awoof.schemas.base import CamelModel

ProductStatusLiteral = Literal["active", "inactive", "out_of_stock"]


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Category name is required")
        return v


class CategoryUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None


class ProductCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: float = Field(gt=0)
    student_price: float = Field(gt=0)
    category_id: UUID | None = None
    image_url: str | None = None
    api_id: str | None = None
    stock: int = Field(0, ge=0)
    status: ProductStatusLiteral = "active"

    @model_validator(mode="after")
    def check_discount(self):
        if self.student_price > self.price:
            raise ValueError("Student price cannot be higher than regular price")
        return self


class ProductUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    price: float | None = Field(None, gt=0)
    student_price: float | None = Field(None, gt=0)
    category_id: UUID | None = None
    image_url: str | None = None
    api_id: str | None = None
    stock: int | None = Field(None, ge=0)
    status: ProductStatusLiteral | None = None
