"""Vendor Schemas — business profile and order status payloads.

Invariants:
    - businessWebsite is an http(s) URL or "" (cleared)
    - Order status limited to the transaction lifecycle values
"""

from typing import Literal

from pydantic import AnyHttpUrl, Field, TypeAdapter, ValidationError, field_validator

from awoof.schemas.base import CamelModel

_http_url = TypeAdapter(AnyHttpUrl)


def check_website(v: str | None) -> str | None:
    if v:
        try:
            _http_url.validate_python(v)
        except ValidationError:
            raise ValueError("Invalid URL") from None
    return v


class VendorProfileUpdate(CamelModel):
    company_name: str | None = Field(None, min_length=2, max_length=255)
    phone_number: str | None = Field(None, min_length=10, max_length=20)
    business_category: str | None = Field(None, min_length=1, max_length=100)
    business_website: str | None = None
    description: str | None = None

    @field_validator("business_website")
    @classmethod
    def website_is_url(cls, v: str | None) -> str | None:
        return check_website(v)


class CompleteRegistrationRequest(CamelModel):
    company_name: str = Field(min_length=2, max_length=255)
    phone_number: str = Field(min_length=10, max_length=20)
    business_category: str = Field(min_length=1, max_length=100)
    business_website: str | None = None
    description: str | None = None

    @field_validator("business_website")
    @classmethod
    def website_is_url(cls, v: str | None) -> str | None:
        return check_website(v)


class OrderStatusUpdate(CamelModel):
    status: Literal["pending", "completed", "failed", "refunded"]
