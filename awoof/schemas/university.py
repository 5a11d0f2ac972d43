"""University Schemas — admin create/update payloads.

Invariants:
    - name and domain at least 2 characters
    - email_domains accepted as a list or as a comma/JSON string; normalized by the service
"""

from typing import Literal

from pydantic import Field, field_validator

from awoof.schemas.base import CamelModel

SegmentLiteral = Literal["federal", "state", "private"]


class UniversityCreate(CamelModel):
    name: str = Field(min_length=2, max_length=255)
    domain: str = Field(min_length=2, max_length=255)
    email_domains: str | list[str] | None = None
    segment: SegmentLiteral | None = None
    country: str | None = Field(None, max_length=100)
    is_active: bool = True

    @field_validator("domain")
    @classmethod
    def lower_domain(cls, v: str) -> str:
        return v.strip().lower()


class UniversityUpdate(CamelModel):
    name: str | None = Field(None, min_length=2, max_length=255)
    domain: str | None = Field(None, min_length=2, max_length=255)
    email_domains: str | list[str] | None = None
    segment: SegmentLiteral | None = None
    country: str | None = Field(None, max_length=100)
    is_active: bool | None = None

    @field_validator("domain")
    @classmethod
    def lower_domain(cls, v: str | None) -> str | None:
        return v.strip().lower() if v else v


class VerificationMethodConfig(CamelModel):
    api_endpoint: str | None = None
    api_config: dict | None = None
    is_active: bool = True
    priority_order: int = Field(0, ge=0)
