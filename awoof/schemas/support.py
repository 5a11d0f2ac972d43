"""Support Schemas — ticket creation and replies for both help desks."""

from typing import Literal

from pydantic import Field, field_validator

from awoof.schemas.base import CamelModel

StudentCategoryLiteral = Literal["general", "technical", "billing", "account"]
VendorCategoryLiteral = Literal[
    "general", "technical", "billing", "account", "integration", "product",
]


class _TicketBody(CamelModel):
    subject: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)

    @field_validator("subject", "message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class StudentTicketCreate(_TicketBody):
    category: StudentCategoryLiteral = "general"


class VendorTicketCreate(_TicketBody):
    category: VendorCategoryLiteral = "general"


class TicketReply(CamelModel):
    message: str = Field(min_length=1)

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v
