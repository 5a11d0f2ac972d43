"""Payment Schemas — vendor payment settings and transaction reporting.

Invariants:
    - Reported amounts are in kobo and strictly positive
    - payment_method limited to awoof|vendor_website
"""

from typing import Literal
from uuid import UUID

from pydantic import Field

from awoof.schemas.base import CamelModel


class PayoutSettingsUpdate(CamelModel):
    bank_name: str | None = Field(None, min_length=1)
    account_number: str | None = Field(None, min_length=10)
    account_name: str | None = Field(None, min_length=1)
    bank_code: str | None = None


class PaymentMethodUpdate(CamelModel):
    payment_method: Literal["awoof", "vendor_website"]


class PaystackSubaccountUpdate(CamelModel):
    paystack_subaccount_code: str = Field(min_length=1, max_length=100)


class ReportTransactionRequest(CamelModel):
    verification_token: str = Field(min_length=1)
    payment_reference: str = Field(min_length=1, max_length=255)
    amount: float = Field(gt=0)
    product_id: UUID
    payment_gateway: str = Field(min_length=1, max_length=50)
