"""Verification Schemas — payloads for every student verification channel.

Invariants:
    - Phone numbers match core.phone.PHONE_PATTERN (E.164 style, optional +)
    - WhatsApp OTPs are exactly 6 characters
    - ndpr_consent is carried as given; the service rejects anything but True with a 400
"""

from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from awoof.core.phone import PHONE_PATTERN
from awoof.schemas.base import CamelModel

_PHONE_REGEX = PHONE_PATTERN.pattern


class InitiateVerificationRequest(CamelModel):
    university_id: UUID
    email: EmailStr | None = None
    registration_number: str | None = Field(None, max_length=100)
    phone_number: str | None = Field(None, pattern=_PHONE_REGEX)
    ndpr_consent: bool = False
    student_name: str | None = Field(None, min_length=2, max_length=255)

    @field_validator("registration_number")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        return v.strip() or None if v else None


class EmailVerificationRequest(CamelModel):
    email: EmailStr
    university_id: UUID

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class RegistrationVerificationRequest(CamelModel):
    university_id: UUID
    registration_number: str = Field(min_length=1, max_length=100)
    student_name: str = Field(min_length=2, max_length=255)
    student_email: EmailStr | None = None


class WhatsAppOtpRequest(CamelModel):
    phone_number: str = Field(pattern=_PHONE_REGEX)
    university_id: UUID


class WhatsAppVerifyRequest(CamelModel):
    phone_number: str = Field(pattern=_PHONE_REGEX)
    otp: str = Field(min_length=6, max_length=6)
    student_name: str | None = Field(None, max_length=255)


class WidgetTokenRequest(CamelModel):
    vendor_id: UUID
    product_id: UUID | None = None


class TokenCheckRequest(CamelModel):
    verification_token: str = Field(min_length=1)
