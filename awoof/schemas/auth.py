"""Auth Schemas — registration, login, token refresh and password recovery payloads.

Invariants:
    - Emails validated and lowercased at the boundary
    - Passwords: min 8 chars here; character-class rules enforced by core/password_policy
    - role limited to student|vendor (admins are provisioned by script)

Design Decisions:
    - Literal for role over str enum: Pydantic handles validation natively
    - field_validator for side-effect-free transforms (strip, lower) — keeps models pure
"""

from typing import Literal

from pydantic import EmailStr, Field, field_validator

from awoof.schemas.base import CamelModel


class _EmailMixin(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class RegisterRequest(_EmailMixin):
    password: str = Field(min_length=8, max_length=128)
    role: Literal["student", "vendor"]
    name: str = Field(min_length=2, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class LoginRequest(_EmailMixin):
    password: str = Field(min_length=1)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class ForgotPasswordRequest(_EmailMixin):
    pass


class VerifyResetOtpRequest(_EmailMixin):
    otp: str = Field(min_length=6, max_length=6, pattern=r"^\d{6}$")


class ResetPasswordRequest(CamelModel):
    reset_token: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)


class UpdatePasswordRequest(CamelModel):
    old_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)
