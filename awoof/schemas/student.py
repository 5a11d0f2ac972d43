"""Student Schemas — profile, visit tracking and notification management."""

from uuid import UUID

from pydantic import Field, field_validator

from awoof.core.phone import PHONE_PATTERN
from awoof.schemas.base import CamelModel
from awoof.schemas.vendor import check_website


class StudentProfileUpdate(CamelModel):
    name: str | None = Field(None, min_length=2, max_length=255)
    university: str | None = Field(None, min_length=1, max_length=255)
    registration_number: str | None = Field(None, min_length=1, max_length=100)
    phone_number: str | None = Field(None, pattern=PHONE_PATTERN.pattern)


class TrackVisitRequest(CamelModel):
    product_id: UUID | None = None
    url: str = Field(min_length=1, max_length=500)

    @field_validator("url")
    @classmethod
    def url_is_http(cls, v: str) -> str:
        return check_website(v)


class MarkNotificationsRead(CamelModel):
    notification_ids: list[UUID] | None = None
    mark_all: bool = False


class DeleteNotifications(CamelModel):
    notification_ids: list[UUID] = Field(min_length=1)
