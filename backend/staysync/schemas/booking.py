"""Pydantic v2 schemas for bookings.

A booking is one of three variants discriminated by ``source``. Each variant
only admits the statuses that source can reach, so a manual booking can never
be tentative and only external bookings carry a cleaning status.
"""

import uuid
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from staysync.calendar_sync.ranges import ensure_utc

CleaningStatus = Literal["pending", "done"]

# ---------------------------------------------------------------------------
# Domain variants (also used as response schemas)
# ---------------------------------------------------------------------------


class _BookingBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID
    property_id: uuid.UUID
    title: str | None = None
    description: str | None = None
    location: str | None = None
    start: datetime
    end: datetime
    all_day: bool = False
    created_at: datetime
    updated_at: datetime
    # Presentation annotation: a manual-like booking mirrored by a confirmed external one
    linked_to_external: bool = False

    @field_validator("start", "end", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ManualBooking(_BookingBase):
    """A block entered by the host. Always confirmed."""

    source: Literal["manual"] = "manual"
    status: Literal["confirmed"] = "confirmed"


class ExternalBooking(_BookingBase):
    """A booking mirrored from the external calendar feed."""

    source: Literal["external"] = "external"
    status: Literal["confirmed", "tentative"]
    external_id: str | None = None
    cleaning_status: CleaningStatus | None = None

    @model_validator(mode="after")
    def _cleaning_only_when_confirmed(self) -> "ExternalBooking":
        if self.cleaning_status is not None and self.status != "confirmed":
            raise ValueError("cleaning_status is only valid on confirmed bookings")
        return self


class PublicBooking(_BookingBase):
    """A booking request submitted by a guest through the public page."""

    source: Literal["public"] = "public"
    status: Literal["pending", "confirmed", "declined"]
    requester_name: str
    requester_email: str | None = None
    requester_phone: str | None = None
    notes: str | None = None


AnyBooking = Annotated[ManualBooking | ExternalBooking | PublicBooking, Field(discriminator="source")]

_VARIANTS: dict[str, type[ManualBooking | ExternalBooking | PublicBooking]] = {
    "manual": ManualBooking,
    "external": ExternalBooking,
    "public": PublicBooking,
}


def to_domain(row: object) -> AnyBooking:
    """Convert an ORM ``Booking`` row into its variant."""
    return _VARIANTS[row.source].model_validate(row)  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class _RangeMixin(BaseModel):
    start: datetime
    end: datetime
    # Date-only ranges: send midnight UTC of each date
    all_day: bool = False

    @model_validator(mode="after")
    def check_dates(self) -> "_RangeMixin":
        """Validate that end is strictly after start."""
        if ensure_utc(self.end) <= ensure_utc(self.start):
            raise ValueError("end must be after start")
        return self


class ManualBookingCreate(_RangeMixin):
    """Schema for a host-entered block."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    location: str | None = Field(None, max_length=512)


class PublicRequestCreate(_RangeMixin):
    """Schema for a guest booking request."""

    requester_name: str = Field(..., min_length=1, max_length=255)
    requester_email: EmailStr | None = None
    requester_phone: str | None = Field(None, min_length=4, max_length=64)
    notes: str | None = Field(None, max_length=1000)


class BookingUpdate(BaseModel):
    """Partial update of a single booking. All fields optional.

    Which fields apply depends on the booking's source: ``status`` only for
    public requests, ``cleaning_status`` only for confirmed external
    bookings, and the descriptive fields only for manual blocks.
    """

    status: Literal["pending", "confirmed", "declined"] | None = None
    cleaning_status: CleaningStatus | None = None
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    location: str | None = Field(None, max_length=512)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingListResponse(BaseModel):
    """All bookings of a property, ordered by start, with view annotations."""

    items: list[AnyBooking]
    total: int


class PublicSlot(BaseModel):
    """An occupied range as shown to guests. Carries no booking details."""

    start: datetime
    end: datetime
    status: Literal["pending", "blocked"]


class PublicAvailabilityResponse(BaseModel):
    property_id: uuid.UUID
    property_name: str
    public_slug: str
    slots: list[PublicSlot]
