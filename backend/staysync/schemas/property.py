"""Pydantic v2 request/response schemas for property endpoints."""

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, UrlConstraints

# Calendar exports are often shared as webcal:// links; they are fetched over https
FeedUrl = Annotated[AnyUrl, UrlConstraints(allowed_schemes=["http", "https", "webcal"], host_required=True)]

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PropertyCreate(BaseModel):
    """Schema for creating a new property."""

    name: str = Field(..., min_length=1, max_length=255)
    ical_url: FeedUrl | None = None


class PropertyUpdate(BaseModel):
    """Schema for partially updating a property. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    ical_url: FeedUrl | None = None
    regenerate_slug: bool = False


class SyncRequest(BaseModel):
    """Optional overrides for a single sync run."""

    ical_url: FeedUrl | None = None
    include_tentative: bool | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PropertyResponse(BaseModel):
    """Property information returned from the API."""

    id: uuid.UUID
    name: str
    ical_url: str | None = None
    public_slug: str
    last_synced_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PropertyListResponse(BaseModel):
    """Paginated list of properties."""

    items: list[PropertyResponse]
    total: int


class SyncResponse(BaseModel):
    """Outcome of a feed sync."""

    property_id: uuid.UUID
    confirmed_count: int
    tentative_count: int
    synced_at: datetime


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
