"""Properties API routes — CRUD plus the calendar feed sync."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staysync.api.deps import get_db
from staysync.database import commit_or_raise
from staysync.models import Booking, Property
from staysync.models.property import generate_public_slug
from staysync.schemas.property import (
    MessageResponse,
    PropertyCreate,
    PropertyListResponse,
    PropertyResponse,
    PropertyUpdate,
    SyncRequest,
    SyncResponse,
)
from staysync.services.property_service import get_property
from staysync.services.sync_service import sync_property

router = APIRouter(prefix="/api/v1/properties", tags=["properties"])


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new property",
)
async def create_property(
    body: PropertyCreate,
    db: AsyncSession = Depends(get_db),
) -> PropertyResponse:
    """Create a property. A public slug for the guest page is generated."""
    prop = Property(
        name=body.name,
        ical_url=str(body.ical_url) if body.ical_url else None,
    )
    db.add(prop)
    await db.flush()
    await db.refresh(prop)
    return PropertyResponse.model_validate(prop)


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="List properties",
)
async def list_properties(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> PropertyListResponse:
    """Return a page of properties ordered by creation time."""
    total_result = await db.execute(select(func.count()).select_from(Property))
    total = total_result.scalar_one()

    result = await db.execute(select(Property).order_by(Property.created_at.desc()).offset(skip).limit(limit))
    items = [PropertyResponse.model_validate(p) for p in result.scalars().all()]
    return PropertyListResponse(items=items, total=total)


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get a single property",
)
async def get_property_detail(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> PropertyResponse:
    prop = await get_property(db, property_id)
    return PropertyResponse.model_validate(prop)


@router.patch(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update a property",
)
async def update_property(
    property_id: uuid.UUID,
    body: PropertyUpdate,
    db: AsyncSession = Depends(get_db),
) -> PropertyResponse:
    """Partially update a property; ``regenerate_slug`` invalidates the old guest link."""
    prop = await get_property(db, property_id)

    update_data = body.model_dump(exclude_unset=True)
    if "name" in update_data and update_data["name"] is not None:
        prop.name = update_data["name"]
    if "ical_url" in update_data:
        prop.ical_url = str(update_data["ical_url"]) if update_data["ical_url"] else None
    if body.regenerate_slug:
        prop.public_slug = generate_public_slug()

    await db.flush()
    await db.refresh(prop)
    return PropertyResponse.model_validate(prop)


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    summary="Delete a property and its bookings",
)
async def delete_property(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    prop = await get_property(db, property_id)
    await db.execute(delete(Booking).where(Booking.property_id == prop.id))
    await db.delete(prop)
    await db.flush()
    return MessageResponse(message="Property deleted")


@router.post(
    "/{property_id}/sync",
    response_model=SyncResponse,
    summary="Sync external bookings from the calendar feed",
)
async def sync_property_feed(
    property_id: uuid.UUID,
    body: SyncRequest | None = None,
    db: AsyncSession = Depends(get_db),
) -> SyncResponse:
    """Fetch the feed and replace the property's external bookings.

    Returns 502 when the feed cannot be fetched and 503 when the store
    rejects the batch; both are safe to retry and leave bookings unchanged.
    """
    body = body or SyncRequest()
    prop = await get_property(db, property_id)
    result = await sync_property(
        db,
        prop,
        feed_url=str(body.ical_url) if body.ical_url else None,
        include_tentative=body.include_tentative,
    )
    await commit_or_raise(db, "Could not store the synced calendar, please retry")
    return SyncResponse(
        property_id=result.property_id,
        confirmed_count=result.confirmed_count,
        tentative_count=result.tentative_count,
        synced_at=result.synced_at,
    )
