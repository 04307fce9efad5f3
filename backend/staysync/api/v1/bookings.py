"""Host-side bookings API, nested under a property."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from staysync.api.deps import get_db, get_property_locks
from staysync.calendar_sync.locks import PropertyLockRegistry
from staysync.schemas.booking import (
    AnyBooking,
    BookingListResponse,
    BookingUpdate,
    ManualBooking,
    ManualBookingCreate,
)
from staysync.schemas.property import MessageResponse
from staysync.services import booking_service
from staysync.services.property_service import get_property

router = APIRouter(prefix="/api/v1/properties/{property_id}/bookings", tags=["bookings"])


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List a property's bookings with duplicate annotations",
)
async def list_bookings(
    property_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> BookingListResponse:
    """Return every booking ordered by start.

    Manual blocks and confirmed guest requests that the external feed already
    mirrors carry ``linked_to_external: true``.
    """
    await get_property(db, property_id)
    items = await booking_service.list_bookings(db, property_id)
    return BookingListResponse(items=items, total=len(items))


@router.post(
    "",
    response_model=ManualBooking,
    status_code=status.HTTP_201_CREATED,
    summary="Create a manual block",
)
async def create_manual_booking(
    property_id: uuid.UUID,
    body: ManualBookingCreate,
    db: AsyncSession = Depends(get_db),
) -> ManualBooking:
    await get_property(db, property_id)
    return await booking_service.create_manual_booking(db, property_id, body)


@router.patch(
    "/{booking_id}",
    response_model=AnyBooking,
    summary="Update a booking",
)
async def update_booking(
    property_id: uuid.UUID,
    booking_id: uuid.UUID,
    body: BookingUpdate,
    db: AsyncSession = Depends(get_db),
    locks: PropertyLockRegistry = Depends(get_property_locks),
) -> AnyBooking:
    """Change what the booking's source allows.

    - guest requests: ``status`` (pending / confirmed / declined)
    - external bookings: ``cleaning_status`` while confirmed
    - manual blocks: ``title``, ``description``, ``location``
    """
    return await booking_service.update_booking(db, locks, property_id, booking_id, body)


@router.delete(
    "/{booking_id}",
    response_model=MessageResponse,
    summary="Delete a manual block or guest request",
)
async def delete_booking(
    property_id: uuid.UUID,
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await booking_service.delete_booking(db, property_id, booking_id)
    return MessageResponse(message="Booking deleted")
