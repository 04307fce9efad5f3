"""Booking service — host-side reads and edits of individual bookings.

External bookings are owned by the feed sync: the host may only toggle their
cleaning status. Manual blocks are always confirmed and only their
descriptive fields can change. Guest requests move between pending,
confirmed and declined.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staysync.calendar_sync.availability import BLOCKING_STATUSES, check_availability, load_bookings, property_guard
from staysync.calendar_sync.locks import PropertyLockRegistry
from staysync.calendar_sync.ranges import ensure_utc
from staysync.calendar_sync.view import annotate
from staysync.database import commit_or_raise
from staysync.errors import NotFoundError, ValidationError
from staysync.models import Booking
from staysync.models.booking import utcnow
from staysync.schemas.booking import AnyBooking, BookingUpdate, ManualBooking, ManualBookingCreate, to_domain

logger = logging.getLogger(__name__)

_DESCRIPTIVE_FIELDS = ("title", "description", "location")


def _clean_text(value: str | None) -> str | None:
    """Blank strings clear a field instead of storing an empty value."""
    if value is None:
        return None
    value = value.strip()
    return value or None


async def _get_booking_row(db: AsyncSession, property_id: uuid.UUID, booking_id: uuid.UUID) -> Booking:
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id, Booking.property_id == property_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFoundError("Booking not found")
    return row


async def list_bookings(db: AsyncSession, property_id: uuid.UUID) -> list[AnyBooking]:
    """All bookings of a property ordered by start, annotated for the host view."""
    return annotate(await load_bookings(db, property_id))


async def create_manual_booking(
    db: AsyncSession,
    property_id: uuid.UUID,
    body: ManualBookingCreate,
) -> ManualBooking:
    """Create a host block. No availability check: the host may overbook knowingly."""
    now = utcnow()
    row = Booking(
        id=uuid.uuid4(),
        property_id=property_id,
        source="manual",
        status="confirmed",
        title=body.title.strip(),
        description=_clean_text(body.description),
        location=_clean_text(body.location),
        start=ensure_utc(body.start),
        end=ensure_utc(body.end),
        all_day=body.all_day,
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    await db.flush()
    logger.info("Created manual booking %s on property %s", row.id, property_id)
    return to_domain(row)


async def update_booking(
    db: AsyncSession,
    locks: PropertyLockRegistry,
    property_id: uuid.UUID,
    booking_id: uuid.UUID,
    body: BookingUpdate,
) -> AnyBooking:
    """Apply a partial update allowed for the booking's source.

    Raises:
        NotFoundError: no such booking on this property.
        ValidationError: the update does not apply to this kind of booking.
        BookingConflictError: reopening a declined request whose dates are taken.
    """
    row = await _get_booking_row(db, property_id, booking_id)
    changes = body.model_dump(exclude_unset=True)
    descriptive = {k: v for k, v in changes.items() if k in _DESCRIPTIVE_FIELDS}

    if row.source == "external":
        if body.status is not None or descriptive:
            raise ValidationError("External bookings are managed by the calendar feed")
        if body.cleaning_status is not None:
            if row.status != "confirmed":
                raise ValidationError("Cleaning status only applies to confirmed bookings")
            row.cleaning_status = body.cleaning_status

    elif row.source == "manual":
        if body.status is not None or body.cleaning_status is not None:
            raise ValidationError("Manual bookings are always confirmed and have no cleaning status")
        if "title" in descriptive and not _clean_text(descriptive["title"]):
            raise ValidationError("title cannot be empty")
        for name, value in descriptive.items():
            setattr(row, name, _clean_text(value))

    else:
        if body.cleaning_status is not None or descriptive:
            raise ValidationError("Only the status of a booking request can be changed")
        if body.status is not None and body.status != row.status:
            reopening = row.status not in BLOCKING_STATUSES and body.status in BLOCKING_STATUSES
            if reopening:
                async with property_guard(db, locks, property_id):
                    await check_availability(
                        db, property_id, row.start, row.end, exclude_id=row.id, all_day=row.all_day
                    )
                    row.status = body.status
                    row.updated_at = utcnow()
                    await commit_or_raise(db, "Could not reopen the booking request, please retry")
            else:
                row.status = body.status

    row.updated_at = utcnow()
    await db.flush()
    logger.info("Updated booking %s on property %s: %s", row.id, property_id, sorted(changes))
    return to_domain(row)


async def delete_booking(db: AsyncSession, property_id: uuid.UUID, booking_id: uuid.UUID) -> None:
    """Delete a manual block or guest request. External bookings go away only by sync."""
    row = await _get_booking_row(db, property_id, booking_id)
    if row.source == "external":
        raise ValidationError("External bookings are removed by syncing the calendar feed")
    await db.delete(row)
    await db.flush()
    logger.info("Deleted %s booking %s on property %s", row.source, booking_id, property_id)
