"""Availability checks and race-free admission of guest booking requests."""

import logging
import uuid
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staysync.calendar_sync.locks import PropertyLockRegistry
from staysync.calendar_sync.ranges import DateRange, booking_range, ensure_utc, normalize, overlaps
from staysync.database import commit_or_raise
from staysync.errors import BookingConflictError, InvalidRangeError
from staysync.models import Booking, Property
from staysync.models.booking import utcnow
from staysync.schemas.booking import AnyBooking, PublicBooking, PublicRequestCreate, to_domain

logger = logging.getLogger(__name__)

# Every status except "declined" occupies the calendar, whatever the source.
BLOCKING_STATUSES = frozenset({"confirmed", "pending", "tentative"})


def validate_range(start: datetime, end: datetime) -> DateRange:
    """Return the range as UTC instants, or raise ``InvalidRangeError`` if end <= start."""
    start, end = ensure_utc(start), ensure_utc(end)
    if end <= start:
        raise InvalidRangeError("end must be after start")
    return DateRange(start, end)


def is_blocked(
    bookings: Iterable[AnyBooking],
    start: datetime,
    end: datetime,
    *,
    exclude_id: uuid.UUID | None = None,
    all_day: bool = False,
) -> bool:
    """True if ``[start, end)`` overlaps any blocking booking."""
    proposed = normalize(start, end, all_day=all_day)
    for booking in bookings:
        if booking.id == exclude_id or booking.status not in BLOCKING_STATUSES:
            continue
        if overlaps(proposed, booking_range(booking)):
            return True
    return False


async def load_bookings(db: AsyncSession, property_id: uuid.UUID) -> list[AnyBooking]:
    """All bookings of a property, ordered by start."""
    result = await db.execute(
        select(Booking).where(Booking.property_id == property_id).order_by(Booking.start, Booking.created_at)
    )
    return [to_domain(row) for row in result.scalars().all()]


async def check_availability(
    db: AsyncSession,
    property_id: uuid.UUID,
    start: datetime,
    end: datetime,
    *,
    exclude_id: uuid.UUID | None = None,
    all_day: bool = False,
) -> None:
    """Raise ``BookingConflictError`` if the range is taken. Never writes.

    The range is validated before the store is touched.
    """
    validate_range(start, end)
    bookings = await load_bookings(db, property_id)
    if is_blocked(bookings, start, end, exclude_id=exclude_id, all_day=all_day):
        logger.info("Rejected range %s -> %s on property %s: dates taken", start, end, property_id)
        raise BookingConflictError()


@asynccontextmanager
async def property_guard(
    db: AsyncSession,
    locks: PropertyLockRegistry,
    property_id: uuid.UUID,
) -> AsyncIterator[None]:
    """Serialize check-then-write sequences on one property.

    Holds an in-process lock and a ``SELECT ... FOR UPDATE`` on the property
    row, which serializes concurrent workers on PostgreSQL. The body must
    commit before leaving the block so both are held until the write is
    durable.
    """
    async with locks.lock_for(property_id):
        await db.execute(select(Property.id).where(Property.id == property_id).with_for_update())
        yield


async def create_public_request(
    db: AsyncSession,
    locks: PropertyLockRegistry,
    prop: Property,
    request: PublicRequestCreate,
) -> PublicBooking:
    """Check availability and insert a pending guest request as one serialized step."""
    async with property_guard(db, locks, prop.id):
        await check_availability(db, prop.id, request.start, request.end, all_day=request.all_day)

        now = utcnow()
        row = Booking(
            id=uuid.uuid4(),
            property_id=prop.id,
            source="public",
            status="pending",
            title=f"Request from {request.requester_name}",
            start=ensure_utc(request.start),
            end=ensure_utc(request.end),
            all_day=request.all_day,
            requester_name=request.requester_name,
            requester_email=request.requester_email,
            requester_phone=request.requester_phone,
            notes=request.notes,
            created_at=now,
            updated_at=now,
        )
        db.add(row)
        await commit_or_raise(db, "Could not store the booking request, please retry")

    logger.info("Accepted booking request %s on property %s", row.id, prop.id)
    return to_domain(row)
