"""Guest-facing API addressed by a property's public slug.

Nothing returned here identifies other guests: availability is reduced to
occupied ranges, and a rejected request only says the dates are taken.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from staysync.api.deps import get_db, get_property_locks
from staysync.calendar_sync.availability import create_public_request, load_bookings
from staysync.calendar_sync.locks import PropertyLockRegistry
from staysync.calendar_sync.view import public_availability
from staysync.schemas.booking import PublicAvailabilityResponse, PublicBooking, PublicRequestCreate
from staysync.services.property_service import get_property_by_slug

router = APIRouter(prefix="/api/v1/public/properties", tags=["public"])


@router.get(
    "/{public_slug}",
    response_model=PublicAvailabilityResponse,
    summary="Occupied ranges of a property",
)
async def get_availability(
    public_slug: str,
    db: AsyncSession = Depends(get_db),
) -> PublicAvailabilityResponse:
    prop = await get_property_by_slug(db, public_slug)
    bookings = await load_bookings(db, prop.id)
    return PublicAvailabilityResponse(
        property_id=prop.id,
        property_name=prop.name,
        public_slug=prop.public_slug,
        slots=public_availability(bookings),
    )


@router.post(
    "/{public_slug}/requests",
    response_model=PublicBooking,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a booking request",
)
async def submit_request(
    public_slug: str,
    body: PublicRequestCreate,
    db: AsyncSession = Depends(get_db),
    locks: PropertyLockRegistry = Depends(get_property_locks),
) -> PublicBooking:
    """Create a pending request, or answer 409 if any blocking booking overlaps."""
    prop = await get_property_by_slug(db, public_slug)
    return await create_public_request(db, locks, prop, body)
