"""Host- and guest-facing views over a property's merged booking set.

Nothing here hides or deletes a booking. The host view only adds the
``linked_to_external`` annotation; the guest view strips every detail except
the occupied range.
"""

from collections.abc import Iterable, Sequence

from staysync.calendar_sync.ranges import booking_range, overlaps
from staysync.schemas.booking import AnyBooking, PublicSlot


def behaves_as_manual(booking: AnyBooking) -> bool:
    """Manual blocks and accepted guest requests are both host-managed occupancy."""
    return booking.source == "manual" or (booking.source == "public" and booking.status == "confirmed")


def is_external_reserved(booking: AnyBooking) -> bool:
    return booking.source == "external" and booking.status == "confirmed"


def annotate(bookings: Sequence[AnyBooking]) -> list[AnyBooking]:
    """Flag manual-like bookings that the external feed already mirrors.

    Returns every input booking, in input order. A booking is flagged when it
    behaves as manual, is not declined, and overlaps at least one confirmed
    external booking; every other booking is returned unflagged.
    """
    reserved = [booking_range(b) for b in bookings if is_external_reserved(b)]

    annotated = []
    for booking in bookings:
        linked = False
        if behaves_as_manual(booking) and booking.status != "declined":
            own = booking_range(booking)
            linked = any(overlaps(own, other) for other in reserved)
        if booking.linked_to_external != linked:
            booking = booking.model_copy(update={"linked_to_external": linked})
        annotated.append(booking)
    return annotated


def public_availability(bookings: Iterable[AnyBooking]) -> list[PublicSlot]:
    """Occupied ranges for the guest page. Declined requests are left out."""
    slots = []
    for booking in bookings:
        if booking.status == "declined":
            continue
        slots.append(
            PublicSlot(
                start=booking.start,
                end=booking.end,
                status="pending" if booking.status == "pending" else "blocked",
            )
        )
    return slots
