"""Half-open date ranges and the overlap predicate.

Bookings occupy ``[start, end)``. Overlap is evaluated on day boundaries in
the presentation timezone so that a check-out and a check-in on the same day
never collide; store timestamps keep full precision and can be compared with
``precision="instant"``.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Literal, Protocol

from staysync.config import settings

ONE_DAY = timedelta(days=1)

Precision = Literal["day", "instant"]


class HasRange(Protocol):
    start: datetime
    end: datetime
    all_day: bool


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime. Naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _day_start(value: datetime, tz: tzinfo, all_day: bool) -> datetime:
    value = ensure_utc(value)
    # All-day values are stored at UTC midnight and keep their calendar date
    day = value.date() if all_day else value.astimezone(tz).date()
    return datetime.combine(day, time.min, tzinfo=tz)


def normalize(
    start: datetime,
    end: datetime,
    *,
    precision: Precision = "day",
    tz: tzinfo | None = None,
    all_day: bool = False,
) -> DateRange:
    """Canonicalize ``[start, end)`` for overlap math.

    With ``precision="day"`` both ends are floored to midnight of their
    calendar day in ``tz`` (the configured presentation timezone by default).
    An ``all_day`` range keeps its UTC calendar dates in any timezone. A
    range that collapses to nothing is widened to one day.
    """
    if precision == "instant":
        norm_start, norm_end = ensure_utc(start), ensure_utc(end)
    else:
        if tz is None:
            tz = settings.tz
        norm_start, norm_end = _day_start(start, tz, all_day), _day_start(end, tz, all_day)

    if norm_end <= norm_start:
        norm_end = norm_start + ONE_DAY
    return DateRange(norm_start, norm_end)


def booking_range(booking: HasRange, *, precision: Precision = "day", tz: tzinfo | None = None) -> DateRange:
    return normalize(booking.start, booking.end, precision=precision, tz=tz, all_day=booking.all_day)


def overlaps(a: DateRange, b: DateRange) -> bool:
    """True iff the half-open ranges intersect. Touching ends do not overlap."""
    return a.start < b.end and a.end > b.start
