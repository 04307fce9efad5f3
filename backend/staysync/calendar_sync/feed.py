"""Download and parse the external (Airbnb) iCal feed.

Every VEVENT block is parsed on its own, and a block that cannot be
understood is dropped instead of failing the whole sync.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Literal

import httpx
from icalendar import Event

from staysync.calendar_sync.ranges import ONE_DAY, ensure_utc
from staysync.config import settings
from staysync.errors import FeedTransportError

logger = logging.getLogger(__name__)

_EVENT_BEGIN = re.compile(r"^BEGIN:VEVENT[ \t]*\r?\n", re.MULTILINE)
_EVENT_END = re.compile(r"^END:VEVENT", re.MULTILINE)

_CANCELLED = {"CANCELLED", "CANCELED"}
_TENTATIVE = "TENTATIVE"

FeedStatus = Literal["confirmed", "tentative"]


@dataclass(frozen=True)
class FeedEvent:
    """One normalized feed entry. ``end`` is exclusive and always after ``start``.

    ``all_day`` is set when the feed gave bare dates, which are stored as
    midnight UTC.
    """

    uid: str | None
    summary: str
    start: datetime
    end: datetime
    status: FeedStatus
    description: str | None = None
    location: str | None = None
    all_day: bool = False


@dataclass
class ParsedFeed:
    confirmed: list[FeedEvent] = field(default_factory=list)
    tentative: list[FeedEvent] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Fetch
# ---------------------------------------------------------------------------


async def fetch_feed(
    url: str,
    *,
    timeout: float | None = None,
    client: httpx.AsyncClient | None = None,
) -> str:
    """GET the feed text.

    Raises:
        FeedTransportError: on timeout, transport failure or a non-2xx reply.
            The upstream status code is attached when there was a reply.
    """
    if url.startswith("webcal://"):
        url = "https://" + url[len("webcal://") :]
    if timeout is None:
        timeout = settings.feed_fetch_timeout_seconds

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned_client:
                response = await owned_client.get(url)
        else:
            response = await client.get(url, timeout=timeout)
    except httpx.TimeoutException as exc:
        logger.warning("Calendar feed timed out after %ss: %s", timeout, url)
        raise FeedTransportError(f"Calendar feed timed out after {timeout:g}s") from exc
    except httpx.HTTPError as exc:
        logger.warning("Calendar feed request failed: %s (%s)", url, exc)
        raise FeedTransportError(f"Calendar feed request failed: {exc}") from exc

    if not response.is_success:
        logger.warning("Calendar feed returned HTTP %s: %s", response.status_code, url)
        detail = f"Calendar feed returned HTTP {response.status_code}"
        snippet = response.text[:200].strip()
        if snippet:
            detail = f"{detail}: {snippet}"
        raise FeedTransportError(detail, upstream_status=response.status_code)
    return response.text


# ---------------------------------------------------------------------------
# Parse
# ---------------------------------------------------------------------------


def _split_events(text: str) -> list[str]:
    """Return each VEVENT as a standalone block. A missing END marker is tolerated."""
    chunks = _EVENT_BEGIN.split(text)[1:]
    blocks = []
    for chunk in chunks:
        body = _EVENT_END.split(chunk, maxsplit=1)[0]
        if body and not body.endswith("\n"):
            body += "\r\n"
        blocks.append(f"BEGIN:VEVENT\r\n{body}END:VEVENT\r\n")
    return blocks


def _text(component: Event, name: str) -> str | None:
    value = component.get(name)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _instant(component: Event, name: str) -> tuple[datetime, bool] | None:
    """Read a DTSTART/DTEND property as an aware UTC datetime.

    Returns the instant and whether it was a bare date. Bare dates are
    all-day values and map to midnight UTC. Floating date-times are read as
    UTC. Raises ``ValueError`` when the value is present but unreadable.
    """
    prop = component.get(name)
    value = getattr(prop, "dt", None)
    if isinstance(value, datetime):
        return ensure_utc(value), False
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc), True
    return None


def parse_event(block: str) -> FeedEvent | None:
    """Parse one VEVENT block. Returns ``None`` for anything that must not be emitted."""
    try:
        component = Event.from_ical(block)
        uid = _text(component, "UID")
        summary = _text(component, "SUMMARY")
        start = _instant(component, "DTSTART")
        end = _instant(component, "DTEND")
        status_raw = (_text(component, "STATUS") or "").upper()
        description = _text(component, "DESCRIPTION")
        location = _text(component, "LOCATION")
    except ValueError as exc:
        # icalendar signals broken properties with ValueError subclasses
        logger.debug("Dropping unparseable feed entry: %s", exc)
        return None

    if summary is None or start is None or end is None:
        logger.debug("Dropping feed entry without summary or dates: %r", uid)
        return None
    if status_raw in _CANCELLED:
        return None
    status: FeedStatus = "tentative" if status_raw == _TENTATIVE else "confirmed"

    (start_at, start_is_date), (end_at, end_is_date) = start, end
    if end_at <= start_at:
        end_at = start_at + ONE_DAY

    return FeedEvent(
        uid=uid,
        summary=summary,
        start=start_at,
        end=end_at,
        status=status,
        description=description,
        location=location,
        all_day=start_is_date and end_is_date,
    )


def parse_feed(text: str, include_tentative: bool) -> ParsedFeed:
    """Turn raw feed text into confirmed and tentative events, in feed order.

    Cancelled entries are never emitted. Tentative entries are emitted only
    when ``include_tentative`` is set.
    """
    parsed = ParsedFeed()
    for block in _split_events(text):
        event = parse_event(block)
        if event is None:
            continue
        if event.status == "tentative":
            if include_tentative:
                parsed.tentative.append(event)
        else:
            parsed.confirmed.append(event)

    logger.debug(
        "Parsed feed: %d confirmed, %d tentative",
        len(parsed.confirmed),
        len(parsed.tentative),
    )
    return parsed
