"""Tests for calendar feed fetching and parsing."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from staysync.calendar_sync.feed import fetch_feed, parse_event, parse_feed
from staysync.errors import FeedTransportError

FEED_URL = "https://www.airbnb.com/calendar/ical/123.ics?s=abc"


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _event(*lines: str) -> str:
    return "\r\n".join(["BEGIN:VEVENT", *lines, "END:VEVENT"])


def _feed(*events: str) -> str:
    return "\r\n".join(
        [
            "BEGIN:VCALENDAR",
            "PRODID:-//Airbnb Inc//Hosting Calendar 0.8.8//EN",
            "CALSCALE:GREGORIAN",
            "VERSION:2.0",
            *events,
            "END:VCALENDAR",
            "",
        ]
    )


RESERVED = _event(
    "DTSTART;VALUE=DATE:20250610",
    "DTEND;VALUE=DATE:20250612",
    "UID:1418fb94e984-reserved@airbnb.com",
    "SUMMARY:Reserved",
    "DESCRIPTION:Reservation URL: https://www.airbnb.com/hosting/reservations/details/HMABC",
)
BLOCKED = _event(
    "DTSTART;VALUE=DATE:20250701",
    "DTEND;VALUE=DATE:20250705",
    "UID:1418fb94e984-blocked@airbnb.com",
    "SUMMARY:Airbnb (Not available)",
)
TENTATIVE = _event(
    "DTSTART;VALUE=DATE:20250801",
    "DTEND;VALUE=DATE:20250803",
    "UID:1418fb94e984-tentative@airbnb.com",
    "SUMMARY:Pending request",
    "STATUS:TENTATIVE",
)


# ---------------------------------------------------------------------------
# parse_feed
# ---------------------------------------------------------------------------


class TestParseFeed:
    """Classification and normalization of feed entries."""

    def test_all_day_event_expands_to_utc_midnights(self):
        feed = _feed(_event("UID:a", "SUMMARY:Reserved", "DTSTART:20250610", "DTEND:20250612"))
        parsed = parse_feed(feed, include_tentative=False)

        assert len(parsed.confirmed) == 1
        event = parsed.confirmed[0]
        assert event.start == _utc(2025, 6, 10)
        assert event.end == _utc(2025, 6, 12)

    def test_value_date_parameter(self):
        parsed = parse_feed(_feed(RESERVED), include_tentative=False)
        event = parsed.confirmed[0]
        assert event.start == _utc(2025, 6, 10)
        assert event.end == _utc(2025, 6, 12)
        assert event.uid == "1418fb94e984-reserved@airbnb.com"
        assert event.summary == "Reserved"
        assert event.status == "confirmed"
        assert event.description.startswith("Reservation URL:")

    def test_cancelled_event_is_dropped(self):
        feed = _feed(
            _event("UID:c1", "SUMMARY:Reserved", "DTSTART:20250610", "DTEND:20250612", "STATUS:CANCELLED"),
            _event("UID:c2", "SUMMARY:Reserved", "DTSTART:20250615", "DTEND:20250617", "STATUS:CANCELED"),
        )
        for include_tentative in (False, True):
            parsed = parse_feed(feed, include_tentative=include_tentative)
            assert parsed.confirmed == []
            assert parsed.tentative == []

    def test_tentative_excluded_by_default(self):
        parsed = parse_feed(_feed(RESERVED, TENTATIVE), include_tentative=False)
        assert [e.uid for e in parsed.confirmed] == ["1418fb94e984-reserved@airbnb.com"]
        assert parsed.tentative == []

    def test_tentative_included_when_requested(self):
        parsed = parse_feed(_feed(RESERVED, TENTATIVE), include_tentative=True)
        assert len(parsed.confirmed) == 1
        assert [e.uid for e in parsed.tentative] == ["1418fb94e984-tentative@airbnb.com"]
        assert parsed.tentative[0].status == "tentative"

    def test_unknown_status_counts_as_confirmed(self):
        feed = _feed(_event("UID:x", "SUMMARY:Reserved", "DTSTART:20250610", "DTEND:20250612", "STATUS:CONFIRMED"))
        assert len(parse_feed(feed, include_tentative=False).confirmed) == 1

    def test_feed_order_is_kept(self):
        parsed = parse_feed(_feed(BLOCKED, RESERVED), include_tentative=False)
        assert [e.summary for e in parsed.confirmed] == ["Airbnb (Not available)", "Reserved"]

    def test_block_without_summary_is_dropped(self):
        feed = _feed(_event("UID:nosummary", "DTSTART:20250610", "DTEND:20250612"), BLOCKED)
        parsed = parse_feed(feed, include_tentative=False)
        assert [e.uid for e in parsed.confirmed] == ["1418fb94e984-blocked@airbnb.com"]

    def test_block_without_dates_is_dropped(self):
        feed = _feed(
            _event("UID:nostart", "SUMMARY:Reserved", "DTEND:20250612"),
            _event("UID:noend", "SUMMARY:Reserved", "DTSTART:20250610"),
        )
        assert parse_feed(feed, include_tentative=False).confirmed == []

    def test_unparseable_date_degrades_by_omission(self):
        feed = _feed(_event("UID:bad", "SUMMARY:Reserved", "DTSTART:not-a-date", "DTEND:20250612"), BLOCKED)
        parsed = parse_feed(feed, include_tentative=False)
        assert [e.uid for e in parsed.confirmed] == ["1418fb94e984-blocked@airbnb.com"]

    @pytest.mark.parametrize("dtstart", ["DTSTART:2025-06-10", "DTSTART:20250610T120000+0200"])
    def test_malformed_date_value_only_drops_its_block(self, dtstart):
        feed = _feed(_event("UID:bad", "SUMMARY:Reserved", dtstart, "DTEND:20250612"), BLOCKED)
        parsed = parse_feed(feed, include_tentative=False)
        assert [e.uid for e in parsed.confirmed] == ["1418fb94e984-blocked@airbnb.com"]

    def test_end_not_after_start_becomes_one_day(self):
        feed = _feed(
            _event("UID:same", "SUMMARY:Reserved", "DTSTART:20250610T150000Z", "DTEND:20250610T150000Z"),
            _event("UID:back", "SUMMARY:Reserved", "DTSTART:20250620", "DTEND:20250618"),
        )
        same, back = parse_feed(feed, include_tentative=False).confirmed
        assert same.end == _utc(2025, 6, 10, 15) + timedelta(days=1)
        assert back.start == _utc(2025, 6, 20)
        assert back.end == _utc(2025, 6, 21)

    def test_every_parsed_event_is_exclusive(self):
        feed = _feed(
            RESERVED,
            BLOCKED,
            _event("UID:z", "SUMMARY:Reserved", "DTSTART:20250901T100000Z", "DTEND:20250901T090000Z"),
        )
        for event in parse_feed(feed, include_tentative=True).confirmed:
            assert event.start < event.end

    def test_timed_values_are_utc(self):
        feed = _feed(
            _event("UID:t1", "SUMMARY:Reserved", "DTSTART:20250610T150000Z", "DTEND:20250612T110000Z"),
            _event("UID:t2", "SUMMARY:Reserved", "DTSTART:20250710T150000", "DTEND:20250712T110000"),
        )
        zoned, floating = parse_feed(feed, include_tentative=False).confirmed
        assert zoned.start == _utc(2025, 6, 10, 15)
        assert zoned.end == _utc(2025, 6, 12, 11)
        assert floating.start == _utc(2025, 7, 10, 15)
        assert floating.start.tzinfo is not None

    def test_missing_optional_fields_are_none(self):
        event = parse_feed(_feed(BLOCKED), include_tentative=False).confirmed[0]
        assert event.description is None
        assert event.location is None

    def test_missing_uid_is_none(self):
        feed = _feed(_event("SUMMARY:Reserved", "DTSTART:20250610", "DTEND:20250612"))
        assert parse_feed(feed, include_tentative=False).confirmed[0].uid is None

    def test_folded_lines_are_unfolded(self):
        feed = _feed(_event("UID:f", "SUMMARY:Reserved for", "  Jane", "DTSTART:20250610", "DTEND:20250612"))
        assert parse_feed(feed, include_tentative=False).confirmed[0].summary == "Reserved for Jane"

    def test_lf_line_endings(self):
        feed = _feed(RESERVED).replace("\r\n", "\n")
        assert len(parse_feed(feed, include_tentative=False).confirmed) == 1

    def test_empty_and_non_calendar_text(self):
        assert parse_feed("", include_tentative=True).confirmed == []
        parsed = parse_feed("<html>Service unavailable</html>", include_tentative=True)
        assert parsed.confirmed == [] and parsed.tentative == []


class TestParseEvent:
    def test_returns_none_for_cancelled(self):
        block = _event("UID:c", "SUMMARY:Reserved", "DTSTART:20250610", "DTEND:20250612", "STATUS:cancelled")
        assert parse_event(block) is None

    def test_location_is_read(self):
        block = _event("UID:l", "SUMMARY:Reserved", "DTSTART:20250610", "DTEND:20250612", "LOCATION:Casa Azul")
        assert parse_event(block).location == "Casa Azul"

    def test_bare_dates_are_flagged_all_day(self):
        block = _event("UID:d", "SUMMARY:Reserved", "DTSTART;VALUE=DATE:20250610", "DTEND;VALUE=DATE:20250612")
        assert parse_event(block).all_day is True

    def test_timed_values_are_not_all_day(self):
        block = _event("UID:t", "SUMMARY:Reserved", "DTSTART:20250610T000000Z", "DTEND:20250612T000000Z")
        assert parse_event(block).all_day is False


# ---------------------------------------------------------------------------
# fetch_feed
# ---------------------------------------------------------------------------


class TestFetchFeed:
    """Transport behaviour with a mocked HTTP layer."""

    async def test_returns_body_on_success(self):
        feed = _feed(RESERVED)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=feed)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            assert await fetch_feed(FEED_URL, client=client) == feed

    async def test_non_2xx_carries_upstream_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="maintenance")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(FeedTransportError) as exc_info:
                await fetch_feed(FEED_URL, client=client)

        assert exc_info.value.upstream_status == 503
        assert exc_info.value.retryable is True
        assert "503" in exc_info.value.detail

    async def test_timeout_is_retryable_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(FeedTransportError) as exc_info:
                await fetch_feed(FEED_URL, client=client, timeout=0.5)

        assert exc_info.value.upstream_status is None
        assert exc_info.value.retryable is True

    async def test_connection_error_is_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(FeedTransportError):
                await fetch_feed(FEED_URL, client=client)

    async def test_webcal_scheme_is_fetched_over_https(self):
        seen: list[httpx.URL] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(200, text="")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await fetch_feed("webcal://www.airbnb.com/calendar/ical/123.ics", client=client)

        assert seen[0].scheme == "https"
