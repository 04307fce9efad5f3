"""Feed sync service — fetch, parse and replace a property's external bookings."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from staysync.calendar_sync.feed import fetch_feed, parse_feed
from staysync.calendar_sync.replace import replace_external_bookings
from staysync.config import settings
from staysync.database import commit_or_raise
from staysync.errors import StaySyncError, StoreTransactionError, ValidationError
from staysync.models import Property

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    property_id: uuid.UUID
    confirmed_count: int
    tentative_count: int
    synced_at: datetime


async def sync_property(
    db: AsyncSession,
    prop: Property,
    *,
    feed_url: str | None = None,
    include_tentative: bool | None = None,
    client: httpx.AsyncClient | None = None,
) -> SyncResult:
    """Pull the property's feed and replace its external bookings.

    ``feed_url`` overrides the URL stored on the property for this run only.
    The store is untouched if the fetch fails; the caller commits.

    Raises:
        ValidationError: neither an override nor a stored feed URL exists.
        FeedTransportError: the feed could not be fetched (retryable).
        StoreTransactionError: the replace could not be applied (retryable).
    """
    url = feed_url or prop.ical_url
    if not url:
        raise ValidationError("This property has no calendar feed URL configured")
    if include_tentative is None:
        include_tentative = settings.default_include_tentative

    logger.info("Syncing property %s (include_tentative=%s)", prop.id, include_tentative)
    text = await fetch_feed(url, client=client)
    parsed = parse_feed(text, include_tentative)

    plan = await replace_external_bookings(db, prop.id, parsed.confirmed, parsed.tentative)
    prop.last_synced_at = plan.synced_at
    await db.flush()

    return SyncResult(
        property_id=prop.id,
        confirmed_count=plan.confirmed_count,
        tentative_count=plan.tentative_count,
        synced_at=plan.synced_at,
    )


async def sync_all_properties(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    include_tentative: bool | None = None,
) -> dict[uuid.UUID, SyncResult | StaySyncError]:
    """Sync every property that has a feed URL, each in its own transaction.

    A failing property does not stop the others; its error is returned in
    place of a result and its transaction is rolled back. Store failures,
    including a failed commit, are reported as ``StoreTransactionError``.
    """
    async with session_factory() as session:
        result = await session.execute(select(Property.id).where(Property.ical_url.is_not(None)))
        property_ids = list(result.scalars().all())

    outcomes: dict[uuid.UUID, SyncResult | StaySyncError] = {}
    async with httpx.AsyncClient(timeout=settings.feed_fetch_timeout_seconds, follow_redirects=True) as client:
        for property_id in property_ids:
            async with session_factory() as session:
                try:
                    prop = await session.get(Property, property_id)
                    if prop is None:
                        continue
                    synced = await sync_property(session, prop, include_tentative=include_tentative, client=client)
                    await commit_or_raise(session, "Could not store the synced calendar, please retry")
                except SQLAlchemyError:
                    logger.exception("Store error while syncing property %s", property_id)
                    await session.rollback()
                    outcomes[property_id] = StoreTransactionError("Could not store the synced calendar, please retry")
                except StaySyncError as exc:
                    logger.warning("Sync failed for property %s: %s", property_id, exc.detail)
                    await session.rollback()
                    outcomes[property_id] = exc
                else:
                    outcomes[property_id] = synced
    return outcomes
