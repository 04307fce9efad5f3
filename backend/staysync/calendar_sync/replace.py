"""Atomic replacement of a property's external (feed) bookings.

External bookings have no identity of their own across syncs, so every sync
deletes all of them and inserts a fresh batch. The only state carried over is
the host's cleaning status, matched by the feed UID.

The work is split into a pure planning step that yields a
``ReplacementPlan`` and an execution step that applies the whole plan inside
the caller's transaction.
"""

import logging
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from staysync.calendar_sync.feed import FeedEvent
from staysync.errors import StoreTransactionError
from staysync.models import Booking
from staysync.models.booking import CLEANING_STATUSES, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ReplacementPlan:
    """Everything one sync will change, applied all-or-nothing."""

    property_id: uuid.UUID
    synced_at: datetime
    planned_deletes: list[uuid.UUID] = field(default_factory=list)
    planned_inserts: list[Booking] = field(default_factory=list)
    carried_cleaning: int = 0

    @property
    def confirmed_count(self) -> int:
        return sum(1 for row in self.planned_inserts if row.status == "confirmed")

    @property
    def tentative_count(self) -> int:
        return sum(1 for row in self.planned_inserts if row.status == "tentative")


def plan_replacement(
    property_id: uuid.UUID,
    existing: Iterable[Booking],
    confirmed: Sequence[FeedEvent],
    tentative: Sequence[FeedEvent],
    now: datetime | None = None,
) -> ReplacementPlan:
    """Build the delete/insert plan for one sync. Does not touch the store.

    Confirmed events keep the cleaning status their UID had before the sync,
    or start as ``pending``. Tentative events never carry one.
    """
    plan = ReplacementPlan(property_id=property_id, synced_at=now or utcnow())

    cleaning_by_uid: dict[str, str] = {}
    for row in existing:
        if row.source != "external":
            continue
        if row.external_id is not None and row.cleaning_status in CLEANING_STATUSES:
            cleaning_by_uid[row.external_id] = row.cleaning_status
        plan.planned_deletes.append(row.id)

    seen_uids: set[str] = set()
    for event in [*confirmed, *tentative]:
        if event.uid is not None:
            if event.uid in seen_uids:
                logger.warning("Skipping duplicate feed UID %s for property %s", event.uid, property_id)
                continue
            seen_uids.add(event.uid)

        cleaning_status = None
        if event.status == "confirmed":
            carried = cleaning_by_uid.get(event.uid) if event.uid else None
            if carried is not None:
                plan.carried_cleaning += 1
            cleaning_status = carried or "pending"

        plan.planned_inserts.append(
            Booking(
                id=uuid.uuid4(),
                property_id=property_id,
                external_id=event.uid,
                title=event.summary,
                description=event.description,
                location=event.location,
                start=event.start,
                end=event.end,
                all_day=event.all_day,
                source="external",
                status=event.status,
                cleaning_status=cleaning_status,
                created_at=plan.synced_at,
                updated_at=plan.synced_at,
            )
        )
    return plan


async def execute_replacement(db: AsyncSession, plan: ReplacementPlan) -> None:
    """Apply the plan inside the session's current transaction.

    Deletes run before inserts so a UID that survives the sync never exists
    twice. The caller owns the transaction: it commits on success and rolls
    back when ``StoreTransactionError`` is raised, so nothing is applied.
    """
    try:
        if plan.planned_deletes:
            await db.execute(
                delete(Booking)
                .where(Booking.id.in_(plan.planned_deletes))
                .execution_options(synchronize_session=False)
            )
        db.add_all(plan.planned_inserts)
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("External booking replace failed for property %s", plan.property_id)
        raise StoreTransactionError("Could not store the synced calendar, please retry") from exc


async def replace_external_bookings(
    db: AsyncSession,
    property_id: uuid.UUID,
    confirmed: Sequence[FeedEvent],
    tentative: Sequence[FeedEvent],
) -> ReplacementPlan:
    """Swap the property's external bookings for the given feed events."""
    result = await db.execute(
        select(Booking).where(Booking.property_id == property_id, Booking.source == "external")
    )
    existing = list(result.scalars().all())

    plan = plan_replacement(property_id, existing, confirmed, tentative)
    for row in existing:
        db.expunge(row)
    await execute_replacement(db, plan)

    logger.info(
        "Replaced external bookings for property %s: %d removed, %d confirmed, %d tentative, %d cleaning carried",
        property_id,
        len(plan.planned_deletes),
        plan.confirmed_count,
        plan.tentative_count,
        plan.carried_cleaning,
    )
    return plan
