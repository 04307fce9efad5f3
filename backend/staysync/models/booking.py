"""Booking model — one occupied date range on a property calendar."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staysync.database import Base, UUIDPrimaryKeyMixin

CLEANING_STATUSES = ("pending", "done")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(UUIDPrimaryKeyMixin, Base):
    """A booking row.

    ``end`` is exclusive: a booking occupies ``[start, end)``. Rows with
    ``source="external"`` are owned by the feed sync and are replaced as a
    batch; the other sources are created and edited one by one.
    """

    __tablename__ = "bookings"

    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    external_id: Mapped[str | None] = mapped_column(String(512), default=None)
    title: Mapped[str | None] = mapped_column(String(255), default=None)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    location: Mapped[str | None] = mapped_column(String(512), default=None)
    start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Date-only booking stored at UTC midnight; day math keeps its UTC calendar date
    all_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    source: Mapped[str] = mapped_column(String(20), nullable=False)  # manual, external, public
    status: Mapped[str] = mapped_column(String(20), nullable=False)  # pending, confirmed, tentative, declined
    cleaning_status: Mapped[str | None] = mapped_column(String(20), default=None)  # pending, done

    requester_name: Mapped[str | None] = mapped_column(String(255), default=None)
    requester_email: Mapped[str | None] = mapped_column(String(255), default=None)
    requester_phone: Mapped[str | None] = mapped_column(String(64), default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    property: Mapped["Property"] = relationship(back_populates="bookings", lazy="noload")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (
        CheckConstraint('"start" < "end"', name="ck_bookings_range"),
        CheckConstraint(
            "(source = 'manual' AND status = 'confirmed')"
            " OR (source = 'external' AND status IN ('confirmed', 'tentative'))"
            " OR (source = 'public' AND status IN ('pending', 'confirmed', 'declined'))",
            name="ck_bookings_source_status",
        ),
        CheckConstraint(
            "cleaning_status IS NULL"
            " OR (source = 'external' AND status = 'confirmed' AND cleaning_status IN ('pending', 'done'))",
            name="ck_bookings_cleaning_status",
        ),
        UniqueConstraint("property_id", "external_id", name="uq_bookings_property_external_id"),
        Index("ix_bookings_property_source", "property_id", "source"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, property_id={self.property_id}, source={self.source}, status={self.status})>"
        )
