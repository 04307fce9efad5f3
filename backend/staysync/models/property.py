"""Property model — a rental unit with its own calendar."""

import secrets
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staysync.database import Base, UUIDPrimaryKeyMixin
from staysync.models.booking import utcnow


def generate_public_slug() -> str:
    """Return a short URL-safe token used in guest-facing links."""
    return secrets.token_urlsafe(9)


class Property(UUIDPrimaryKeyMixin, Base):
    """A rental unit whose availability is assembled from several booking sources."""

    __tablename__ = "properties"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    ical_url: Mapped[str | None] = mapped_column(Text, default=None)
    public_slug: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        default=generate_public_slug,
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    bookings: Mapped[list["Booking"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="property", lazy="noload", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name={self.name!r}, slug={self.public_slug!r})>"
