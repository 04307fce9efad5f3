"""SQLAlchemy models for StaySync.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from staysync.models.booking import Booking
from staysync.models.property import Property

__all__ = [
    "Booking",
    "Property",
]
