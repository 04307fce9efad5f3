"""Shared API dependencies — single import point for all routers.

Re-exports the database session dependency and provides the per-property
lock registry stored on the application::

    from staysync.api.deps import get_db, get_property_locks
"""

from fastapi import Request

from staysync.calendar_sync.locks import PropertyLockRegistry
from staysync.database import get_db


def get_property_locks(request: Request) -> PropertyLockRegistry:
    """Return the lock registry shared by every request of this application."""
    return request.app.state.property_locks


__all__ = [
    "get_db",
    "get_property_locks",
]
