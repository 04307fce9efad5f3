"""Property lookups shared by the routers and services."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staysync.errors import NotFoundError
from staysync.models import Property


async def get_property(db: AsyncSession, property_id: uuid.UUID) -> Property:
    """Fetch a property by id or raise ``NotFoundError``."""
    result = await db.execute(select(Property).where(Property.id == property_id))
    prop = result.scalar_one_or_none()
    if prop is None:
        raise NotFoundError("Property not found")
    return prop


async def get_property_by_slug(db: AsyncSession, public_slug: str) -> Property:
    """Fetch a property by its public slug or raise ``NotFoundError``."""
    result = await db.execute(select(Property).where(Property.public_slug == public_slug))
    prop = result.scalar_one_or_none()
    if prop is None:
        raise NotFoundError("Property not found")
    return prop
