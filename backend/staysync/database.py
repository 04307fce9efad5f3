"""Async SQLAlchemy engine, session factory, and declarative base."""

import logging
import uuid
from collections.abc import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from staysync.config import settings
from staysync.errors import StoreTransactionError

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.async_database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UUIDPrimaryKeyMixin:
    """Mixin that adds a UUID primary key column."""

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield an async database session for FastAPI dependency injection.

    The request is one unit of work: everything flushed by the handler is
    committed together when it returns, and rolled back if it raises::

        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def commit_or_raise(db: AsyncSession, detail: str) -> None:
    """Commit the session, surfacing store failures as a retryable error.

    The session is rolled back before ``StoreTransactionError`` is raised,
    so nothing from the failed unit of work is applied.
    """
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        logger.exception("Commit failed: %s", detail)
        await db.rollback()
        raise StoreTransactionError(detail) from exc
