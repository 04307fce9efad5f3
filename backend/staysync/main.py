"""StaySync — FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from staysync.api.v1.bookings import router as bookings_router
from staysync.api.v1.properties import router as properties_router
from staysync.api.v1.public import router as public_router
from staysync.calendar_sync.locks import PropertyLockRegistry
from staysync.config import settings
from staysync.errors import StaySyncError

# Configure root logger so all staysync.* loggers output to stderr.
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    yield
    # Shutdown: dispose engine connections
    from staysync.database import engine

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Calendar reconciliation and availability for vacation rentals.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Shared across requests; serializes check-and-insert per property.
app.state.property_locks = PropertyLockRegistry()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StaySyncError)
async def staysync_error_handler(request: Request, exc: StaySyncError) -> JSONResponse:
    """Render domain errors as ``{"detail": ..., "retryable": ...}``."""
    if exc.retryable:
        logger.warning("%s %s failed (retryable): %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "retryable": exc.retryable},
    )


# Routers
app.include_router(properties_router)
app.include_router(bookings_router)
app.include_router(public_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
