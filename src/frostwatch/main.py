# src/frostwatch/main.py
"""Main entry point for the Frostwatch application."""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from frostwatch import __version__
from frostwatch.api.v1 import (
    comments_router,
    identity_router,
    proximity_router,
    reports_router,
    system_router,
    votes_router,
)
from frostwatch.core.settings import settings
from frostwatch.db.session import SessionLocal, create_tables
from frostwatch.services.change_feed import PollingChangeFeed, PushChangeFeed, ReportChangeFeed
from frostwatch.services.identity import IdentityCache, IdentityService
from frostwatch.services.location import IpGeolocationClient
from frostwatch.services.reports import load_active_snapshot
from frostwatch.services.vote_ledger import ReportLockRegistry

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Frostwatch API",
    description="Anonymous, crowd-validated location reports",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(reports_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(proximity_router, prefix="/api/v1")
app.include_router(identity_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


def build_change_feed() -> ReportChangeFeed:
    """Create the change feed backend selected in settings."""
    if settings.change_feed_backend == "polling":
        return PollingChangeFeed(
            lambda: asyncio.to_thread(load_active_snapshot, SessionLocal),
            interval=settings.change_feed_poll_interval_seconds,
            queue_size=settings.change_feed_queue_size,
        )
    return PushChangeFeed(queue_size=settings.change_feed_queue_size)


@app.on_event("startup")
async def on_startup() -> None:
    create_tables()
    feed = build_change_feed()
    await feed.start()
    app.state.change_feed = feed
    app.state.identity_service = IdentityService(
        IdentityCache(ttl_seconds=settings.identity_cache_ttl_seconds)
    )
    app.state.geolocation_client = IpGeolocationClient(timeout=settings.location_timeout_seconds)
    app.state.report_locks = ReportLockRegistry()
    logger.info("Frostwatch started with %s change feed", feed.backend)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    feed: ReportChangeFeed | None = getattr(app.state, "change_feed", None)
    if feed is not None:
        await feed.stop()
    client: IpGeolocationClient | None = getattr(app.state, "geolocation_client", None)
    if client is not None:
        await client.aclose()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Frostwatch API",
        "version": __version__,
        "description": "Anonymous, crowd-validated location reports",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("frostwatch.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
