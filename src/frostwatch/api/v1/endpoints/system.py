"""System and transparency endpoints for the Frostwatch API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from frostwatch.core.settings import settings
from frostwatch.db.time import utcnow
from frostwatch.models import Comment, Report, Vote

from ..dependencies import ChangeFeedDep, SessionDep

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
async def get_public_config(feed: ChangeFeedDep) -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes connection strings; suitable for transparency UIs.

    Returns:
        Dictionary containing app metadata, validity constants, proximity and
        comment limits, and the active change feed backend
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
        "validity": settings.validity_limits,
        "proximity": {
            "radius_meters": settings.proximity_radius_meters,
            "update_interval_seconds": settings.proximity_update_interval_seconds,
        },
        "comments": {
            "max_length": settings.max_comment_length,
            "per_page": settings.comments_per_page,
            "auto_delete_threshold": settings.comment_auto_delete_threshold,
        },
        "change_feed": {
            "backend": feed.backend,
            "poll_interval_seconds": settings.change_feed_poll_interval_seconds,
        },
        "ip_geolocation_enabled": settings.ip_geolocation_enabled,
    }


@router.get("/stats")
async def get_stats(db: SessionDep) -> dict[str, int]:
    """Return aggregate counts for transparency dashboards."""
    try:
        total_reports = db.scalar(select(func.count()).select_from(Report)) or 0
        active_reports = db.scalar(
            select(func.count()).select_from(Report).where(Report.validity_expires_at > utcnow())
        ) or 0
        total_votes = db.scalar(select(func.count()).select_from(Vote)) or 0
        total_comments = db.scalar(select(func.count()).select_from(Comment)) or 0
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage unavailable",
        ) from exc
    return {
        "total_reports": total_reports,
        "active_reports": active_reports,
        "total_votes": total_votes,
        "total_comments": total_comments,
    }
