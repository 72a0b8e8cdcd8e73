# src/frostwatch/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    comments_router,
    identity_router,
    proximity_router,
    reports_router,
    system_router,
    votes_router,
)

__all__ = [
    "reports_router",
    "votes_router",
    "comments_router",
    "proximity_router",
    "identity_router",
    "system_router",
]
