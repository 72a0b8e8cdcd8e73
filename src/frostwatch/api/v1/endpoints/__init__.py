# src/frostwatch/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .comments import router as comments_router
from .identity import router as identity_router
from .proximity import router as proximity_router
from .reports import router as reports_router
from .system import router as system_router
from .votes import router as votes_router

__all__ = [
    "reports_router",
    "votes_router",
    "comments_router",
    "proximity_router",
    "identity_router",
    "system_router",
]
