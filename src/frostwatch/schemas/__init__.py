# src/frostwatch/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import (
    CommentCreate,
    CommentFlag,
    CommentFlagResponse,
    CommentPageResponse,
    CommentResponse,
)
from .identity import IdentityResponse
from .proximity import LocationResponse, ProximityRequest, ProximityResponse
from .report import NearbyQuery, NearbyReportResponse, ReportCreate, ReportResponse
from .vote import MyVoteResponse, VoteCreate, VoteDelete, VoteTallyResponse

__all__ = [
    "CommentCreate", "CommentFlag", "CommentFlagResponse", "CommentPageResponse", "CommentResponse",
    "IdentityResponse",
    "LocationResponse", "ProximityRequest", "ProximityResponse",
    "NearbyQuery", "NearbyReportResponse", "ReportCreate", "ReportResponse",
    "MyVoteResponse", "VoteCreate", "VoteDelete", "VoteTallyResponse",
]
