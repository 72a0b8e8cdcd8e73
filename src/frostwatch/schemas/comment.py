# src/frostwatch/schemas/comment.py
"""Comment-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import VoterIdentityFields


class CommentCreate(VoterIdentityFields):
    """Schema for posting a comment on a report.

    Length and emptiness are enforced after trimming by the service, so the
    raw field is only loosely bounded here.
    """

    report_id: str = Field(..., min_length=1)
    content: str = Field(..., max_length=2000)


class CommentFlag(VoterIdentityFields):
    """Schema for flagging a comment as abusive."""


class CommentResponse(BaseModel):
    id: str
    report_id: str
    content: str
    created_at: datetime
    report_count: int

    model_config = ConfigDict(from_attributes=True)


class CommentPageResponse(BaseModel):
    comments: list[CommentResponse]
    page: int
    has_more: bool


class CommentFlagResponse(BaseModel):
    comment_id: str
    deleted: bool
    report_count: int
