"""SQLAlchemy models for the Frostwatch service."""

from .comment import Comment, CommentReport
from .report import Report
from .vote import Vote, VoteType

__all__ = [
    "Comment", "CommentReport",
    "Report",
    "Vote", "VoteType",
]
