# src/frostwatch/schemas/vote.py
"""Vote-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .common import VoterIdentityFields


class VoteCreate(VoterIdentityFields):
    """Schema for casting or switching a vote."""

    report_id: str = Field(..., min_length=1)
    vote_type: Literal["up", "down"] = Field(..., description="'up' confirms, 'down' disputes")


class VoteDelete(VoterIdentityFields):
    """Schema for withdrawing a vote."""

    report_id: str = Field(..., min_length=1)


class VoteTallyResponse(BaseModel):
    """Report tally after a vote mutation."""

    report_id: str
    upvote_count: int
    downvote_count: int
    new_expiry: datetime
    probability: int


class MyVoteResponse(BaseModel):
    report_id: str
    vote_type: Literal["up", "down"] | None
