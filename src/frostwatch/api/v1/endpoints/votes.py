# src/frostwatch/api/v1/endpoints/votes.py
"""Vote-related endpoints for the Frostwatch API."""

from typing import Annotated

from fastapi import APIRouter, Query

from frostwatch.core.errors import FrostwatchError
from frostwatch.models import VoteType
from frostwatch.schemas.common import HASH_PATTERN
from frostwatch.schemas.vote import MyVoteResponse, VoteCreate, VoteDelete, VoteTallyResponse
from frostwatch.services.identity import VoterIdentity
from frostwatch.services.validity import vote_probability
from frostwatch.services.vote_ledger import VoteLedger, VoteTally

from ..dependencies import ChangeFeedDep, ReportLocksDep, SessionDep, http_error, identity_from

router = APIRouter(prefix="/votes", tags=["votes"])

HashQuery = Annotated[str, Query(pattern=HASH_PATTERN)]


def _tally_response(report_id: str, tally: VoteTally) -> VoteTallyResponse:
    return VoteTallyResponse(
        report_id=report_id,
        upvote_count=tally.upvote_count,
        downvote_count=tally.downvote_count,
        new_expiry=tally.new_expiry,
        probability=vote_probability(tally.upvote_count, tally.downvote_count),
    )


@router.post("/", response_model=VoteTallyResponse)
async def cast_vote(
    vote_data: VoteCreate,
    db: SessionDep,
    feed: ChangeFeedDep,
    locks: ReportLocksDep,
) -> VoteTallyResponse:
    """Cast a vote on a report, or switch an existing vote to the other type."""
    ledger = VoteLedger(db, publisher=feed, locks=locks)
    try:
        tally = ledger.cast_vote(
            vote_data.report_id,
            identity_from(vote_data),
            VoteType(vote_data.vote_type),
        )
    except FrostwatchError as exc:
        raise http_error(exc) from exc
    return _tally_response(vote_data.report_id, tally)


@router.delete("/", response_model=VoteTallyResponse)
async def remove_vote(
    vote_data: VoteDelete,
    db: SessionDep,
    feed: ChangeFeedDep,
    locks: ReportLocksDep,
) -> VoteTallyResponse:
    """Withdraw the caller's vote; withdrawing a missing vote changes nothing.

    Expired reports answer 404 like votes on them do.
    """
    ledger = VoteLedger(db, publisher=feed, locks=locks)
    try:
        tally = ledger.remove_vote(vote_data.report_id, identity_from(vote_data))
    except FrostwatchError as exc:
        raise http_error(exc) from exc
    return _tally_response(vote_data.report_id, tally)


@router.get("/{report_id}/my-vote", response_model=MyVoteResponse)
async def get_my_vote(
    report_id: str,
    fingerprint_hash: HashQuery,
    ip_hash: HashQuery,
    db: SessionDep,
) -> MyVoteResponse:
    """Get the caller's vote on a specific report."""
    identity = VoterIdentity(fingerprint_hash=fingerprint_hash.lower(), ip_hash=ip_hash.lower())
    try:
        vote = VoteLedger(db).get_vote(report_id, identity)
    except FrostwatchError as exc:
        raise http_error(exc) from exc
    return MyVoteResponse(report_id=report_id, vote_type=vote.value if vote else None)
