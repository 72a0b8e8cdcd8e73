"""Vote ledger: one vote per identity per report, with validity recomputation.

Every mutation re-derives the report's tallies from the vote rows, recomputes
the expiry once and commits votes, counts and expiry in a single transaction.
Mutations on the same report are serialised; different reports never contend.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frostwatch.core.errors import DuplicateVoteError, ReportNotFoundError, StorageUnavailableError
from frostwatch.core.settings import settings
from frostwatch.db.time import utcnow
from frostwatch.models import Report, Vote, VoteType
from frostwatch.services.change_feed import ChangeEvent, ChangePublisher, ReportChange
from frostwatch.services.identity import VoterIdentity
from frostwatch.services.reports import report_payload
from frostwatch.services.validity import ValidityPolicy, compute_expiry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteTally:
    """Counts and expiry of a report after a vote mutation."""

    upvote_count: int
    downvote_count: int
    new_expiry: datetime


@dataclass
class _LockEntry:
    lock: Lock = field(default_factory=Lock)
    holders: int = 0


class ReportLockRegistry:
    """Hands out one lock per report id.

    An entry lives only while some caller holds or waits on it, so ids that are
    never seen again do not accumulate.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}
        self._guard = Lock()

    @contextmanager
    def hold(self, report_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(report_id)
            if entry is None:
                entry = self._entries[report_id] = _LockEntry()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[report_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


class VoteLedger:
    """Authority over vote rows and the tallies cached on reports."""

    def __init__(
        self,
        db: Session,
        *,
        clock: Callable[[], datetime] = utcnow,
        policy: ValidityPolicy | None = None,
        publisher: ChangePublisher | None = None,
        locks: ReportLockRegistry | None = None,
    ) -> None:
        self.db = db
        self.clock = clock
        self.policy = policy or ValidityPolicy.from_settings(settings)
        self.publisher = publisher
        self.locks = locks if locks is not None else ReportLockRegistry()

    def cast_vote(self, report_id: str, identity: VoterIdentity, vote_type: VoteType) -> VoteTally:
        """Cast or switch ``identity``'s vote on a report.

        Args:
            report_id: Target report
            identity: Hashed voter identity
            vote_type: Up or down

        Returns:
            The report's fresh tally and expiry

        Raises:
            ReportNotFoundError: If the report does not exist or has expired
            DuplicateVoteError: If the identity already voted this way
            StorageUnavailableError: If the store fails; nothing is persisted
        """
        vote_type = VoteType(vote_type)
        with self.locks.hold(report_id):
            try:
                report = self._load_report_for_update(report_id)
                now = self.clock()
                if report.validity_expires_at <= now:
                    raise ReportNotFoundError("Report has expired")

                existing = self._find_vote(report_id, identity)
                if existing is None:
                    vote = Vote(
                        report_id=report_id,
                        fingerprint_hash=identity.fingerprint_hash,
                        ip_hash=identity.ip_hash,
                        vote_type=vote_type.value,
                        created_at=now,
                    )
                    self.db.add(vote)
                    event = ChangeEvent.INSERT
                elif existing.vote_type == vote_type.value:
                    raise DuplicateVoteError("You have already voted this way")
                else:
                    existing.vote_type = vote_type.value
                    existing.created_at = now
                    vote = existing
                    event = ChangeEvent.UPDATE

                tally = self._recompute(report, now)
                self.db.commit()
            except (DuplicateVoteError, ReportNotFoundError):
                self.db.rollback()
                raise
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Vote on report %s failed: %s", report_id, e, exc_info=True)
                raise StorageUnavailableError("Could not record vote") from e

        logger.debug("Vote %s on report %s (%s)", vote_type.value, report_id, event.value)
        self._publish(report, event, _vote_payload(vote))
        return tally

    def remove_vote(self, report_id: str, identity: VoterIdentity) -> VoteTally:
        """Delete ``identity``'s vote if present and recompute the tally.

        Removing a vote that does not exist is a no-op apart from the recompute.
        Expired reports are left untouched so a withdrawn downvote cannot revive
        them.

        Raises:
            ReportNotFoundError: If the report does not exist or has expired
            StorageUnavailableError: If the store fails; nothing is persisted
        """
        with self.locks.hold(report_id):
            try:
                report = self._load_report_for_update(report_id)
                now = self.clock()
                if report.validity_expires_at <= now:
                    raise ReportNotFoundError("Report has expired")
                existing = self._find_vote(report_id, identity)
                removed = _vote_payload(existing) if existing is not None else None
                if existing is not None:
                    self.db.delete(existing)
                tally = self._recompute(report, now)
                self.db.commit()
            except ReportNotFoundError:
                self.db.rollback()
                raise
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Vote removal on report %s failed: %s", report_id, e, exc_info=True)
                raise StorageUnavailableError("Could not remove vote") from e

        if removed is not None:
            self._publish(report, ChangeEvent.DELETE, removed)
        return tally

    def get_vote(self, report_id: str, identity: VoterIdentity) -> VoteType | None:
        """Return the identity's current vote on a report, if any."""
        try:
            vote = self._find_vote(report_id, identity)
        except SQLAlchemyError as e:
            raise StorageUnavailableError("Could not load vote") from e
        return VoteType(vote.vote_type) if vote is not None else None

    def count_votes(self, report_id: str) -> tuple[int, int]:
        """Return ``(upvotes, downvotes)`` counted from the live vote rows."""
        up_expr = func.coalesce(func.sum(case((Vote.vote_type == VoteType.UP.value, 1), else_=0)), 0)
        down_expr = func.coalesce(
            func.sum(case((Vote.vote_type == VoteType.DOWN.value, 1), else_=0)), 0
        )
        row = self.db.execute(
            select(up_expr, down_expr).where(Vote.report_id == report_id)
        ).one()
        return int(row[0]), int(row[1])

    def _load_report_for_update(self, report_id: str) -> Report:
        report = self.db.scalars(
            select(Report).where(Report.id == report_id).with_for_update()
        ).first()
        if report is None:
            raise ReportNotFoundError("Report not found")
        return report

    def _find_vote(self, report_id: str, identity: VoterIdentity) -> Vote | None:
        return self.db.scalars(
            select(Vote).where(
                Vote.report_id == report_id,
                Vote.fingerprint_hash == identity.fingerprint_hash,
                Vote.ip_hash == identity.ip_hash,
            )
        ).first()

    def _recompute(self, report: Report, now: datetime) -> VoteTally:
        # Flush pending vote changes so the aggregate sees them.
        self.db.flush()
        upvotes, downvotes = self.count_votes(report.id)
        expires_at = compute_expiry(
            report.created_at,
            upvotes,
            downvotes,
            now=now,
            policy=self.policy,
        )
        report.upvote_count = upvotes
        report.downvote_count = downvotes
        report.validity_expires_at = expires_at
        return VoteTally(upvote_count=upvotes, downvote_count=downvotes, new_expiry=expires_at)

    def _publish(self, report: Report, vote_event: ChangeEvent, vote_row: dict[str, Any]) -> None:
        if self.publisher is None:
            return
        self.publisher.publish(ReportChange("vote", vote_event, report.id, vote_row))
        self.publisher.publish(
            ReportChange("report", ChangeEvent.UPDATE, report.id, report_payload(report))
        )


def _vote_payload(vote: Vote) -> dict[str, Any]:
    return {
        "id": vote.id,
        "report_id": vote.report_id,
        "vote_type": vote.vote_type,
        "created_at": vote.created_at.isoformat() if vote.created_at else None,
    }
