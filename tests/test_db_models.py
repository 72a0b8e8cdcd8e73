"""Unit tests for the ORM models defined in frostwatch.models.

These tests verify basic mapping correctness: table names, the one-vote
constraint enforced by storage, and that timestamps come back timezone-aware.
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from frostwatch.models import Comment, CommentReport, Report, Vote


def test_table_names():
    """Model classes expose expected __tablename__ values."""
    assert Report.__tablename__ == "report"
    assert Vote.__tablename__ == "vote"
    assert Comment.__tablename__ == "comment"
    assert CommentReport.__tablename__ == "comment_report"


def test_vote_unique_per_voter(db_session, report, identity):
    """A second row for the same (report, fingerprint, ip) is rejected by storage."""
    for _ in range(2):
        db_session.add(
            Vote(
                report_id=report.id,
                fingerprint_hash=identity.fingerprint_hash,
                ip_hash=identity.ip_hash,
                vote_type="up",
            )
        )
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_timestamps_round_trip_as_utc(db_session):
    """Offsets are normalised to UTC and survive a reload from SQLite."""
    created = datetime(2024, 6, 1, 14, 30, tzinfo=timezone(timedelta(hours=2)))
    report = Report(
        latitude=0.0,
        longitude=0.0,
        created_at=created,
        validity_expires_at=created + timedelta(hours=1),
    )
    db_session.add(report)
    db_session.commit()
    db_session.expire_all()

    stored = db_session.get(Report, report.id)
    assert stored.created_at == datetime(2024, 6, 1, 12, 30, tzinfo=UTC)
    assert stored.created_at.tzinfo is UTC
    assert stored.upvote_count == 0


def test_report_defaults(db_session):
    report = Report(latitude=1.0, longitude=2.0, validity_expires_at=datetime.now(UTC))
    db_session.add(report)
    db_session.commit()
    assert len(report.id) == 36
    assert report.created_at is not None
