# src/frostwatch/models/vote.py
"""Models capturing voting interactions on reports."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from frostwatch.db.session import Base
from frostwatch.db.time import utcnow
from frostwatch.db.types import UTCDateTime


class VoteType(str, enum.Enum):
    """Direction of a vote on a report."""

    UP = "up"
    DOWN = "down"


class Vote(Base):
    """Per-identity vote on a report.

    The unique constraint keeps at most one live vote per
    ``(report_id, fingerprint_hash, ip_hash)``.
    """

    __tablename__ = "vote"
    __table_args__ = (
        CheckConstraint("vote_type IN ('up', 'down')", name="ck_vote_type"),
        UniqueConstraint("report_id", "fingerprint_hash", "ip_hash", name="uq_vote_voter"),
        Index("ix_vote_report_id", "report_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    report_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("report.id", ondelete="CASCADE"),
        nullable=False,
    )
    fingerprint_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    ip_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    # Stored as the enum value ("up" / "down").
    vote_type: Mapped[str] = mapped_column(String(4), nullable=False)

    # Time of the most recent cast or switch.
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
