# src/frostwatch/models/comment.py
"""Models for report comments and abuse flags."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from frostwatch.db.session import Base
from frostwatch.db.time import utcnow
from frostwatch.db.types import UTCDateTime


def _new_id() -> str:
    return str(uuid.uuid4())


class Comment(Base):
    """Free-text comment attached to a report."""

    __tablename__ = "comment"
    __table_args__ = (
        CheckConstraint("report_count >= 0", name="ck_comment_report_count"),
        Index("ix_comment_report_id_created_at", "report_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    report_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("report.id", ondelete="CASCADE"),
        nullable=False,
    )
    # HTML-escaped at write time.
    content: Mapped[str] = mapped_column(Text, nullable=False)
    fingerprint_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    ip_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    # Number of abuse flags raised against this comment.
    report_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CommentReport(Base):
    """Abuse flag raised by one identity against one comment."""

    __tablename__ = "comment_report"
    __table_args__ = (
        UniqueConstraint(
            "comment_id",
            "fingerprint_hash",
            "ip_hash",
            name="uq_comment_report_voter",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    comment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("comment.id", ondelete="CASCADE"),
        nullable=False,
    )
    fingerprint_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    ip_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
