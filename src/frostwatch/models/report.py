# src/frostwatch/models/report.py
"""SQLAlchemy model for sighting reports."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from frostwatch.db.session import Base
from frostwatch.db.time import utcnow
from frostwatch.db.types import UTCDateTime


def _new_id() -> str:
    return str(uuid.uuid4())


class Report(Base):
    """A sighting at a coordinate with a decaying validity window.

    Reports are never deleted on expiry; readers filter on
    ``validity_expires_at`` instead.
    """

    __tablename__ = "report"
    __table_args__ = (
        CheckConstraint("latitude >= -90 AND latitude <= 90", name="ck_report_latitude"),
        CheckConstraint("longitude >= -180 AND longitude <= 180", name="ck_report_longitude"),
        CheckConstraint("upvote_count >= 0", name="ck_report_upvote_count"),
        CheckConstraint("downvote_count >= 0", name="ck_report_downvote_count"),
        Index("ix_report_validity_expires_at", "validity_expires_at"),
        Index("ix_report_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    # Recomputed from the live vote tally on every vote mutation.
    validity_expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Cached tallies; always equal to the vote rows of each type.
    upvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
