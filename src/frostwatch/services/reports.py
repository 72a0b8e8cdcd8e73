"""Report registry: creation and read-time queries over sighting reports."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from frostwatch.core.errors import InvalidLocationError, ReportNotFoundError, StorageUnavailableError
from frostwatch.core.settings import settings
from frostwatch.db.time import utcnow
from frostwatch.models import Report
from frostwatch.services.change_feed import ChangeEvent, ChangePublisher, ReportChange
from frostwatch.services.geo import distance_m, is_valid_location
from frostwatch.services.validity import ValidityPolicy, initial_expiry, vote_probability

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NearbyReport:
    """An active report annotated with its distance from a query point."""

    report: Report
    distance_m: float
    probability: int


def report_payload(report: Report) -> dict[str, Any]:
    """Serialise a report row for change notifications and snapshots."""
    return {
        "id": report.id,
        "latitude": report.latitude,
        "longitude": report.longitude,
        "created_at": report.created_at.isoformat(),
        "validity_expires_at": report.validity_expires_at.isoformat(),
        "upvote_count": report.upvote_count,
        "downvote_count": report.downvote_count,
    }


class ReportRegistry:
    """Owns reports: create, list the active set, and find nearby duplicates."""

    def __init__(
        self,
        db: Session,
        *,
        clock: Callable[[], datetime] = utcnow,
        policy: ValidityPolicy | None = None,
        publisher: ChangePublisher | None = None,
    ) -> None:
        self.db = db
        self.clock = clock
        self.policy = policy or ValidityPolicy.from_settings(settings)
        self.publisher = publisher

    def create_report(self, latitude: float, longitude: float) -> Report:
        """Create a report at the given coordinates.

        Args:
            latitude: Decimal degrees in [-90, 90]
            longitude: Decimal degrees in [-180, 180]

        Returns:
            The persisted report, expiring ``base_minutes`` from now

        Raises:
            InvalidLocationError: If the coordinates are out of range
            StorageUnavailableError: If the insert fails
        """
        if not is_valid_location(latitude, longitude):
            raise InvalidLocationError("Invalid location coordinates")

        now = self.clock()
        report = Report(
            latitude=latitude,
            longitude=longitude,
            created_at=now,
            validity_expires_at=initial_expiry(now, policy=self.policy),
            upvote_count=0,
            downvote_count=0,
        )
        try:
            self.db.add(report)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to create report: %s", e, exc_info=True)
            raise StorageUnavailableError("Could not store report") from e

        logger.info("Created report %s", report.id)
        if self.publisher is not None:
            self.publisher.publish(
                ReportChange("report", ChangeEvent.INSERT, report.id, report_payload(report))
            )
        return report

    def list_active(self) -> list[Report]:
        """Return every report whose validity window is still open, newest first."""
        stmt = (
            select(Report)
            .where(Report.validity_expires_at > self.clock())
            .order_by(desc(Report.created_at))
        )
        try:
            return list(self.db.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error("Failed to list active reports: %s", e, exc_info=True)
            raise StorageUnavailableError("Could not load reports") from e

    def get_report(self, report_id: str) -> Report:
        """Return a report by id whether or not it has expired."""
        try:
            report = self.db.get(Report, report_id)
        except SQLAlchemyError as e:
            raise StorageUnavailableError("Could not load report") from e
        if report is None:
            raise ReportNotFoundError("Report not found")
        return report

    def get_active_report(self, report_id: str) -> Report:
        report = self.get_report(report_id)
        if report.validity_expires_at <= self.clock():
            raise ReportNotFoundError("Report has expired")
        return report

    def get_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_m: float | None = None,
    ) -> list[NearbyReport]:
        """Return active reports within ``radius_m`` of a point, nearest first.

        Used to warn before creating a duplicate; it never blocks creation.
        """
        if not is_valid_location(latitude, longitude):
            raise InvalidLocationError("Invalid location coordinates")
        radius = settings.proximity_radius_meters if radius_m is None else radius_m

        nearby: list[NearbyReport] = []
        for report in self.list_active():
            d = distance_m(latitude, longitude, report.latitude, report.longitude)
            if d <= radius:
                nearby.append(
                    NearbyReport(
                        report=report,
                        distance_m=d,
                        probability=vote_probability(report.upvote_count, report.downvote_count),
                    )
                )
        nearby.sort(key=lambda item: item.distance_m)
        return nearby


def load_active_snapshot(session_factory: sessionmaker[Session]) -> dict[str, dict[str, Any]]:
    """Open a short-lived session and return the active set keyed by report id."""
    with session_factory() as db:
        return {report.id: report_payload(report) for report in ReportRegistry(db).list_active()}
