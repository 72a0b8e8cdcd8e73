"""Proximity monitoring.

Turns the user's location and the active report set into a
:class:`~frostwatch.services.temperature.TemperatureState`. The monitor is a two
state machine (idle without a location, tracking with one) that recomputes on
every location or report update and on a fixed polling cadence, since either
input can change independently.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from frostwatch.core.errors import LocationUnavailableError, StorageUnavailableError
from frostwatch.core.settings import settings
from frostwatch.db.time import utcnow
from frostwatch.services.geo import GeoPoint, bearing_deg, find_nearest
from frostwatch.services.temperature import NO_SIGNAL, TemperatureState, classify

logger = logging.getLogger(__name__)

ReportsSource = Callable[[], Sequence[Any] | Awaitable[Sequence[Any]]]
LocationProvider = Callable[[], Awaitable[GeoPoint]]
StateListener = Callable[[TemperatureState], None]


class MonitorState(str, enum.Enum):
    IDLE = "idle"
    TRACKING = "tracking"


@dataclass(frozen=True)
class ProximityReading:
    """Temperature plus the report that produced it."""

    temperature: TemperatureState
    nearest: Any | None = None
    bearing_deg: float | None = None


def _is_live(report: Any, now: datetime) -> bool:
    expires_at = getattr(report, "validity_expires_at", None)
    return expires_at is None or expires_at > now


def evaluate_point(
    location: GeoPoint | None,
    reports: Sequence[Any],
    now: datetime | None = None,
) -> ProximityReading:
    """Classify the distance from ``location`` to the nearest live report."""
    if location is None:
        return ProximityReading(temperature=NO_SIGNAL)
    current = now if now is not None else utcnow()
    nearest = find_nearest(location, (r for r in reports if _is_live(r, current)))
    if nearest is None:
        return ProximityReading(temperature=NO_SIGNAL)
    report, distance = nearest
    return ProximityReading(
        temperature=classify(distance),
        nearest=report,
        bearing_deg=bearing_deg(location.lat, location.lon, report.latitude, report.longitude),
    )


class ProximityMonitor:
    """Tracks the user's location against the active report set."""

    def __init__(
        self,
        reports_source: ReportsSource | None = None,
        *,
        location_provider: LocationProvider | None = None,
        interval: float | None = None,
        location_timeout: float | None = None,
        clock: Callable[[], datetime] = utcnow,
        on_change: StateListener | None = None,
    ) -> None:
        self._reports_source = reports_source
        self._location_provider = location_provider
        self.interval = max(
            0.05,
            float(settings.proximity_update_interval_seconds if interval is None else interval),
        )
        self.location_timeout = (
            settings.location_timeout_seconds if location_timeout is None else location_timeout
        )
        self._clock = clock
        self.state = MonitorState.IDLE
        self.location: GeoPoint | None = None
        self.reports: list[Any] = []
        self.reading = ProximityReading(temperature=NO_SIGNAL)
        self._listeners: list[StateListener] = [on_change] if on_change is not None else []
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def temperature(self) -> TemperatureState:
        return self.reading.temperature

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def update_location(self, location: GeoPoint | None) -> TemperatureState:
        """Set or clear the user's location and re-evaluate."""
        if location is None:
            if self.state is MonitorState.TRACKING:
                logger.info("Location lost; proximity monitor idle")
            self.state = MonitorState.IDLE
        else:
            if self.state is MonitorState.IDLE:
                logger.info("Location acquired; proximity monitor tracking")
            self.state = MonitorState.TRACKING
        self.location = location
        return self.evaluate()

    def update_reports(self, reports: Sequence[Any]) -> TemperatureState:
        """Replace the active report set and re-evaluate."""
        self.reports = list(reports)
        return self.evaluate()

    def evaluate(self) -> TemperatureState:
        """Recompute the temperature, notifying listeners when it changed."""
        location = self.location if self.state is MonitorState.TRACKING else None
        reading = evaluate_point(location, self.reports, self._clock())
        changed = reading.temperature != self.reading.temperature
        self.reading = reading
        if changed:
            for listener in list(self._listeners):
                listener(reading.temperature)
        return reading.temperature

    async def refresh_location(self, provider: LocationProvider | None = None) -> TemperatureState:
        """Ask the location collaborator for a fix; failures degrade to idle."""
        source = provider or self._location_provider
        if source is None:
            return self.update_location(None)
        try:
            location = await asyncio.wait_for(source(), timeout=self.location_timeout)
        except (LocationUnavailableError, asyncio.TimeoutError) as e:
            logger.warning("Location unavailable: %s", str(e) or "timed out")
            return self.update_location(None)
        return self.update_location(location)

    async def refresh_reports(self) -> TemperatureState:
        if self._reports_source is None:
            return self.evaluate()
        result = self._reports_source()
        reports = await result if inspect.isawaitable(result) else result
        return self.update_reports(reports)

    async def tick(self) -> TemperatureState:
        """One polling step: reload inputs that have sources, then evaluate."""
        if self._location_provider is not None:
            await self.refresh_location()
        try:
            return await self.refresh_reports()
        except StorageUnavailableError as e:
            logger.warning("Could not refresh reports: %s", e)
            return self.evaluate()

    async def start(self) -> None:
        """Start the periodic recomputation loop."""
        if self._task is None or self._task.done():
            self._stopping = asyncio.Event()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the loop; no timers outlive this call."""
        if self._task is None:
            return
        self._stopping.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.tick()
            except (OSError, ConnectionError, TimeoutError) as e:
                logger.warning("Proximity update failed: %s", e)
            except Exception:
                logger.exception("Proximity update failed")
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue
