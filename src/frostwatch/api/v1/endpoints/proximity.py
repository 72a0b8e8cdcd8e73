# src/frostwatch/api/v1/endpoints/proximity.py
"""Proximity endpoints: temperature readings and coarse location."""

from fastapi import APIRouter, HTTPException, Request, status

from frostwatch.core.errors import FrostwatchError, InvalidLocationError
from frostwatch.core.settings import settings
from frostwatch.schemas.proximity import LocationResponse, ProximityRequest, ProximityResponse
from frostwatch.services.geo import GeoPoint, format_distance, is_valid_location
from frostwatch.services.proximity import evaluate_point
from frostwatch.services.reports import ReportRegistry
from frostwatch.services.temperature import describe

from ..dependencies import GeolocationClientDep, SessionDep, http_error

router = APIRouter(prefix="/proximity", tags=["proximity"])


@router.post("/", response_model=ProximityResponse)
async def read_temperature(location: ProximityRequest, db: SessionDep) -> ProximityResponse:
    """Classify how close the caller is to the nearest active report."""
    try:
        if not is_valid_location(location.latitude, location.longitude):
            raise InvalidLocationError("Invalid location coordinates")
        reports = ReportRegistry(db).list_active()
    except FrostwatchError as exc:
        raise http_error(exc) from exc

    reading = evaluate_point(GeoPoint(location.latitude, location.longitude), reports)
    temperature = reading.temperature
    distance = temperature.nearest_distance
    return ProximityResponse(
        level=temperature.level.value,
        value=temperature.value,
        description=describe(temperature.level),
        nearest_report_id=reading.nearest.id if reading.nearest is not None else None,
        nearest_distance_m=distance,
        nearest_distance_label=format_distance(distance) if distance is not None else None,
        bearing_deg=reading.bearing_deg,
    )


@router.get("/locate", response_model=LocationResponse)
async def locate_caller(request: Request, client: GeolocationClientDep) -> LocationResponse:
    """Resolve the caller's approximate position from their IP address."""
    if not settings.ip_geolocation_enabled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="IP geolocation is disabled",
        )
    ip = request.client.host if request.client else ""
    try:
        point = await client.locate(ip)
    except FrostwatchError as exc:
        raise http_error(exc) from exc
    return LocationResponse(latitude=point.lat, longitude=point.lon)
