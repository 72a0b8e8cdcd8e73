# src/frostwatch/schemas/proximity.py
"""Proximity and location schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from .common import Coordinates


class ProximityRequest(Coordinates):
    """The caller's current position."""


class ProximityResponse(BaseModel):
    """Temperature reading for a position against the active report set."""

    level: Literal["normal", "cool", "cold", "freeze", "extreme"]
    value: float = Field(..., ge=0, le=100)
    description: str
    nearest_report_id: str | None = None
    nearest_distance_m: float | None = None
    nearest_distance_label: str | None = None
    bearing_deg: float | None = None


class LocationResponse(BaseModel):
    latitude: float
    longitude: float
    source: Literal["ip"] = "ip"
