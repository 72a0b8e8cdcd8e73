# src/frostwatch/schemas/report.py
"""Report-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from frostwatch.services.validity import seconds_remaining, vote_probability

from .common import Coordinates


class ReportCreate(Coordinates):
    """Schema for creating a new report."""


class NearbyQuery(Coordinates):
    """Schema for the duplicate check run before creating a report."""

    radius_m: float | None = Field(None, gt=0, le=5000, description="Search radius in meters")


class ReportResponse(BaseModel):
    """Schema for report information returned by the API."""

    id: str
    latitude: float
    longitude: float
    created_at: datetime
    validity_expires_at: datetime
    upvote_count: int
    downvote_count: int
    probability: int = 50
    seconds_remaining: int = 0

    @model_validator(mode="before")
    @classmethod
    def _derive_fields(cls, data: object) -> object:
        if not isinstance(data, dict):
            extracted: dict[str, object | None] = {}
            for field_name in cls.model_fields:
                extracted[field_name] = getattr(data, field_name, None)
            data = {k: v for k, v in extracted.items() if v is not None}

        up = data.get("upvote_count") or 0
        down = data.get("downvote_count") or 0
        data.setdefault("probability", vote_probability(int(up), int(down)))
        expires_at = data.get("validity_expires_at")
        if isinstance(expires_at, datetime):
            data.setdefault("seconds_remaining", seconds_remaining(expires_at))
        return data

    model_config = ConfigDict(from_attributes=True)


class NearbyReportResponse(BaseModel):
    report: ReportResponse
    distance_m: float
    probability: int
