"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field

HASH_PATTERN = r"^[a-fA-F0-9]{64}$"


class VoterIdentityFields(BaseModel):
    """Hashed anonymous identity carried by mutating requests."""

    fingerprint_hash: str = Field(..., pattern=HASH_PATTERN, description="SHA-256 of the device fingerprint")
    ip_hash: str = Field(..., pattern=HASH_PATTERN, description="SHA-256 of the client IP address")


class Coordinates(BaseModel):
    """A point in decimal degrees; range checks happen in the services."""

    latitude: float
    longitude: float
