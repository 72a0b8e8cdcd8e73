"""Coarse IP based location lookup.

Used when the client cannot supply a device fix. Two public geolocation
providers are tried in order; if both fail the caller gets
:class:`LocationUnavailableError` and is expected to degrade to the idle state.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from frostwatch.core.errors import LocationUnavailableError
from frostwatch.core.settings import settings
from frostwatch.services.geo import GeoPoint, is_valid_location

logger = logging.getLogger(__name__)

IP_API_URL = "http://ip-api.com/json/{ip}"
IPAPI_CO_URL = "https://ipapi.co/{ip}/json/"


def _parse_ip_api(data: dict[str, Any]) -> GeoPoint:
    if data.get("status") != "success":
        raise ValueError(data.get("message") or "lookup failed")
    return GeoPoint(lat=float(data["lat"]), lon=float(data["lon"]))


def _parse_ipapi_co(data: dict[str, Any]) -> GeoPoint:
    if data.get("error"):
        raise ValueError(data.get("reason") or "lookup failed")
    return GeoPoint(lat=float(data["latitude"]), lon=float(data["longitude"]))


class IpGeolocationClient:
    """Async HTTP client resolving an IP address to approximate coordinates."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self.timeout = settings.location_timeout_seconds if timeout is None else timeout
        self._client = http_client
        self._owns_client = http_client is None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def locate(self, ip: str) -> GeoPoint:
        """Return the approximate location of ``ip``.

        Raises:
            LocationUnavailableError: If every provider failed or returned
                unusable coordinates
        """
        client = await self._ensure_client()
        providers = (
            (IP_API_URL.format(ip=ip), {"fields": "status,message,lat,lon"}, _parse_ip_api),
            (IPAPI_CO_URL.format(ip=ip), None, _parse_ipapi_co),
        )
        for url, params, parse in providers:
            try:
                response = await client.get(url, params=params)
                response.raise_for_status()
                point = parse(response.json())
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
                logger.warning("IP geolocation via %s failed: %s", url, exc)
                continue
            if not is_valid_location(point.lat, point.lon):
                logger.warning("IP geolocation via %s returned invalid coordinates", url)
                continue
            return point
        raise LocationUnavailableError("Could not determine location")

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
