# tests/v1/test_proximity_api.py
"""Tests for proximity and location endpoints."""

import httpx
from fastapi import status

from frostwatch.api.v1.dependencies import get_geolocation_client
from frostwatch.core.settings import settings
from frostwatch.services.location import IpGeolocationClient


def test_temperature_near_report(client, live_report) -> None:
    response = client.post("/api/v1/proximity/", json={"latitude": 52.5202, "longitude": 13.405})
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["level"] == "extreme"
    assert body["nearest_report_id"] == live_report.id
    assert 20 < body["nearest_distance_m"] < 25
    assert body["nearest_distance_label"] == "22m"
    assert abs(body["bearing_deg"] - 180) < 0.01


def test_temperature_without_reports(client) -> None:
    response = client.post("/api/v1/proximity/", json={"latitude": 0, "longitude": 0})
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["level"] == "normal"
    assert body["value"] == 0
    assert body["nearest_report_id"] is None
    assert body["nearest_distance_m"] is None


def test_temperature_invalid_location(client) -> None:
    response = client.post("/api/v1/proximity/", json={"latitude": 0, "longitude": 200})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_locate_disabled_by_default(client) -> None:
    assert client.get("/api/v1/proximity/locate").status_code == status.HTTP_404_NOT_FOUND


def test_locate_uses_geolocation_client(app, client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "ip_geolocation_enabled", True)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "success", "lat": 10.0, "lon": 20.0})

    geo = IpGeolocationClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    app.dependency_overrides[get_geolocation_client] = lambda: geo
    try:
        response = client.get("/api/v1/proximity/locate")
    finally:
        app.dependency_overrides.pop(get_geolocation_client, None)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"latitude": 10.0, "longitude": 20.0, "source": "ip"}


def test_locate_unavailable(app, client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "ip_geolocation_enabled", True)
    geo = IpGeolocationClient(
        httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    )
    app.dependency_overrides[get_geolocation_client] = lambda: geo
    try:
        response = client.get("/api/v1/proximity/locate")
    finally:
        app.dependency_overrides.pop(get_geolocation_client, None)

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
