"""Tests for great-circle distance and bearing helpers."""

import math

import pytest

from frostwatch.services.geo import (
    EARTH_RADIUS_M,
    GeoPoint,
    bearing_deg,
    distance_m,
    find_nearest,
    format_distance,
    haversine_m,
    is_valid_location,
    is_within_radius,
)


@pytest.mark.parametrize("lat, lon", [(0.0, 0.0), (52.52, 13.405), (-33.86, 151.21), (90.0, 180.0)])
def test_distance_to_self_is_zero(lat: float, lon: float) -> None:
    assert distance_m(lat, lon, lat, lon) == 0.0


def test_distance_is_symmetric() -> None:
    there = distance_m(52.52, 13.405, 48.8566, 2.3522)
    back = distance_m(48.8566, 2.3522, 52.52, 13.405)
    assert there == pytest.approx(back)


def test_berlin_to_paris() -> None:
    assert distance_m(52.52, 13.405, 48.8566, 2.3522) == pytest.approx(877_500, rel=0.005)


def test_one_degree_of_latitude() -> None:
    expected = EARTH_RADIUS_M * math.pi / 180
    assert distance_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected, abs=1e-6)


def test_antipodal_points_are_half_the_circumference() -> None:
    assert distance_m(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * EARTH_RADIUS_M, rel=1e-9)


@pytest.mark.parametrize(
    "target, expected",
    [
        ((1.0, 0.0), 0.0),
        ((0.0, 1.0), 90.0),
        ((-1.0, 0.0), 180.0),
        ((0.0, -1.0), 270.0),
    ],
)
def test_cardinal_bearings(target: tuple[float, float], expected: float) -> None:
    assert bearing_deg(0.0, 0.0, *target) == pytest.approx(expected, abs=1e-9)


def test_bearing_stays_in_range() -> None:
    for lat2, lon2 in [(10.0, -179.0), (-45.0, 170.0), (89.0, 0.1), (0.0, -0.0001)]:
        value = bearing_deg(0.0, 0.0, lat2, lon2)
        assert 0.0 <= value < 360.0


def test_haversine_on_points_matches_distance() -> None:
    a = GeoPoint(52.52, 13.405)
    b = GeoPoint(52.53, 13.41)
    assert haversine_m(a, b) == distance_m(a.lat, a.lon, b.lat, b.lon)
    assert is_within_radius(a, b, 2000)
    assert not is_within_radius(a, b, 100)


@pytest.mark.parametrize(
    "lat, lon, valid",
    [
        (0.0, 0.0, True),
        (90.0, 180.0, True),
        (-90.0, -180.0, True),
        (90.0001, 0.0, False),
        (0.0, -180.5, False),
        (float("nan"), 0.0, False),
        (0.0, float("inf"), False),
    ],
)
def test_is_valid_location(lat: float, lon: float, valid: bool) -> None:
    assert is_valid_location(lat, lon) is valid


class _Spot:
    def __init__(self, name: str, latitude: float, longitude: float) -> None:
        self.name = name
        self.latitude = latitude
        self.longitude = longitude


def test_find_nearest_picks_the_closest_candidate() -> None:
    origin = GeoPoint(0.0, 0.0)
    spots = [_Spot("far", 1.0, 1.0), _Spot("near", 0.001, 0.0), _Spot("mid", 0.1, 0.0)]
    nearest = find_nearest(origin, spots)
    assert nearest is not None
    spot, distance = nearest
    assert spot.name == "near"
    assert distance == pytest.approx(distance_m(0.0, 0.0, 0.001, 0.0))


def test_find_nearest_without_candidates() -> None:
    assert find_nearest(GeoPoint(0.0, 0.0), []) is None


def test_format_distance() -> None:
    assert format_distance(850) == "850m"
    assert format_distance(1234) == "1.2km"
