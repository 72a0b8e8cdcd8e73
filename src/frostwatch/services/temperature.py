"""Proximity temperature classification.

Maps the distance to the nearest active report onto a 0-100 "heat" value and a
discrete alert level. Band boundaries are fixed so the same distance always
classifies identically.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Final

NORMAL_THRESHOLD_M: Final[float] = 5000.0
COOL_THRESHOLD_M: Final[float] = 2000.0
COLD_THRESHOLD_M: Final[float] = 500.0
FREEZE_THRESHOLD_M: Final[float] = 100.0

NORMAL_VALUE: Final[float] = 0.0
COOL_VALUE: Final[float] = 25.0
COLD_VALUE: Final[float] = 50.0
FREEZE_VALUE: Final[float] = 75.0
EXTREME_VALUE: Final[float] = 100.0

# (outer distance, inner distance, value at outer, value at inner), farthest first.
_BANDS: Final[tuple[tuple[float, float, float, float], ...]] = (
    (NORMAL_THRESHOLD_M, COOL_THRESHOLD_M, NORMAL_VALUE, COOL_VALUE),
    (COOL_THRESHOLD_M, COLD_THRESHOLD_M, COOL_VALUE, COLD_VALUE),
    (COLD_THRESHOLD_M, FREEZE_THRESHOLD_M, COLD_VALUE, FREEZE_VALUE),
    (FREEZE_THRESHOLD_M, 0.0, FREEZE_VALUE, EXTREME_VALUE),
)


class TemperatureLevel(str, enum.Enum):
    NORMAL = "normal"
    COOL = "cool"
    COLD = "cold"
    FREEZE = "freeze"
    EXTREME = "extreme"


@dataclass(frozen=True)
class TemperatureState:
    """Alert state derived from the nearest report distance."""

    level: TemperatureLevel
    value: float
    nearest_distance: float | None


NO_SIGNAL: Final[TemperatureState] = TemperatureState(
    level=TemperatureLevel.NORMAL,
    value=NORMAL_VALUE,
    nearest_distance=None,
)

_DESCRIPTIONS: Final[dict[TemperatureLevel, str]] = {
    TemperatureLevel.EXTREME: "Reported sighting extremely close",
    TemperatureLevel.FREEZE: "You're very close to a report",
    TemperatureLevel.COLD: "Getting colder...",
    TemperatureLevel.COOL: "There are reports nearby",
    TemperatureLevel.NORMAL: "No reports nearby",
}


def temperature_value(distance_m: float) -> float:
    """Interpolate the 0-100 heat value for a distance in meters."""
    if distance_m >= NORMAL_THRESHOLD_M:
        return NORMAL_VALUE
    for outer, inner, outer_value, inner_value in _BANDS:
        if distance_m >= inner:
            ratio = (outer - distance_m) / (outer - inner)
            return outer_value + ratio * (inner_value - outer_value)
    # Negative distances only; clamp.
    return EXTREME_VALUE


def temperature_level(value: float) -> TemperatureLevel:
    """Bucket a heat value into its alert level."""
    if value >= 75:
        return TemperatureLevel.EXTREME
    if value >= 50:
        return TemperatureLevel.FREEZE
    if value >= 25:
        return TemperatureLevel.COLD
    if value >= 10:
        return TemperatureLevel.COOL
    return TemperatureLevel.NORMAL


def classify(distance_m: float | None) -> TemperatureState:
    """Build the temperature state for the nearest report distance (None = no signal)."""
    if distance_m is None:
        return NO_SIGNAL
    value = min(EXTREME_VALUE, max(NORMAL_VALUE, temperature_value(distance_m)))
    return TemperatureState(
        level=temperature_level(value),
        value=value,
        nearest_distance=distance_m,
    )


def describe(level: TemperatureLevel) -> str:
    return _DESCRIPTIONS[level]
