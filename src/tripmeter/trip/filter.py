"""Sample filter — turns one raw position fix into an accepted speed reading.

Noise handling is policy, not error handling: negative speeds are clamped to
zero and implausible speeds are dropped without raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from tripmeter.telemetry.models import Coordinate, PositionSample

MPS_TO_KMH = 3.6
MAX_PLAUSIBLE_KMH = 400.0   # above this the fix is a sensor glitch
MEANINGFUL_KMH = 1.0        # at or below this the fix is GPS jitter
EARTH_RADIUS_M = 6_371_008.8  # IUGG mean radius


@dataclass(frozen=True)
class FilterResult:
    """An accepted sample.

    Parameters
    ----------
    speed_kmh:
        Filtered speed in km/h, always >= 0.
    meaningful:
        True when ``speed_kmh > MEANINGFUL_KMH``; gates averaging and distance.
    count_distance:
        True when a distance delta was computed against the previous position.
    distance_km:
        Great-circle distance from the previous position (0 unless counted).
    """

    speed_kmh: float
    meaningful: bool
    count_distance: bool
    distance_km: float = 0.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres between two WGS84 coordinates."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def filtered_speed_kmh(speed_mps: float) -> float | None:
    """Convert *speed_mps* to km/h, clamping negatives to 0.

    Returns None when the reading must be rejected: above
    ``MAX_PLAUSIBLE_KMH`` or not a finite number.
    """
    if not math.isfinite(speed_mps):
        return None
    speed_kmh = speed_mps * MPS_TO_KMH
    if speed_kmh < 0:
        speed_kmh = 0.0
    if speed_kmh > MAX_PLAUSIBLE_KMH:
        return None
    return speed_kmh


def filter_sample(
    sample: PositionSample, last_position: Coordinate | None
) -> FilterResult | None:
    """Run the filter on *sample*; return None if it is rejected.

    Fixes with any non-finite field are rejected like implausible speeds.

    Distance is only counted when the sample is meaningful and a previous
    accepted position exists.
    """
    if not sample.is_valid():
        return None
    speed_kmh = filtered_speed_kmh(sample.speed_mps)
    if speed_kmh is None:
        return None

    meaningful = speed_kmh > MEANINGFUL_KMH
    if meaningful and last_position is not None:
        meters = haversine_m(
            last_position.latitude,
            last_position.longitude,
            sample.latitude,
            sample.longitude,
        )
        return FilterResult(speed_kmh, True, True, meters / 1000.0)

    return FilterResult(speed_kmh, meaningful, False)
