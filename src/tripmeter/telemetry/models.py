"""Position data models."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class PositionSample:
    """A single position fix delivered by the platform location provider.

    Speed is passed through exactly as the sensor reported it; negative and
    extreme values are handled by the trip sample filter, not here.
    """

    latitude: float
    """Latitude in degrees [-90, 90]."""

    longitude: float
    """Longitude in degrees [-180, 180]."""

    speed_mps: float
    """Speed over ground in m/s. May be negative or garbage."""

    altitude_m: float
    """Altitude in metres."""

    heading_deg: float
    """Heading in degrees [0, 360)."""

    accuracy_m: float = 0.0
    """Horizontal accuracy radius in metres (0 when unknown)."""

    timestamp: float = 0.0
    """Fix time in epoch seconds."""

    def is_valid(self) -> bool:
        """Return True if all fields are finite (no NaN/Inf)."""
        floats = (
            self.latitude,
            self.longitude,
            self.speed_mps,
            self.altitude_m,
            self.heading_deg,
            self.accuracy_m,
            self.timestamp,
        )
        return all(math.isfinite(f) for f in floats)


@dataclass(frozen=True)
class Coordinate:
    """A bare latitude/longitude pair, used to remember the last accepted fix."""

    latitude: float
    longitude: float

    @classmethod
    def of(cls, sample: PositionSample) -> Coordinate:
        return cls(sample.latitude, sample.longitude)
