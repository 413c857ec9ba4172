"""Trip data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from tripmeter.telemetry.models import Coordinate
from tripmeter.trip.units import SpeedUnit, convert


class TripState(Enum):
    """Session lifecycle state."""

    IDLE = "idle"
    TRACKING = "tracking"
    STOPPED = "stopped"


@dataclass
class TripStats:
    """Running trip aggregates.  All speeds in km/h, distance in km."""

    max_speed_kmh: float = 0.0
    total_distance_km: float = 0.0
    start_time: float | None = None
    end_time: float | None = None
    speed_samples: list[float] = field(default_factory=list)

    @property
    def average_speed_kmh(self) -> float:
        """Arithmetic mean of ``speed_samples`` (0 when empty)."""
        if not self.speed_samples:
            return 0.0
        return sum(self.speed_samples) / len(self.speed_samples)

    def duration_s(self, now: float) -> float:
        """Elapsed seconds from start to end (or *now* while running); 0 if never started."""
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else now
        return max(0.0, end - self.start_time)

    def reset(self) -> None:
        self.max_speed_kmh = 0.0
        self.total_distance_km = 0.0
        self.start_time = None
        self.end_time = None
        self.speed_samples.clear()


@dataclass
class LiveReading:
    """Latest accepted fix.  Overwritten on every accepted sample."""

    current_speed_kmh: float = 0.0
    altitude_m: float = 0.0
    heading_deg: float = 0.0
    last_position: Coordinate | None = None


@dataclass(frozen=True)
class TripSnapshot:
    """Read-only view of the session handed to the display layer.

    Speeds are always stored in km/h; use :meth:`in_unit` for display values.
    """

    state: TripState
    current_speed_kmh: float
    altitude_m: float
    heading_deg: float
    max_speed_kmh: float
    average_speed_kmh: float
    total_distance_km: float
    duration_s: float
    warning_active: bool
    speed_limit_kmh: float
    speed_unit: SpeedUnit
    start_time: float | None = None
    end_time: float | None = None
    sample_count: int = 0

    @property
    def is_tracking(self) -> bool:
        return self.state is TripState.TRACKING

    def in_unit(self, unit: SpeedUnit | str | None = None) -> dict[str, float]:
        """Return current/max/average speed converted to *unit* (default: ``speed_unit``)."""
        unit = self.speed_unit if unit is None else unit
        return {
            "current": convert(self.current_speed_kmh, unit),
            "max": convert(self.max_speed_kmh, unit),
            "average": convert(self.average_speed_kmh, unit),
        }
