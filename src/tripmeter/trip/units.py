"""Speed units — km/h is the stored unit, everything else is display conversion."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import NamedTuple


class _UnitSpec(NamedTuple):
    from_kmh: Callable[[float], float]
    to_kmh: Callable[[float], float]
    label: str
    gauge_max: float


class SpeedUnit(Enum):
    """Display unit selector."""

    KMH = "kmh"
    MPH = "mph"
    MS = "ms"

    @property
    def label(self) -> str:
        """Human-readable unit label, e.g. ``'km/h'``."""
        return _UNITS[self].label

    @property
    def gauge_max(self) -> float:
        """Upper bound of the speed gauge scale in this unit."""
        return _UNITS[self].gauge_max


_MPH_PER_KMH = 0.621371

_UNITS: dict[SpeedUnit, _UnitSpec] = {
    SpeedUnit.KMH: _UnitSpec(lambda v: v, lambda v: v, "km/h", 240.0),
    SpeedUnit.MPH: _UnitSpec(lambda v: v * _MPH_PER_KMH, lambda v: v / _MPH_PER_KMH, "mph", 150.0),
    SpeedUnit.MS: _UnitSpec(lambda v: v / 3.6, lambda v: v * 3.6, "m/s", 70.0),
}


def parse_unit(unit: SpeedUnit | str) -> SpeedUnit:
    """Accept a :class:`SpeedUnit` or its string value (``"kmh"``, ``"mph"``, ``"ms"``).

    Raises
    ------
    ValueError
        If *unit* is not a known unit.
    """
    if isinstance(unit, SpeedUnit):
        return unit
    try:
        return SpeedUnit(str(unit).strip().lower())
    except ValueError:
        valid = ", ".join(u.value for u in SpeedUnit)
        raise ValueError(f"Unknown speed unit {unit!r}; expected one of: {valid}") from None


def convert(value_kmh: float, unit: SpeedUnit | str) -> float:
    """Convert a km/h value to *unit*. No rounding is applied."""
    return _UNITS[parse_unit(unit)].from_kmh(value_kmh)


def to_kmh(value: float, unit: SpeedUnit | str) -> float:
    """Inverse of :func:`convert`."""
    return _UNITS[parse_unit(unit)].to_kmh(value)
