"""Trip telemetry engine: sample filtering, statistics and session lifecycle."""

from tripmeter.trip.filter import FilterResult, filter_sample, haversine_m
from tripmeter.trip.models import LiveReading, TripSnapshot, TripState, TripStats
from tripmeter.trip.session import TripSession
from tripmeter.trip.units import SpeedUnit, convert, parse_unit, to_kmh
from tripmeter.trip.warning import DEFAULT_SPEED_LIMIT_KMH, SpeedLimitWarning

__all__ = [
    "DEFAULT_SPEED_LIMIT_KMH",
    "FilterResult",
    "LiveReading",
    "SpeedLimitWarning",
    "SpeedUnit",
    "TripSession",
    "TripSnapshot",
    "TripState",
    "TripStats",
    "convert",
    "filter_sample",
    "haversine_m",
    "parse_unit",
    "to_kmh",
]
