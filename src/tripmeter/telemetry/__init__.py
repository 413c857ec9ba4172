"""Position acquisition.

Public API
----------
PositionSample  - single position fix
PositionParser  - raw provider dict → PositionSample
NmeaReader      - reads NMEA 0183 logs
NmeaReadError   - raised when a log cannot be opened
LocationGate    - service/permission precondition check
GateResult      - outcome of a gate check
"""

from tripmeter.telemetry.gate import GateResult, LocationGate
from tripmeter.telemetry.models import Coordinate, PositionSample
from tripmeter.telemetry.nmea_reader import NmeaReader, NmeaReadError
from tripmeter.telemetry.parser import PositionParser

__all__ = [
    "Coordinate",
    "GateResult",
    "LocationGate",
    "NmeaReadError",
    "NmeaReader",
    "PositionParser",
    "PositionSample",
]
