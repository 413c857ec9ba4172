"""NmeaReader — reads NMEA 0183 logs into PositionSample sequences."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from datetime import datetime, timezone

import pynmea2

from tripmeter.telemetry.models import PositionSample
from tripmeter.telemetry.parser import normalize_heading

_logger = logging.getLogger(__name__)

_KNOTS_TO_MPS = 0.514444


class NmeaReadError(Exception):
    """Raised when an NMEA log cannot be opened."""


def _fix_time(msg: pynmea2.NMEASentence) -> float:
    """Return the RMC fix time in epoch seconds (0.0 when unavailable)."""
    date = getattr(msg, "datestamp", None)
    clock = getattr(msg, "timestamp", None)
    if date is None or clock is None:
        return 0.0
    dt = datetime.combine(date, clock)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


class NmeaReader:
    """Reads an NMEA log line by line and yields one sample per valid ``RMC`` fix.

    ``RMC`` sentences carry position, speed over ground and course; altitude
    comes from the most recent ``GGA`` sentence seen before the fix.

    Parameters
    ----------
    path:
        Path to a text file of NMEA sentences, one per line.
    """

    def __init__(self, path: str) -> None:
        self._path = path
        self._iter: Iterator[PositionSample] | None = None
        self._exhausted = False

    @property
    def exhausted(self) -> bool:
        """True once :meth:`read_sample` has returned None."""
        return self._exhausted

    def read(self) -> Iterator[PositionSample]:
        """Yield one :class:`PositionSample` per valid ``RMC`` sentence.

        Raises
        ------
        NmeaReadError
            If the file does not exist.
        """
        if not os.path.exists(self._path):
            raise NmeaReadError(f"File not found: {self._path!r}")

        altitude = 0.0
        with open(self._path, encoding="ascii", errors="replace") as fh:
            for lineno, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    msg = pynmea2.parse(line)
                except pynmea2.ParseError as exc:
                    _logger.debug("Skipping line %d of %s: %s", lineno, self._path, exc)
                    continue

                # typed fields are only converted on access
                sample = None
                try:
                    if msg.sentence_type == "GGA":
                        if getattr(msg, "altitude", None) is not None:
                            altitude = float(msg.altitude)
                    elif msg.sentence_type == "RMC":
                        sample = self._from_rmc(msg, altitude)
                except (TypeError, ValueError) as exc:
                    _logger.debug("Skipping line %d of %s: %s", lineno, self._path, exc)
                    continue

                if sample is not None:
                    yield sample

    def read_sample(self) -> PositionSample | None:
        """Return the next sample, or None once the log is exhausted.

        Polling interface used by
        :class:`~tripmeter.hotpath.event_stream.PositionEventStream`.
        """
        if self._iter is None:
            self._iter = self.read()
        sample = next(self._iter, None)
        if sample is None:
            self._exhausted = True
        return sample

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _from_rmc(self, msg: pynmea2.NMEASentence, altitude: float) -> PositionSample | None:
        if getattr(msg, "status", "V") != "A":
            return None
        latitude = float(msg.latitude)
        longitude = float(msg.longitude)
        knots = msg.spd_over_grnd
        course = msg.true_course
        return PositionSample(
            latitude=latitude,
            longitude=longitude,
            speed_mps=float(knots) * _KNOTS_TO_MPS if knots is not None else 0.0,
            altitude_m=altitude,
            heading_deg=normalize_heading(float(course)) if course is not None else 0.0,
            timestamp=_fix_time(msg),
        )
