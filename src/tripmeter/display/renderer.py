"""Dashboard rendering — display strings for a trip snapshot."""

from __future__ import annotations

from tripmeter.trip.models import TripSnapshot
from tripmeter.trip.units import SpeedUnit, parse_unit

_COMPASS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


class DashboardRenderer:
    """Formats :class:`~tripmeter.trip.models.TripSnapshot` values for display.

    Pure data transformations with no side effects; the session is never
    touched.
    """

    def format_duration(self, seconds: float) -> str:
        """Format elapsed *seconds* as ``HH:MM:SS``.

        Examples
        --------
        >>> DashboardRenderer().format_duration(3725)
        '01:02:05'
        """
        total = int(max(0.0, seconds))
        hours, rem = divmod(total, 3600)
        minutes, secs = divmod(rem, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    def compass_point(self, heading_deg: float) -> str:
        """Return the 8-point compass direction for *heading_deg*."""
        return _COMPASS[int(((heading_deg % 360.0) + 22.5) // 45) % 8]

    def render(self, snap: TripSnapshot, unit: SpeedUnit | str | None = None) -> dict:
        """Return a display-ready dict from *snap*.

        Returns
        -------
        dict with keys:
            ``speed``, ``max_speed``, ``avg_speed`` – one decimal, display unit
            ``unit``       – unit label (e.g. ``'km/h'``)
            ``gauge_max``  – gauge scale maximum in the display unit
            ``distance``   – kilometres, two decimals
            ``duration``   – ``HH:MM:SS``
            ``heading``    – degrees with no decimals, e.g. ``'87°'``
            ``compass``    – 8-point direction letter(s)
            ``altitude``   – metres, e.g. ``'312 m'``
            ``tracking``   – bool
            ``warning``    – bool
        """
        display_unit = snap.speed_unit if unit is None else parse_unit(unit)
        speeds = snap.in_unit(display_unit)
        return {
            "speed": f"{speeds['current']:.1f}",
            "max_speed": f"{speeds['max']:.1f}",
            "avg_speed": f"{speeds['average']:.1f}",
            "unit": display_unit.label,
            "gauge_max": display_unit.gauge_max,
            "distance": f"{snap.total_distance_km:.2f}",
            "duration": self.format_duration(snap.duration_s),
            "heading": f"{snap.heading_deg:.0f}°",
            "compass": self.compass_point(snap.heading_deg),
            "altitude": f"{snap.altitude_m:.0f} m",
            "tracking": snap.is_tracking,
            "warning": snap.warning_active,
        }
