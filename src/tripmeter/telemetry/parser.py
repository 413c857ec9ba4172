"""PositionParser — converts a raw location-provider fix to PositionSample."""

from __future__ import annotations

import math

from tripmeter.telemetry.models import PositionSample

# raw_key → (PositionSample field, clamp_min, clamp_max)
# clamp_min/max of None means no bound on that side.
_FIELD_MAP: tuple[tuple[str, str, float | None, float | None], ...] = (
    # raw_key       sample_field    min      max
    ("latitude",   "latitude",     -90.0,   90.0),
    ("longitude",  "longitude",    -180.0,  180.0),
    ("altitude",   "altitude_m",   None,    None),
    ("accuracy",   "accuracy_m",   0.0,     None),
    ("timestamp",  "timestamp",    0.0,     None),
)


def _sanitize(value: float, lo: float | None, hi: float | None) -> float:
    """Return value clamped to [lo, hi]; NaN/Inf pass through for the trip filter to reject."""
    if not math.isfinite(value):
        return value
    if lo is not None and value < lo:
        value = lo
    if hi is not None and value > hi:
        value = hi
    return value


def normalize_heading(value: float) -> float:
    """Fold *value* into [0, 360). Non-finite headings are returned unchanged."""
    if not math.isfinite(value):
        return value
    heading = value % 360.0
    # -1e-20 % 360 rounds to 360.0
    return 0.0 if heading >= 360.0 else heading


class PositionParser:
    """Parses a raw location fix dict into a :class:`PositionSample`.

    The raw dict uses the provider's key names (``"latitude"``, ``"speed"``,
    ``"heading"`` ...).  Coordinates are clamped to their valid ranges and
    heading is folded into [0, 360).  Speed and non-finite values are left
    untouched; the trip filter rejects fixes that are not
    :meth:`~tripmeter.telemetry.models.PositionSample.is_valid`.
    """

    def parse(self, raw: dict) -> PositionSample:
        """Convert *raw* provider data to a :class:`PositionSample`."""
        kwargs: dict = {}

        for raw_key, sample_field, lo, hi in _FIELD_MAP:
            val = float(raw.get(raw_key) or 0.0)
            kwargs[sample_field] = _sanitize(val, lo, hi)

        kwargs["speed_mps"] = float(raw.get("speed") or 0.0)
        kwargs["heading_deg"] = normalize_heading(float(raw.get("heading") or 0.0))

        return PositionSample(**kwargs)
