"""Speed-limit warning rule."""

from __future__ import annotations

DEFAULT_SPEED_LIMIT_KMH = 80.0


class SpeedLimitWarning:
    """Tracks whether the current speed is above *limit_kmh*.

    The warning is re-evaluated on every accepted sample and may toggle each
    time.  :meth:`check` reports only the rising edge so that the alert sink
    is signalled once per excursion above the limit.

    Parameters
    ----------
    limit_kmh:
        Threshold in km/h; the warning is active iff speed is strictly above it.
    """

    def __init__(self, limit_kmh: float = DEFAULT_SPEED_LIMIT_KMH) -> None:
        self.limit_kmh = float(limit_kmh)
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def check(self, speed_kmh: float) -> bool:
        """Update the warning for *speed_kmh*; return True if it just became active."""
        was_active = self._active
        self._active = speed_kmh > self.limit_kmh
        return self._active and not was_active

    def clear(self) -> None:
        """Deactivate without signalling."""
        self._active = False
