"""TripSession — stateful trip accumulator with start/stop/reset lifecycle."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from tripmeter.telemetry.models import Coordinate, PositionSample
from tripmeter.trip.filter import filter_sample
from tripmeter.trip.models import LiveReading, TripSnapshot, TripState, TripStats
from tripmeter.trip.units import SpeedUnit, parse_unit
from tripmeter.trip.warning import DEFAULT_SPEED_LIMIT_KMH, SpeedLimitWarning

_logger = logging.getLogger(__name__)

Observer = Callable[[TripSnapshot], None]


class TripSession:
    """Owns the trip statistics and turns position fixes into them.

    States are ``IDLE`` → ``TRACKING`` → ``STOPPED`` → (``reset``) ``IDLE``.
    Redundant transitions are no-ops.  Samples and ticks that arrive while not
    tracking are dropped, so a late callback from a cancelled source cannot
    mutate the trip.

    Parameters
    ----------
    position_source:
        Object with ``subscribe(callback) -> handle`` where ``handle.cancel()``
        stops delivery, e.g.
        :class:`~tripmeter.hotpath.event_stream.PositionEventStream`.
        When None, samples are fed by calling :meth:`on_sample` directly.
    ticker:
        Object with ``schedule(interval_s, callback) -> handle``, e.g.
        :class:`~tripmeter.hotpath.ticker.DurationTicker`.  Ticks only prompt
        observers to re-read the duration.
    alert_sink:
        Object with ``alert(speed_kmh)``; called each time the speed-limit
        warning becomes active.
    speed_limit_kmh:
        Initial warning threshold.
    speed_unit:
        Initial display unit.
    tick_interval_s:
        Interval passed to the ticker.
    clock:
        Returns the current time in seconds; durations derive from it only.
    """

    def __init__(
        self,
        position_source: Any | None = None,
        ticker: Any | None = None,
        alert_sink: Any | None = None,
        *,
        speed_limit_kmh: float = DEFAULT_SPEED_LIMIT_KMH,
        speed_unit: SpeedUnit | str = SpeedUnit.KMH,
        tick_interval_s: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = position_source
        self._ticker = ticker
        self._alert_sink = alert_sink
        self._tick_interval_s = tick_interval_s
        self._clock = clock

        self._lock = threading.RLock()
        self._state = TripState.IDLE
        self._stats = TripStats()
        self._live = LiveReading()
        self._warning = SpeedLimitWarning(speed_limit_kmh)
        self._unit = parse_unit(speed_unit)

        self._subscription: Any | None = None
        self._timer: Any | None = None
        self._observers: list[Observer] = []

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def speed_limit_kmh(self) -> float:
        return self._warning.limit_kmh

    @speed_limit_kmh.setter
    def speed_limit_kmh(self, value: float) -> None:
        with self._lock:
            self._warning.limit_kmh = float(value)
            snap = self._snapshot_locked()
        self._notify(snap)

    @property
    def speed_unit(self) -> SpeedUnit:
        return self._unit

    @speed_unit.setter
    def speed_unit(self, value: SpeedUnit | str) -> None:
        with self._lock:
            self._unit = parse_unit(value)
            snap = self._snapshot_locked()
        self._notify(snap)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> TripState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state is TripState.TRACKING

    def start(self) -> None:
        """Begin tracking.  No-op while already tracking.

        Starting from ``STOPPED`` keeps the accumulated statistics and opens a
        new timing window.
        """
        with self._lock:
            if self._state is TripState.TRACKING:
                return
            self._release_handles()

            self._stats.start_time = self._clock()
            self._stats.end_time = None
            self._live.last_position = None
            self._state = TripState.TRACKING

            if self._source is not None:
                self._subscription = self._source.subscribe(self.on_sample)
            if self._ticker is not None:
                self._timer = self._ticker.schedule(self._tick_interval_s, self.on_tick)

            _logger.info("Tracking started at %.3f", self._stats.start_time)
            snap = self._snapshot_locked()
        self._notify(snap)

    def stop(self) -> None:
        """Stop tracking and freeze the duration.  No-op unless tracking."""
        with self._lock:
            if not self._stop_locked():
                return
            snap = self._snapshot_locked()
        self._notify(snap)

    def reset(self) -> None:
        """Discard all statistics and return to ``IDLE``, stopping first if needed."""
        with self._lock:
            self._stop_locked()
            self._stats.reset()
            self._live = LiveReading()
            self._warning.clear()
            self._state = TripState.IDLE
            _logger.info("Trip reset")
            snap = self._snapshot_locked()
        self._notify(snap)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def on_sample(self, sample: PositionSample) -> bool:
        """Process one position fix.

        Returns True if the sample was accepted.  Samples are ignored while
        not tracking and rejected silently when the filter drops them.
        """
        with self._lock:
            if self._state is not TripState.TRACKING:
                _logger.debug("Dropping sample received while %s", self._state.value)
                return False

            result = filter_sample(sample, self._live.last_position)
            if result is None:
                _logger.debug("Rejected fix %s", sample)
                return False

            speed = result.speed_kmh
            stats = self._stats
            if speed > stats.max_speed_kmh:
                stats.max_speed_kmh = speed
            if result.meaningful:
                stats.speed_samples.append(speed)
            if result.count_distance:
                stats.total_distance_km += result.distance_km

            self._live.current_speed_kmh = speed
            self._live.altitude_m = sample.altitude_m
            self._live.heading_deg = sample.heading_deg
            self._live.last_position = Coordinate.of(sample)

            fire_alert = self._warning.check(speed)
            snap = self._snapshot_locked()

        if fire_alert and self._alert_sink is not None:
            self._alert_sink.alert(speed)
        self._notify(snap)
        return True

    def on_tick(self) -> None:
        """Duration refresh; notifies observers without touching trip data."""
        with self._lock:
            if self._state is not TripState.TRACKING:
                return
            snap = self._snapshot_locked()
        self._notify(snap)

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def snapshot(self) -> TripSnapshot:
        """Return an immutable view of the current trip."""
        with self._lock:
            return self._snapshot_locked()

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Call *observer* with a fresh snapshot after every change.

        Returns a function that removes the observer.
        """
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _stop_locked(self) -> bool:
        if self._state is not TripState.TRACKING:
            return False
        self._release_handles()
        self._stats.end_time = self._clock()
        self._live.current_speed_kmh = 0.0
        self._warning.clear()
        self._state = TripState.STOPPED
        _logger.info(
            "Tracking stopped at %.3f: %.3f km, max %.1f km/h",
            self._stats.end_time,
            self._stats.total_distance_km,
            self._stats.max_speed_kmh,
        )
        return True

    def _release_handles(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _snapshot_locked(self) -> TripSnapshot:
        stats = self._stats
        live = self._live
        return TripSnapshot(
            state=self._state,
            current_speed_kmh=live.current_speed_kmh,
            altitude_m=live.altitude_m,
            heading_deg=live.heading_deg,
            max_speed_kmh=stats.max_speed_kmh,
            average_speed_kmh=stats.average_speed_kmh,
            total_distance_km=stats.total_distance_km,
            duration_s=stats.duration_s(self._clock()),
            warning_active=self._warning.active,
            speed_limit_kmh=self._warning.limit_kmh,
            speed_unit=self._unit,
            start_time=stats.start_time,
            end_time=stats.end_time,
            sample_count=len(stats.speed_samples),
        )

    def _notify(self, snap: TripSnapshot) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            observer(snap)
