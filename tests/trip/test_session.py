"""TripSession — lifecycle, statistics, warning and collaborator handles."""

from __future__ import annotations

import math
import threading
from unittest.mock import MagicMock

import pytest

from tripmeter.display.renderer import DashboardRenderer
from tripmeter.hotpath.alerts import NullAlertSink
from tripmeter.hotpath.ticker import ManualTicker
from tripmeter.telemetry.models import PositionSample
from tripmeter.telemetry.parser import PositionParser
from tripmeter.trip.models import TripState
from tripmeter.trip.session import TripSession
from tripmeter.trip.units import SpeedUnit


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _make_sample(**kwargs) -> PositionSample:
    defaults = dict(
        latitude=0.0,
        longitude=0.0,
        speed_mps=10.0,
        altitude_m=100.0,
        heading_deg=45.0,
    )
    defaults.update(kwargs)
    return PositionSample(**defaults)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(clock) -> TripSession:
    return TripSession(clock=clock)


# ---------------------------------------------------------------------------
# Initial state
# ---------------------------------------------------------------------------


def test_new_session_is_idle_and_at_rest(session):
    snap = session.snapshot()
    assert snap.state is TripState.IDLE
    assert snap.is_tracking is False
    assert snap.max_speed_kmh == 0.0
    assert snap.total_distance_km == 0.0
    assert snap.average_speed_kmh == 0.0
    assert snap.duration_s == 0.0
    assert snap.start_time is None
    assert snap.end_time is None


def test_samples_ignored_while_idle(session):
    assert session.on_sample(_make_sample(speed_mps=20.0)) is False
    assert session.snapshot().max_speed_kmh == 0.0


# ---------------------------------------------------------------------------
# Scenario A: statistics
# ---------------------------------------------------------------------------


def test_scenario_speed_samples_max_and_average(session, clock):
    session.start()
    for i, mps in enumerate((5.0, 10.0, 0.0)):
        clock.now += 1.0
        session.on_sample(_make_sample(longitude=0.001 * i, speed_mps=mps))

    snap = session.snapshot()
    assert session._stats.speed_samples == pytest.approx([18.0, 36.0])
    assert snap.max_speed_kmh == pytest.approx(36.0)
    assert snap.average_speed_kmh == pytest.approx(27.0)
    assert snap.sample_count == 2
    assert snap.current_speed_kmh == 0.0
    # only the 5 → 10 m/s hop counts: ~111 m
    assert snap.total_distance_km == pytest.approx(0.1112, abs=1e-3)


def test_max_speed_is_monotonic(session):
    session.start()
    seen = []
    for mps in (3.0, 12.0, 7.0, 20.0, -4.0, 1.0):
        session.on_sample(_make_sample(speed_mps=mps))
        seen.append(session.snapshot().max_speed_kmh)
    assert seen == sorted(seen)
    assert seen[-1] == pytest.approx(72.0)


def test_jitter_excluded_from_average(session):
    session.start()
    for mps in (0.1, 10.0, 0.2, -1.0, 20.0):
        session.on_sample(_make_sample(speed_mps=mps))
    assert session.snapshot().average_speed_kmh == pytest.approx(54.0)


def test_first_sample_contributes_no_distance(session):
    session.start()
    session.on_sample(_make_sample(latitude=10.0, speed_mps=30.0))
    assert session.snapshot().total_distance_km == 0.0


def test_distance_needs_meaningful_current_sample(session):
    session.start()
    session.on_sample(_make_sample(longitude=0.0, speed_mps=10.0))
    session.on_sample(_make_sample(longitude=0.01, speed_mps=0.1))
    assert session.snapshot().total_distance_km == 0.0
    # last position still moved to 0.01, so the next hop is from there
    session.on_sample(_make_sample(longitude=0.02, speed_mps=10.0))
    assert session.snapshot().total_distance_km == pytest.approx(1.112, abs=1e-2)


def test_live_reading_tracks_accepted_sample(session):
    session.start()
    session.on_sample(_make_sample(speed_mps=10.0, altitude_m=321.0, heading_deg=270.0))
    snap = session.snapshot()
    assert snap.current_speed_kmh == pytest.approx(36.0)
    assert snap.altitude_m == 321.0
    assert snap.heading_deg == 270.0


# ---------------------------------------------------------------------------
# Scenario B: glitch rejection
# ---------------------------------------------------------------------------


def test_glitch_sample_rejected_without_side_effects(session):
    session.start()
    session.on_sample(_make_sample(longitude=0.0, speed_mps=10.0))
    before = session.snapshot()
    last = session._live.last_position

    assert session.on_sample(_make_sample(longitude=5.0, speed_mps=150.0)) is False

    after = session.snapshot()
    assert after.max_speed_kmh == before.max_speed_kmh
    assert after.current_speed_kmh == before.current_speed_kmh
    assert after.total_distance_km == before.total_distance_km
    assert session._live.last_position == last


def test_nan_coordinate_fix_adds_no_distance(session):
    session.start()
    session.on_sample(_make_sample(latitude=0.0, longitude=0.0, speed_mps=10.0))
    assert session.on_sample(_make_sample(latitude=math.nan, speed_mps=10.0)) is False
    session.on_sample(_make_sample(latitude=0.0, longitude=0.01, speed_mps=10.0))

    # one hop from (0, 0) to (0, 0.01), not through the NaN fix
    assert session.snapshot().total_distance_km == pytest.approx(1.112, abs=1e-2)


def test_nan_heading_fix_rejected_and_renderable(session):
    session.start()
    session.on_sample(_make_sample(heading_deg=90.0))
    assert session.on_sample(_make_sample(heading_deg=math.nan)) is False

    snap = session.snapshot()
    assert snap.heading_deg == 90.0
    assert DashboardRenderer().render(snap)["compass"] == "E"


def test_parsed_nan_coordinate_does_not_jump_to_null_island(session):
    parser = PositionParser()
    session.start()
    session.on_sample(parser.parse({"latitude": 52.52, "longitude": 13.405, "speed": 10.0}))
    session.on_sample(parser.parse({"latitude": math.nan, "longitude": 13.405, "speed": 10.0}))
    session.on_sample(parser.parse({"latitude": 52.521, "longitude": 13.405, "speed": 10.0}))

    assert session.snapshot().total_distance_km == pytest.approx(0.1112, abs=1e-3)


# ---------------------------------------------------------------------------
# Scenario C: speed-limit warning
# ---------------------------------------------------------------------------


def test_warning_toggles_and_alerts_once(clock):
    sink = NullAlertSink()
    session = TripSession(alert_sink=sink, speed_limit_kmh=80.0, clock=clock)
    session.start()

    session.on_sample(_make_sample(speed_mps=25.0))  # 90 km/h
    assert session.snapshot().warning_active is True
    session.on_sample(_make_sample(speed_mps=26.0))  # still above
    assert len(sink.alerts) == 1
    assert sink.alerts[0] == pytest.approx(90.0)

    session.on_sample(_make_sample(speed_mps=70.0 / 3.6))
    assert session.snapshot().warning_active is False


def test_warning_cleared_by_sample_filtered_to_zero(clock):
    session = TripSession(speed_limit_kmh=50.0, clock=clock)
    session.start()
    session.on_sample(_make_sample(speed_mps=20.0))
    session.on_sample(_make_sample(speed_mps=-3.0))
    assert session.snapshot().warning_active is False


def test_speed_limit_mutable_at_any_time(session):
    session.speed_limit_kmh = 30
    session.start()
    session.on_sample(_make_sample(speed_mps=10.0))  # 36 km/h
    snap = session.snapshot()
    assert snap.speed_limit_kmh == 30.0
    assert snap.warning_active is True


def test_speed_unit_affects_only_display(session):
    session.start()
    session.on_sample(_make_sample(speed_mps=10.0))
    session.speed_unit = "mph"
    snap = session.snapshot()
    assert snap.speed_unit is SpeedUnit.MPH
    assert snap.max_speed_kmh == pytest.approx(36.0)
    assert snap.in_unit()["max"] == pytest.approx(36.0 * 0.621371)
    assert snap.in_unit("ms")["current"] == pytest.approx(10.0)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def test_start_sets_start_time_and_tracks(session, clock):
    session.start()
    snap = session.snapshot()
    assert snap.state is TripState.TRACKING
    assert snap.start_time == clock.now
    assert snap.end_time is None


def test_duration_advances_with_clock_while_tracking(session, clock):
    session.start()
    clock.now += 42.0
    assert session.snapshot().duration_s == pytest.approx(42.0)


def test_start_while_tracking_is_noop(clock):
    source = MagicMock()
    session = TripSession(position_source=source, clock=clock)
    session.start()
    first_start = session.snapshot().start_time
    clock.now += 10.0
    session.start()
    assert session.snapshot().start_time == first_start
    source.subscribe.assert_called_once()


def test_stop_freezes_duration_and_zeroes_speed(session, clock):
    session.start()
    session.on_sample(_make_sample(speed_mps=10.0))
    clock.now += 30.0
    session.stop()
    clock.now += 100.0

    snap = session.snapshot()
    assert snap.state is TripState.STOPPED
    assert snap.duration_s == pytest.approx(30.0)
    assert snap.current_speed_kmh == 0.0
    assert snap.max_speed_kmh == pytest.approx(36.0)


def test_stop_while_idle_is_noop(session):
    session.stop()
    snap = session.snapshot()
    assert snap.state is TripState.IDLE
    assert snap.end_time is None


def test_samples_ignored_after_stop(session):
    session.start()
    session.stop()
    assert session.on_sample(_make_sample(speed_mps=30.0)) is False
    assert session.snapshot().max_speed_kmh == 0.0


def test_scenario_stop_then_reset(session, clock):
    session.start()
    clock.now += 5.0
    session.stop()
    assert session.snapshot().duration_s == pytest.approx(5.0)
    assert session.snapshot().is_tracking is False

    clock.now += 5.0
    session.reset()
    snap = session.snapshot()
    assert snap.duration_s == 0.0
    assert snap.is_tracking is False
    assert snap.state is TripState.IDLE


@pytest.mark.parametrize("prior", ["idle", "tracking", "stopped"])
def test_reset_returns_to_rest_from_any_state(session, clock, prior):
    if prior != "idle":
        session.start()
        session.on_sample(_make_sample(longitude=0.0, speed_mps=30.0))
        session.on_sample(_make_sample(longitude=0.01, speed_mps=30.0))
    if prior == "stopped":
        session.stop()

    session.reset()

    snap = session.snapshot()
    assert snap.state is TripState.IDLE
    assert snap.max_speed_kmh == 0.0
    assert snap.total_distance_km == 0.0
    assert snap.start_time is None
    assert snap.end_time is None
    assert snap.warning_active is False
    assert session._stats.speed_samples == []


def test_restart_after_stop_keeps_statistics(session, clock):
    session.start()
    session.on_sample(_make_sample(longitude=0.0, speed_mps=10.0))
    session.on_sample(_make_sample(longitude=0.01, speed_mps=10.0))
    session.stop()
    distance = session.snapshot().total_distance_km

    clock.now += 60.0
    session.start()
    # first fix of the new run has no prior position
    session.on_sample(_make_sample(longitude=1.0, speed_mps=10.0))

    snap = session.snapshot()
    assert snap.total_distance_km == pytest.approx(distance)
    assert snap.start_time == clock.now
    assert snap.end_time is None
    assert snap.sample_count == 3


# ---------------------------------------------------------------------------
# Collaborator handles
# ---------------------------------------------------------------------------


def test_start_subscribes_and_schedules(clock):
    source = MagicMock()
    ticker = ManualTicker()
    session = TripSession(source, ticker, tick_interval_s=1.0, clock=clock)
    session.start()

    source.subscribe.assert_called_once_with(session.on_sample)
    assert len(ticker.active()) == 1
    assert ticker.active()[0].interval_s == 1.0


def test_stop_cancels_subscription_and_timer(clock):
    source = MagicMock()
    ticker = ManualTicker()
    session = TripSession(source, ticker, clock=clock)
    session.start()
    handle = source.subscribe.return_value

    session.stop()

    handle.cancel.assert_called_once()
    assert ticker.active() == []


def test_reset_while_tracking_cancels_handles(clock):
    source = MagicMock()
    ticker = ManualTicker()
    session = TripSession(source, ticker, clock=clock)
    session.start()
    session.reset()
    source.subscribe.return_value.cancel.assert_called_once()
    assert ticker.active() == []


def test_restart_replaces_handles(clock):
    source = MagicMock()
    first, second = MagicMock(), MagicMock()
    source.subscribe.side_effect = [first, second]
    ticker = ManualTicker()
    session = TripSession(source, ticker, clock=clock)

    session.start()
    session.stop()
    session.start()

    first.cancel.assert_called_once()
    second.cancel.assert_not_called()
    assert len(ticker.active()) == 1


def test_tick_notifies_without_mutation(clock):
    ticker = ManualTicker()
    session = TripSession(ticker=ticker, clock=clock)
    snaps = []
    session.subscribe(snaps.append)
    session.start()
    snaps.clear()

    clock.now += 3.0
    ticker.advance(3)

    assert len(snaps) == 3
    assert snaps[-1].duration_s == pytest.approx(3.0)
    assert snaps[-1].max_speed_kmh == 0.0


def test_late_tick_after_stop_is_dropped(clock):
    ticker = ManualTicker()
    session = TripSession(ticker=ticker, clock=clock)
    session.start()
    timer = ticker.active()[0]
    session.stop()

    snaps = []
    session.subscribe(snaps.append)
    timer.callback()  # fires after cancellation

    assert snaps == []


# ---------------------------------------------------------------------------
# Observers
# ---------------------------------------------------------------------------


def test_observer_receives_snapshot_per_change(session):
    snaps = []
    session.subscribe(snaps.append)
    session.start()
    session.on_sample(_make_sample(speed_mps=10.0))
    session.stop()

    assert [s.state for s in snaps] == [
        TripState.TRACKING,
        TripState.TRACKING,
        TripState.STOPPED,
    ]
    assert snaps[1].current_speed_kmh == pytest.approx(36.0)


def test_unsubscribe_stops_notifications(session):
    snaps = []
    unsubscribe = session.subscribe(snaps.append)
    unsubscribe()
    unsubscribe()  # second call harmless
    session.start()
    assert snaps == []


def test_snapshot_is_immutable(session):
    snap = session.snapshot()
    with pytest.raises(AttributeError):
        snap.max_speed_kmh = 99.0


class RecordingLock:
    """RLock that counts how often it is entered."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.entries = 0

    def __enter__(self):
        self.entries += 1
        return self._lock.__enter__()

    def __exit__(self, *exc):
        return self._lock.__exit__(*exc)


def test_subscribe_and_unsubscribe_hold_session_lock(session):
    lock = RecordingLock()
    session._lock = lock

    unsubscribe = session.subscribe(lambda snap: None)
    assert lock.entries == 1
    unsubscribe()
    assert lock.entries == 2


def test_concurrent_subscribers_all_registered(session):
    received = []
    threads = [
        threading.Thread(target=session.subscribe, args=(received.append,)) for _ in range(20)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    session.start()
    assert len(received) == 20
