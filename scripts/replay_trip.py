"""Replay an NMEA log through the trip tracker and print the dashboard.

Usage:
    uv run python scripts/replay_trip.py drive.nmea
    uv run python scripts/replay_trip.py drive.nmea --hz 20 --unit mph --limit 100
    uv run python scripts/replay_trip.py drive.nmea --beep      # audible speed alert (Windows)

Settings default to the TRIPMETER_* variables (see .env).
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

from tripmeter.config import TrackerConfig  # noqa: E402
from tripmeter.display.renderer import DashboardRenderer  # noqa: E402
from tripmeter.hotpath.alerts import AlertConfig, BeepAlertSink, NullAlertSink  # noqa: E402
from tripmeter.hotpath.engine import TrackerEngine  # noqa: E402
from tripmeter.hotpath.event_stream import PositionEventStream  # noqa: E402
from tripmeter.hotpath.ticker import DurationTicker  # noqa: E402
from tripmeter.telemetry.gate import LocationGate  # noqa: E402
from tripmeter.telemetry.nmea_reader import NmeaReader  # noqa: E402
from tripmeter.trip.session import TripSession  # noqa: E402


def _print_dashboard(view: dict) -> None:
    flag = "  ** SPEED LIMIT **" if view["warning"] else ""
    print(
        f"\r{view['speed']:>6} {view['unit']:<4} "
        f"max {view['max_speed']:>6}  avg {view['avg_speed']:>6}  "
        f"{view['distance']} km  {view['duration']}  "
        f"{view['heading']} {view['compass']:<2}  {view['altitude']}{flag}   ",
        end="",
        flush=True,
    )


def main() -> None:
    try:
        cfg = TrackerConfig.from_env()
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(2)

    ap = argparse.ArgumentParser(description="Trip meter — NMEA log replay")
    ap.add_argument("path", help="NMEA 0183 log file")
    ap.add_argument("--hz", type=float, default=cfg.poll_hz, help="Replay rate in fixes per second")
    ap.add_argument("--unit", default=cfg.speed_unit.value, choices=["kmh", "mph", "ms"])
    ap.add_argument("--limit", type=float, default=cfg.speed_limit_kmh, help="Speed limit in km/h")
    ap.add_argument("--beep", action="store_true", help="Beep when the speed limit is exceeded")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not os.path.exists(args.path):
        print(f"ERROR: file not found: {args.path}", file=sys.stderr)
        sys.exit(1)

    reader = NmeaReader(args.path)
    alert_sink = (
        BeepAlertSink(AlertConfig(cfg.alert_freq, cfg.alert_duration_ms))
        if args.beep
        else NullAlertSink()
    )
    stream = PositionEventStream(reader, target_hz=args.hz)
    session = TripSession(
        stream,
        DurationTicker(),
        alert_sink,
        speed_limit_kmh=args.limit,
        speed_unit=args.unit,
        tick_interval_s=cfg.tick_interval_s,
    )
    engine = TrackerEngine(LocationGate(), stream, session)
    renderer = DashboardRenderer()

    result = engine.start()
    if not result.available:
        print(f"ERROR: {result.message}", file=sys.stderr)
        sys.exit(1)

    try:
        while not (reader.exhausted and stream.queue_size() == 0):
            if engine.tick(timeout=0.1):
                _print_dashboard(renderer.render(session.snapshot()))
    except KeyboardInterrupt:
        pass
    finally:
        engine.stop()

    snap = session.snapshot()
    view = renderer.render(snap)
    print()
    print(f"Trip finished in {view['duration']}")
    print(f"  distance : {view['distance']} km")
    print(f"  max speed: {view['max_speed']} {view['unit']}")
    print(f"  avg speed: {view['avg_speed']} {view['unit']}")
    print(f"  fixes    : {snap.sample_count} moving")


if __name__ == "__main__":
    main()
