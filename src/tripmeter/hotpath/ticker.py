"""Duration tickers — periodic refresh timers for the trip display."""

from __future__ import annotations

import threading
from collections.abc import Callable


class TimerHandle:
    """A running periodic timer on a daemon thread.

    :meth:`cancel` is idempotent and does not block.  A callback already in
    progress when it is called may still complete, so callbacks must check
    their own state before acting.
    """

    def __init__(self, interval_s: float, callback: Callable[[], object]) -> None:
        self._interval_s = interval_s
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True, name="DurationTicker")

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        """Stop the timer.  Safe to call more than once, including from the callback."""
        self._stop_event.set()

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval_s):
            self._callback()


class DurationTicker:
    """Schedules :class:`TimerHandle` threads."""

    def schedule(self, interval_s: float, callback: Callable[[], object]) -> TimerHandle:
        handle = TimerHandle(interval_s, callback)
        handle.start()
        return handle


class ManualTimer:
    """Timer handle driven by :class:`ManualTicker`."""

    def __init__(self, interval_s: float, callback: Callable[[], object]) -> None:
        self.interval_s = interval_s
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTicker:
    """No-thread ticker; records schedules and fires them on :meth:`advance`."""

    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def schedule(self, interval_s: float, callback: Callable[[], object]) -> ManualTimer:
        timer = ManualTimer(interval_s, callback)
        self.timers.append(timer)
        return timer

    def active(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, ticks: int = 1) -> None:
        """Fire every active timer *ticks* times."""
        for _ in range(ticks):
            for timer in self.active():
                timer.callback()
