"""PositionEventStream — polling loop with drop-oldest overflow and subscriptions."""

from __future__ import annotations

import contextlib
import logging
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from tripmeter.telemetry.models import PositionSample

_logger = logging.getLogger(__name__)


@dataclass
class PositionEvent:
    """A position fix with the monotonic time it was read."""

    sample: PositionSample
    timestamp: float  # time.monotonic() seconds


class Subscription:
    """Handle returned by :meth:`PositionEventStream.subscribe`."""

    def __init__(self, stream: PositionEventStream, callback: Callable[[PositionSample], object]) -> None:
        self._stream = stream
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Stop delivery to this subscriber.  Safe to call more than once."""
        if self._active:
            self._active = False
            self._stream._remove(self)


class PositionEventStream:
    """Polls a position reader at *target_hz* and enqueues :class:`PositionEvent`.

    The polling runs on a background thread; delivery to subscribers happens
    on whichever thread calls :meth:`pump`, so subscribers see samples one at
    a time and in order.  When the internal queue is full the *oldest* event is
    discarded so that the consumer always sees the most recent fix.

    Parameters
    ----------
    reader:
        Object with ``read_sample() -> PositionSample | None``.
    target_hz:
        Polling frequency in Hz.
    queue_maxsize:
        Maximum number of events buffered before drop-oldest kicks in.
    """

    def __init__(
        self,
        reader,
        target_hz: float = 1.0,
        queue_maxsize: int = 120,
    ) -> None:
        self._reader = reader
        self._interval = 1.0 / target_hz
        self._queue: queue.Queue[PositionEvent] = queue.Queue(maxsize=queue_maxsize)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._subs: list[Subscription] = []
        self._subs_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the background polling thread."""
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="PositionStream")
        self._thread.start()

    def stop(self) -> None:
        """Signal the polling thread to stop and join it."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

    def subscribe(self, callback: Callable[[PositionSample], object]) -> Subscription:
        """Deliver every pumped sample to *callback* until the handle is cancelled."""
        sub = Subscription(self, callback)
        with self._subs_lock:
            self._subs.append(sub)
        return sub

    def subscriber_count(self) -> int:
        with self._subs_lock:
            return len(self._subs)

    def get_event(self, timeout: float = 0.1) -> PositionEvent | None:
        """Return the next queued event, or None if none arrives within *timeout* s."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def pump(self, timeout: float = 0.0) -> bool:
        """Deliver at most one queued event to the active subscribers.

        Returns True if an event was taken off the queue.
        """
        event = self.get_event(timeout=timeout)
        if event is None:
            return False
        with self._subs_lock:
            subs = list(self._subs)
        for sub in subs:
            # a subscriber may cancel another one mid-delivery
            if sub.active:
                sub.callback(event.sample)
        return True

    def queue_size(self) -> int:
        """Return the current number of buffered events."""
        return self._queue.qsize()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _remove(self, sub: Subscription) -> None:
        with self._subs_lock:
            if sub in self._subs:
                self._subs.remove(sub)

    def _run(self) -> None:
        while not self._stop_event.is_set():
            t0 = time.monotonic()
            try:
                sample = self._reader.read_sample()
            except Exception as exc:
                _logger.warning("Position read failed: %s", exc)
            else:
                if sample is not None:
                    self._enqueue(PositionEvent(sample=sample, timestamp=t0))
            elapsed = time.monotonic() - t0
            wait = self._interval - elapsed
            if wait > 0:
                self._stop_event.wait(wait)

    def _enqueue(self, event: PositionEvent) -> None:
        """Put *event* in the queue; drop oldest if full."""
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            with contextlib.suppress(queue.Empty):
                self._queue.get_nowait()
            with contextlib.suppress(queue.Full):
                self._queue.put_nowait(event)
