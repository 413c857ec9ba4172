"""TrackerEngine — connects the location gate, position stream and trip session."""

from __future__ import annotations

import logging

from tripmeter.telemetry.gate import GateResult

_logger = logging.getLogger(__name__)


class TrackerEngine:
    """Drives a :class:`~tripmeter.trip.session.TripSession` from a live stream.

    Parameters
    ----------
    gate:
        A :class:`~tripmeter.telemetry.gate.LocationGate`.
    stream:
        A :class:`~tripmeter.hotpath.event_stream.PositionEventStream`; the
        session must have been built with it as its ``position_source``.
    session:
        The :class:`~tripmeter.trip.session.TripSession` to drive.
    """

    def __init__(self, gate, stream, session) -> None:
        self._gate = gate
        self._stream = stream
        self._session = session
        self._stream_running = False

    @property
    def session(self):
        return self._session

    def start(self) -> GateResult:
        """Check the gate, then start the stream and the session.

        Nothing is started when the gate reports the location unavailable.
        """
        result = self._gate.check()
        if not result.available:
            _logger.warning("Not starting trip: %s", result.message)
            return result
        if not self._stream_running:
            self._stream.start()
            self._stream_running = True
        self._session.start()
        return result

    def stop(self) -> None:
        """Stop the session, then the polling thread."""
        self._session.stop()
        if self._stream_running:
            self._stream.stop()
            self._stream_running = False

    def reset(self) -> None:
        """Stop if needed and clear the trip."""
        self.stop()
        self._session.reset()

    def tick(self, timeout: float = 0.0) -> bool:
        """Deliver one queued fix to the session.

        Returns True if a fix was taken from the stream.
        """
        return self._stream.pump(timeout=timeout)
