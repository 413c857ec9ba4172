"""Alert sinks — speed-limit beeps via winsound, with NullAlertSink for tests."""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass


@dataclass
class AlertConfig:
    """Frequency and duration of the speed-limit beep."""

    freq: int = 880         # Hz
    duration_ms: int = 120  # ms


class NullAlertSink:
    """No-op sink; records alerted speeds for test assertions."""

    def __init__(self) -> None:
        self.alerts: list[float] = []

    def alert(self, speed_kmh: float) -> None:
        self.alerts.append(speed_kmh)


class BeepAlertSink:
    """Beeps via winsound.Beep in a daemon thread (fire-and-forget, Windows only)."""

    def __init__(self, config: AlertConfig | None = None) -> None:
        self._cfg = config or AlertConfig()

    def alert(self, speed_kmh: float) -> None:
        if sys.platform != "win32":
            return
        import winsound

        threading.Thread(
            target=winsound.Beep, args=(self._cfg.freq, self._cfg.duration_ms), daemon=True
        ).start()
