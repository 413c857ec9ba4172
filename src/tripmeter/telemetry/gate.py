"""LocationGate — checks location service and permission before tracking starts."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

_logger = logging.getLogger(__name__)

GRANTED = "granted"
DENIED = "denied"
DENIED_FOREVER = "denied_forever"

MSG_SERVICE_DISABLED = "Location services are disabled. Please enable GPS."
MSG_DENIED = "Location permissions denied."
MSG_DENIED_FOREVER = "Location permissions permanently denied."


@dataclass(frozen=True)
class GateResult:
    """Outcome of a gate check; *message* is user-facing and empty when available."""

    available: bool
    message: str = ""


class AlwaysAvailableProvider:
    """Provider for log replays and desktop hosts with no permission model."""

    def service_enabled(self) -> bool:
        return True

    def check_permission(self) -> str:
        return GRANTED

    def request_permission(self) -> str:
        return GRANTED


class LocationGate:
    """Resolves whether the location source may be used.

    Parameters
    ----------
    provider:
        Object with ``service_enabled() -> bool``, ``check_permission() -> str``
        and ``request_permission() -> str``; permission strings are one of
        ``"granted"``, ``"denied"``, ``"denied_forever"``.
    """

    def __init__(self, provider: Any | None = None) -> None:
        self._provider = provider or AlwaysAvailableProvider()
        self._available: bool = False
        self._callbacks: list[Callable[[bool], None]] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def is_available(self) -> bool:
        """Result of the most recent :meth:`check`."""
        return self._available

    def check(self) -> GateResult:
        """Resolve service state and permission, requesting it once if denied.

        Never raises: provider errors are reported through the result.
        """
        try:
            result = self._resolve()
        except Exception as exc:
            result = GateResult(False, f"Error: {exc}")

        if not result.available:
            _logger.warning("Location unavailable: %s", result.message)

        if result.available != self._available:
            self._available = result.available
            self._fire_callbacks(result.available)

        return result

    def register_callback(self, callback: Callable[[bool], None]) -> None:
        """Register *callback* to be called whenever availability changes."""
        self._callbacks.append(callback)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve(self) -> GateResult:
        if not self._provider.service_enabled():
            return GateResult(False, MSG_SERVICE_DISABLED)

        permission = self._provider.check_permission()
        if permission == DENIED:
            permission = self._provider.request_permission()
            if permission == DENIED:
                return GateResult(False, MSG_DENIED)
        if permission == DENIED_FOREVER:
            return GateResult(False, MSG_DENIED_FOREVER)

        return GateResult(True)

    def _fire_callbacks(self, state: bool) -> None:
        for cb in self._callbacks:
            cb(state)
