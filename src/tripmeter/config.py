"""Tracker configuration read from the environment.

Scripts call ``dotenv.load_dotenv()`` before :meth:`TrackerConfig.from_env`
so a ``.env`` file in the project root is honoured.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from tripmeter.trip.units import SpeedUnit, parse_unit
from tripmeter.trip.warning import DEFAULT_SPEED_LIMIT_KMH

ENV_SPEED_LIMIT = "TRIPMETER_SPEED_LIMIT_KMH"
ENV_SPEED_UNIT = "TRIPMETER_SPEED_UNIT"
ENV_POLL_HZ = "TRIPMETER_POLL_HZ"


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass
class TrackerConfig:
    """Runtime settings for a tracking session."""

    speed_limit_kmh: float = DEFAULT_SPEED_LIMIT_KMH
    speed_unit: SpeedUnit = SpeedUnit.KMH
    poll_hz: float = 1.0
    tick_interval_s: float = 1.0
    alert_freq: int = 880
    alert_duration_ms: int = 120

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> TrackerConfig:
        """Build a config from ``TRIPMETER_*`` variables, defaulting anything unset.

        Raises
        ------
        ValueError
            If a variable is set to an invalid value.
        """
        env = os.environ if env is None else env
        unit_raw = env.get(ENV_SPEED_UNIT, "").strip()
        try:
            unit = parse_unit(unit_raw) if unit_raw else SpeedUnit.KMH
        except ValueError as exc:
            raise ValueError(f"{ENV_SPEED_UNIT}: {exc}") from None
        return cls(
            speed_limit_kmh=_env_float(env, ENV_SPEED_LIMIT, DEFAULT_SPEED_LIMIT_KMH),
            speed_unit=unit,
            poll_hz=_env_float(env, ENV_POLL_HZ, 1.0),
        )
