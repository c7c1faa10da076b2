"""Engine defaults, overridable from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Mapping


@dataclass(frozen=True)
class EngineSettings:
    """Defaults the presentation layer uses when it does not pass its own.

    ``chart_hours``
        Length of the charted window (one week).
    ``step_h``
        Spacing between chart samples.
    ``target_level_mg``
        Level below which the next dose is considered due.
    ``forecast_horizon_h``
        How far ahead :func:`peptidepk.solvers.time_until_level` searches.
    ``dose_interval_h``
        Planned spacing between doses (weekly).
    """

    chart_hours: float = 168.0
    step_h: float = 1.0
    target_level_mg: float = 0.1
    forecast_horizon_h: float = 24.0 * 28
    dose_interval_h: float = 168.0

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not (value > 0):
                raise ValueError(f"{f.name} must be > 0 (got {value}).")

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        prefix: str = "PEPTIDEPK_",
    ) -> "EngineSettings":
        """Create settings from environment variables.

        Each field maps to ``<prefix><FIELD_NAME>`` (e.g.
        ``PEPTIDEPK_CHART_HOURS=336``). Unset variables keep their default.
        """

        env = os.environ if env is None else env
        overrides: dict[str, float] = {}
        for f in fields(cls):
            key = f"{prefix}{f.name.upper()}"
            raw = env.get(key)
            if raw is None or not raw.strip():
                continue
            try:
                overrides[f.name] = float(raw)
            except ValueError:
                raise ValueError(f"{key} must be a number (got {raw!r}).") from None
        return cls(**overrides)
