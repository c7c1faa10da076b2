# src/peptidepk/solvers.py
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterator, Optional, Sequence

import numpy as np
from scipy.optimize import brentq

from .types import ConcentrationSample, DoseEvent, DrugProfile, Timestamp, to_utc
from .models.three_phase import contribution_curve, three_phase_level
from .helpers import MICROSECOND, hours_between

LOGGER = logging.getLogger(__name__)


def dose_contribution(dose: DoseEvent, profile: DrugProfile, at_time: Timestamp) -> float:
    """Amount (mg) still attributed to a single dose at `at_time`; 0 before injection."""
    elapsed_h = hours_between(dose.administered_at, to_utc(at_time))
    return three_phase_level(dose.amount_mg, elapsed_h, profile)


def cumulative_level(doses: Sequence[DoseEvent], profile: DrugProfile, at_time: Timestamp) -> float:
    """
    Superposed level of all doses at `at_time` (mg). Order of `doses` is irrelevant.
    """
    at = to_utc(at_time)
    return float(sum(dose_contribution(d, profile, at) for d in doses))


def levels_on_grid(doses: Sequence[DoseEvent], profile: DrugProfile,
                   start_time: Timestamp, offsets_h: np.ndarray) -> np.ndarray:
    """
    Vectorized cumulative level at `start_time + offsets_h` (hours).

    Sample instants are rounded to whole microseconds exactly as
    `start_time + timedelta(hours=h)` is, and elapsed hours are derived from
    integer microseconds, so each value matches cumulative_level at the same
    instant (phase boundaries included).
    """
    start = to_utc(start_time)
    offsets_us = np.array([timedelta(hours=float(h)) // MICROSECOND for h in np.ravel(offsets_h)],
                          dtype=np.int64)
    total = np.zeros(offsets_us.shape, dtype=float)
    for d in doses:
        lag_us = (start - d.administered_at) // MICROSECOND
        elapsed_h = (offsets_us + lag_us) / 1e6 / 3600.0
        total += contribution_curve(d.amount_mg, elapsed_h, profile)
    return total


@dataclass(frozen=True)
class TimeSeries:
    """
    Evenly spaced level samples from `start_time` to `start_time + duration_h`.

    Iterating computes samples on demand and can be repeated; nothing is cached.
    hours()/levels() give the same curve as numpy arrays for plotting.
    """
    doses: tuple[DoseEvent, ...]
    profile: DrugProfile
    start_time: datetime
    duration_h: float
    step_h: float

    def __len__(self) -> int:
        # small epsilon so e.g. 168 / 0.1 still lands on the endpoint
        return int(math.floor(self.duration_h / self.step_h + 1e-9)) + 1

    def __iter__(self) -> Iterator[ConcentrationSample]:
        for i in range(len(self)):
            at = self.start_time + timedelta(hours=i * self.step_h)
            yield ConcentrationSample(at_time=at, level_mg=cumulative_level(self.doses, self.profile, at))

    def hours(self) -> np.ndarray:
        """Sample offsets from start_time (h)."""
        return np.arange(len(self), dtype=float) * self.step_h

    def levels(self) -> np.ndarray:
        """Sample levels (mg), same order as hours()."""
        return levels_on_grid(self.doses, self.profile, self.start_time, self.hours())


def build_time_series(doses: Sequence[DoseEvent], profile: DrugProfile, start_time: Timestamp,
                      duration_h: float, step_h: float) -> TimeSeries:
    """
    Build the charting series. `start_time` is explicit so the result only
    depends on the arguments. The caller owns the duration/step ratio.
    """
    if not (step_h > 0):
        raise ValueError(f"step_h must be > 0 (got {step_h}).")
    if not (duration_h >= 0):
        raise ValueError(f"duration_h must be >= 0 (got {duration_h}).")
    series = TimeSeries(doses=tuple(doses), profile=profile, start_time=to_utc(start_time),
                        duration_h=float(duration_h), step_h=float(step_h))
    LOGGER.debug("time series: %d doses, %d samples from %s", len(series.doses), len(series), series.start_time)
    return series


def time_until_level(doses: Sequence[DoseEvent], profile: DrugProfile, target_level_mg: float,
                     now: Timestamp, horizon_h: float = 24.0 * 28, scan_step_h: float = 1.0) -> Optional[float]:
    """
    Hours from `now` until the full three-phase curve first falls to `target_level_mg`.

    Unlike the pure-decay estimate this accounts for recent doses that are
    still rising or on their plateau. The crossing is bracketed on a
    `scan_step_h` grid and refined with Brent's method.

    Returns 0.0 if the level is already at/below target, None if it stays
    above target for the whole horizon.
    """
    if not (target_level_mg > 0):
        raise ValueError(f"target_level_mg must be > 0 (got {target_level_mg}).")
    if not (scan_step_h > 0):
        raise ValueError(f"scan_step_h must be > 0 (got {scan_step_h}).")
    start = to_utc(now)

    def excess(h: float) -> float:
        return cumulative_level(doses, profile, start + timedelta(hours=h)) - target_level_mg

    if excess(0.0) <= 0:
        return 0.0

    grid = np.arange(0.0, horizon_h + scan_step_h, scan_step_h)
    grid = grid[grid <= horizon_h]
    below = np.nonzero(levels_on_grid(doses, profile, start, grid) <= target_level_mg)[0]
    if below.size == 0:
        LOGGER.debug("level stays above %.3f mg for %.0f h", target_level_mg, horizon_h)
        return None

    if below[0] == 0:
        return 0.0
    hi = float(grid[below[0]])
    lo = float(grid[below[0] - 1])
    if excess(lo) <= 0:
        return lo
    if excess(hi) >= 0:
        return hi
    return float(brentq(excess, lo, hi, xtol=1e-6))
