# src/peptidepk/simulate.py
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import numpy as np

from .types import (
    DoseEvent, DoseRecommendation, DrugProfile, PeakTroughStats, ScheduleStatus, Timestamp, WeeklyTotal, to_utc,
)
from .config import EngineSettings
from .solvers import build_time_series, cumulative_level, time_until_level
from .metrics import peak_trough_statistics
from .dosing import next_dose_recommendation, schedule_status, validate_weekly_total
from .helpers import split_doses_by_drug

LOGGER = logging.getLogger(__name__)


def run_single(profile: DrugProfile, doses: Sequence[DoseEvent], start_time: Timestamp,
               duration_h: float, step_h: float = 1.0):
    """
    Chart arrays for one peptide.

    Returns:
      t : hours since start_time
      C : estimated amount in the body (mg)
    """
    series = build_time_series(doses, profile, start_time, duration_h, step_h)
    return series.hours(), series.levels()


def run_multi(profiles: Mapping[str, DrugProfile], doses: Sequence[DoseEvent], start_time: Timestamp,
              duration_h: float, step_h: float = 1.0) -> dict[str, tuple[np.ndarray, np.ndarray]]:
    """
    Chart arrays for a history that mixes peptides. Each drug_id is evaluated
    with its own profile; doses never interact across peptides.
    """
    results: dict[str, tuple[np.ndarray, np.ndarray]] = {}
    for drug_id, own in split_doses_by_drug(doses).items():
        profile = profiles.get(drug_id)
        if profile is None:
            raise KeyError(f"Missing profile for drug_id '{drug_id}'.")
        results[drug_id] = run_single(profile, own, start_time, duration_h, step_h)
    return results


@dataclass(frozen=True)
class Overview:
    """Everything the dose page shows for one peptide at one instant."""
    current_level_mg: float
    t: np.ndarray
    C: np.ndarray
    stats: Optional[PeakTroughStats]
    recommendation: DoseRecommendation
    eta_full_curve_h: Optional[float]
    weekly: WeeklyTotal
    schedule: Optional[ScheduleStatus]


def overview(profile: DrugProfile, doses: Sequence[DoseEvent], now: Timestamp,
             settings: Optional[EngineSettings] = None) -> Overview:
    """
    Evaluate level, chart, statistics, dose timing, schedule position and weekly total for `now`,
    using `settings` (or its defaults) for window, resolution and target.
    """
    settings = settings or EngineSettings()
    at = to_utc(now)
    t, C = run_single(profile, doses, at, settings.chart_hours, settings.step_h)
    result = Overview(
        current_level_mg=cumulative_level(doses, profile, at),
        t=t,
        C=C,
        stats=peak_trough_statistics(doses, profile, settings.chart_hours, at, settings.step_h),
        recommendation=next_dose_recommendation(doses, profile, settings.target_level_mg, at),
        eta_full_curve_h=time_until_level(doses, profile, settings.target_level_mg, at,
                                          horizon_h=settings.forecast_horizon_h),
        weekly=validate_weekly_total(doses, profile, at),
        schedule=schedule_status(doses, profile, at, settings.dose_interval_h),
    )
    if not result.weekly.within_limit:
        LOGGER.info("%s weekly total %.2f mg exceeds limit %.2f mg",
                    profile.drug_id, result.weekly.total_mg, result.weekly.limit_mg)
    return result
