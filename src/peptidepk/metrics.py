# src/peptidepk/metrics.py
from datetime import timedelta
from typing import Optional, Sequence, Tuple

import numpy as np

from .types import DoseEvent, DrugProfile, PeakTroughStats, Timestamp
from .solvers import build_time_series


def cmax_tmax(t: np.ndarray, C: np.ndarray) -> Tuple[float, float]:
    """Return peak level (mg) and its time (h). First occurrence wins on ties."""
    idx = np.argmax(C)
    return float(C[idx]), float(t[idx])

def cmin_tmin(t: np.ndarray, C: np.ndarray) -> Tuple[float, float]:
    """Return trough level (mg) and its time (h). First occurrence wins on ties."""
    idx = np.argmin(C)
    return float(C[idx]), float(t[idx])

def fluctuation_pct(peak: float, trough: float) -> float:
    """
    Swing between peak and trough as a percentage of the peak.
    Defined as 0 for a flat-zero curve.
    """
    if peak <= 0:
        return 0.0
    return (peak - trough) / peak * 100.0


def peak_trough_statistics(doses: Sequence[DoseEvent], profile: DrugProfile, window_h: float,
                           start_time: Timestamp, step_h: float = 1.0) -> Optional[PeakTroughStats]:
    """
    Peak/trough over [start_time, start_time + window_h], sampled every step_h hours.
    Returns None when there are no doses to compute from.
    """
    if len(doses) == 0:
        return None
    series = build_time_series(doses, profile, start_time, window_h, step_h)
    t = series.hours()
    C = series.levels()
    peak, t_peak = cmax_tmax(t, C)
    trough, t_trough = cmin_tmin(t, C)
    return PeakTroughStats(
        peak_mg=peak,
        trough_mg=trough,
        peak_at=series.start_time + timedelta(hours=t_peak),
        trough_at=series.start_time + timedelta(hours=t_trough),
        fluctuation_pct=fluctuation_pct(peak, trough),
    )
