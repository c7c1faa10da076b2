# src/peptidepk/types.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

# Timestamps are tz-aware UTC datetimes; durations are kept in HOURS.
Timestamp = Union[datetime, str]


def to_utc(value: Timestamp) -> datetime:
    """
    Normalize a timestamp to a tz-aware UTC datetime.

    Accepts datetimes (naive ones are taken to already be UTC) and ISO-8601
    strings such as "2025-01-06T09:00:00Z" or "2025-01-06T10:00:00+01:00".
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Unrecognized timestamp {value!r}; expected ISO-8601.") from None
    if not isinstance(value, datetime):
        raise TypeError(f"Expected datetime or ISO-8601 string (got {type(value).__name__}).")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class DrugProfile:
    """
    Elimination/absorption parameters for one peptide.

    half_life_h     : elimination half-life (h)
    absorption_h    : length of the rising phase after injection (h), 0 disables it
    peak_fraction   : fraction of the dose treated as the plateau level, in (0, 1]
    weekly_limit_mg : max cumulative amount in any trailing 7-day window (mg)
    plateau_h       : how long the level holds at peak before decaying (h)
    drug_id         : identifier of the peptide this profile describes
    """
    half_life_h: float
    absorption_h: float
    peak_fraction: float
    weekly_limit_mg: float
    plateau_h: float = 24.0
    drug_id: str = "default"

    def __post_init__(self) -> None:
        if not (self.half_life_h > 0):
            raise ValueError(f"half_life_h must be > 0 (got {self.half_life_h}).")
        if not (self.absorption_h >= 0):
            raise ValueError(f"absorption_h must be >= 0 (got {self.absorption_h}).")
        if not (self.plateau_h >= 0):
            raise ValueError(f"plateau_h must be >= 0 (got {self.plateau_h}).")
        if not (0 < self.peak_fraction <= 1):
            raise ValueError(f"peak_fraction must be in (0, 1] (got {self.peak_fraction}).")
        if not (self.weekly_limit_mg > 0):
            raise ValueError(f"weekly_limit_mg must be > 0 (got {self.weekly_limit_mg}).")

    @property
    def plateau_end_h(self) -> float:
        """Hours after administration at which exponential decay starts."""
        return self.absorption_h + self.plateau_h


@dataclass(frozen=True)
class DoseEvent:
    """
    A single logged injection.

    amount_mg       : dose size in milligrams
    administered_at : when it was injected (normalized to UTC)
    drug_id         : peptide the dose belongs to (e.g., "tirzepatide")
    injection_site  : free-form site label (e.g., "abdomen"), not used by the model
    notes           : free-form user notes
    """
    amount_mg: float
    administered_at: datetime
    drug_id: str = "default"
    injection_site: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if not (self.amount_mg > 0):
            raise ValueError(f"amount_mg must be > 0 (got {self.amount_mg}).")
        object.__setattr__(self, "amount_mg", float(self.amount_mg))
        object.__setattr__(self, "administered_at", to_utc(self.administered_at))


@dataclass(frozen=True)
class ConcentrationSample:
    """Estimated amount in the body (mg) at one instant."""
    at_time: datetime
    level_mg: float


@dataclass(frozen=True)
class PeakTroughStats:
    """
    peak_mg / trough_mg : highest and lowest sampled level in the window (mg)
    peak_at / trough_at : when they occur (first sample on ties)
    fluctuation_pct     : (peak - trough) / peak * 100, 0 for a flat-zero window
    """
    peak_mg: float
    trough_mg: float
    peak_at: datetime
    trough_at: datetime
    fluctuation_pct: float


@dataclass(frozen=True)
class DoseRecommendation:
    """
    due_now          : level is already at/below target
    eta_hours        : hours until the target is reached under pure decay (None when due_now)
    current_level_mg : level at the query time
    """
    due_now: bool
    eta_hours: Optional[float]
    current_level_mg: float


@dataclass(frozen=True)
class WeeklyTotal:
    """
    total_mg     : amount given in the trailing 7 days [now - 7d, now]
    limit_mg     : the profile's weekly limit
    remaining_mg : limit - total, negative when the limit is exceeded
    within_limit : total <= limit
    """
    total_mg: float
    limit_mg: float
    remaining_mg: float
    within_limit: bool


@dataclass(frozen=True)
class ScheduleStatus:
    """
    Where the user stands relative to their latest dose.

    last_dose_at            : most recent dose at or before the query time
    hours_since_last        : hours elapsed since that dose
    hours_to_next_scheduled : interval - hours_since_last (negative when overdue)
    hours_to_peak           : hours until that dose reaches its plateau, None once reached
    """
    last_dose_at: datetime
    hours_since_last: float
    hours_to_next_scheduled: float
    hours_to_peak: Optional[float]
