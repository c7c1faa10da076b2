# src/peptidepk/dosing.py
from __future__ import annotations

import math
from datetime import timedelta
from typing import Iterable, Optional, Sequence, Tuple

from .types import DoseEvent, DoseRecommendation, DrugProfile, ScheduleStatus, Timestamp, WeeklyTotal, to_utc
from .helpers import WEEK, doses_in_window, hours_between
from .models.three_phase import LN2
from .solvers import cumulative_level
from .library import approved_doses


def single_dose(amount_mg: float, administered_at: Timestamp, *, drug_id: str = "default",
                injection_site: Optional[str] = None) -> Tuple[DoseEvent, ...]:
    """
    A one-dose history.
    Example: 2.5 mg tirzepatide injected into the abdomen on Monday 09:00 UTC.
    """
    _validate_positive("amount_mg", amount_mg)
    return (DoseEvent(amount_mg=float(amount_mg), administered_at=to_utc(administered_at),
                      drug_id=drug_id, injection_site=injection_site),)


def fixed_every_n_days(amount_mg: float, every_days: int, weeks: int, first_dose_at: Timestamp,
                       *, drug_id: str = "default") -> Tuple[DoseEvent, ...]:
    """
    A planned schedule like: 5 mg every 7 days for 12 weeks.

    amount_mg     : size of each dose, mg
    every_days    : spacing between doses, in whole days
    weeks         : total regimen length in weeks
    first_dose_at : time of the first injection
    drug_id       : peptide the doses belong to (default "default")

    Used to project future levels; the doses are not logged anywhere.
    """
    _validate_positive("amount_mg", amount_mg)
    _validate_positive_int("every_days", every_days)
    _validate_positive_int("weeks", weeks)
    start = to_utc(first_dose_at)

    total_days = weeks * 7
    # Dose days: 0, every_days, 2*every_days, ... < total_days
    return tuple(
        DoseEvent(amount_mg=float(amount_mg), administered_at=start + timedelta(days=day), drug_id=drug_id)
        for day in range(0, total_days, every_days)
    )


def from_explicit_schedule(entries: Iterable[Tuple[Timestamp, float]], *,
                           drug_id: str = "default") -> Tuple[DoseEvent, ...]:
    """
    Build a history from manual (administered_at, amount_mg) entries, e.g. a
    split weekly dose: [("2025-01-06T09:00Z", 7.5), ("2025-01-09T09:00Z", 7.5)]
    """
    doses: list[DoseEvent] = []
    for administered_at, amount_mg in entries:
        _validate_positive("amount_mg", amount_mg)
        doses.append(DoseEvent(amount_mg=float(amount_mg), administered_at=to_utc(administered_at),
                               drug_id=drug_id))
    doses.sort(key=lambda d: d.administered_at)
    return tuple(doses)


def combine_doses(*histories: Iterable[DoseEvent]) -> Tuple[DoseEvent, ...]:
    """
    Merge several dose collections (e.g. logged history + a planned schedule)
    into one chronological tuple. Doses of different peptides are kept as-is.
    """
    all_doses: list[DoseEvent] = []
    for h in histories:
        all_doses.extend(h)
    return tuple(sorted(all_doses, key=lambda d: (d.administered_at, d.drug_id)))


def next_dose_recommendation(doses: Sequence[DoseEvent], profile: DrugProfile,
                             target_level_mg: float, now: Timestamp) -> DoseRecommendation:
    """
    Is a dose due, and if not, roughly how many hours until the level decays to target.

    The ETA assumes pure exponential decay from the current level, ignoring
    any dose still rising or on its plateau. See solvers.time_until_level for
    the full-curve answer.
    """
    _validate_positive("target_level_mg", target_level_mg)
    current = cumulative_level(doses, profile, now)
    # current <= 0 lands here too: pure decay never reaches a positive target from zero
    if current <= target_level_mg:
        return DoseRecommendation(due_now=True, eta_hours=None, current_level_mg=current)

    k = LN2 / profile.half_life_h
    eta_h = math.log(current / target_level_mg) / k
    return DoseRecommendation(due_now=False, eta_hours=eta_h, current_level_mg=current)


def validate_weekly_total(doses: Sequence[DoseEvent], profile: DrugProfile, now: Timestamp) -> WeeklyTotal:
    """
    Sum doses given in the trailing 7 days ([now - 7d, now]) and compare with
    the profile's weekly limit. Only reports; blocking a submission is up to the caller.
    """
    recent = doses_in_window(doses, to_utc(now), WEEK)
    total = float(sum(d.amount_mg for d in recent))
    limit = float(profile.weekly_limit_mg)
    return WeeklyTotal(total_mg=total, limit_mg=limit, remaining_mg=limit - total,
                       within_limit=total <= limit)


def projected_weekly_total(doses: Sequence[DoseEvent], proposed: Sequence[DoseEvent],
                           profile: DrugProfile, now: Timestamp) -> WeeklyTotal:
    """Weekly total as it would be if `proposed` doses were logged too."""
    return validate_weekly_total([*doses, *proposed], profile, now)


def schedule_status(doses: Sequence[DoseEvent], profile: DrugProfile, now: Timestamp,
                    interval_h: float = 168.0) -> Optional[ScheduleStatus]:
    """
    Timing relative to the latest dose given at or before `now`: hours until
    the next one is due on a fixed `interval_h` schedule (weekly by default)
    and hours until that dose reaches its plateau.

    Returns None when nothing has been administered yet. Only reports; it
    does not schedule anything.
    """
    _validate_positive("interval_h", interval_h)
    at = to_utc(now)
    given = [d for d in doses if d.administered_at <= at]
    if not given:
        return None
    last = max(given, key=lambda d: d.administered_at)
    since_h = hours_between(last.administered_at, at)
    to_peak = profile.absorption_h - since_h if since_h < profile.absorption_h else None
    return ScheduleStatus(
        last_dose_at=last.administered_at,
        hours_since_last=since_h,
        hours_to_next_scheduled=interval_h - since_h,
        hours_to_peak=to_peak,
    )


def dose_options(drug_id: str, remaining_mg: Optional[float] = None) -> Tuple[float, ...]:
    """
    Approved dose steps for a peptide. With `remaining_mg` (split dosing),
    only steps that still fit in this week's allowance are offered.
    """
    steps = approved_doses(drug_id)
    if remaining_mg is None:
        return steps
    return tuple(s for s in steps if s <= remaining_mg)


# --------------------------
# Small input validators
# --------------------------
def _validate_positive(name: str, x: float) -> None:
    if not (x > 0):
        raise ValueError(f"{name} must be > 0 (got {x}).")

def _validate_positive_int(name: str, x: int) -> None:
    if not (isinstance(x, int) and x > 0):
        raise ValueError(f"{name} must be a positive integer (got {x}).")
