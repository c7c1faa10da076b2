import math
from datetime import timedelta

import numpy as np
import pytest

from peptidepk.types import DoseEvent, DrugProfile
from peptidepk.models.three_phase import RISING_FRACTION, contribution_curve, three_phase_level
from peptidepk.solvers import dose_contribution, cumulative_level


def test_reference_scenario_levels(t0, profile):
    """
    10 mg at T0 with a 5-day half-life:
      T0        -> 0 (nothing absorbed yet)
      T0 + 12 h -> halfway up the ramp, 10 * 0.5 * 0.8 = 4.0
      T0 + 24 h -> plateau, 10 * 0.95 = 9.5
      T0 + 168 h (one half-life past the plateau end at 48 h) -> 4.75
    """
    dose = DoseEvent(amount_mg=10.0, administered_at=t0)

    assert dose_contribution(dose, profile, t0) == 0.0
    assert math.isclose(dose_contribution(dose, profile, t0 + timedelta(hours=12)), 4.0)
    assert math.isclose(dose_contribution(dose, profile, t0 + timedelta(hours=24)), 9.5)
    assert math.isclose(dose_contribution(dose, profile, t0 + timedelta(hours=47.9)), 9.5)
    assert math.isclose(dose_contribution(dose, profile, t0 + timedelta(hours=48 + 120)), 4.75)


def test_half_life_with_full_peak(t0):
    """
    With peak_fraction = 1 the level one half-life after the plateau ends is A/2,
    and two half-lives later A/4.
    """
    p = DrugProfile(half_life_h=144.0, absorption_h=24.0, peak_fraction=1.0, weekly_limit_mg=12.0)
    dose = DoseEvent(amount_mg=8.0, administered_at=t0)
    plateau_end = t0 + timedelta(hours=p.plateau_end_h)

    assert math.isclose(dose_contribution(dose, p, plateau_end + timedelta(hours=144)), 4.0, rel_tol=1e-12)
    assert math.isclose(dose_contribution(dose, p, plateau_end + timedelta(hours=288)), 2.0, rel_tol=1e-12)


def test_rise_ends_below_peak():
    """The ramp approaches RISING_FRACTION of the dose, then steps up to the plateau."""
    p = DrugProfile(half_life_h=120.0, absorption_h=24.0, peak_fraction=0.95, weekly_limit_mg=15.0)
    just_before = three_phase_level(10.0, 24.0 - 1e-9, p)
    assert just_before == pytest.approx(10.0 * RISING_FRACTION)
    assert three_phase_level(10.0, 24.0, p) == pytest.approx(9.5)


def test_zero_absorption_starts_on_plateau():
    """absorption_h = 0 skips the ramp without dividing by zero."""
    p = DrugProfile(half_life_h=120.0, absorption_h=0.0, peak_fraction=0.9, weekly_limit_mg=15.0, plateau_h=0.0)
    assert three_phase_level(10.0, 0.0, p) == pytest.approx(9.0)
    assert three_phase_level(10.0, 120.0, p) == pytest.approx(4.5)
    curve = contribution_curve(10.0, np.array([-1.0, 0.0, 120.0]), p)
    assert np.allclose(curve, [0.0, 9.0, 4.5])


def test_vectorized_curve_matches_scalar(profile):
    """contribution_curve is the same piecewise function as three_phase_level."""
    elapsed = np.arange(-10.0, 600.0, 0.5)
    expected = np.array([three_phase_level(5.0, float(h), profile) for h in elapsed])
    assert np.allclose(contribution_curve(5.0, elapsed, profile), expected, rtol=1e-12, atol=0.0)


def test_decay_tail_never_reaches_zero(t0, profile):
    """Exponential tail: tiny but strictly positive months later."""
    dose = DoseEvent(amount_mg=10.0, administered_at=t0)
    level = cumulative_level([dose], profile, t0 + timedelta(days=90))
    assert 0.0 < level < 0.01
