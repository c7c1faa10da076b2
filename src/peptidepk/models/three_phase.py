# src/peptidepk/models/three_phase.py
import math

import numpy as np

from ..types import DrugProfile

# Fraction of the dose reached by the end of the linear rise. The level then
# steps up to peak_fraction for the plateau.
RISING_FRACTION = 0.8

LN2 = math.log(2.0)


def three_phase_level(amount_mg: float, elapsed_h: float, profile: DrugProfile) -> float:
    """
    Amount (mg) left from one dose `elapsed_h` hours after injection.

    This is a heuristic, not a compartmental ODE:
      rise    : 0 <= t < absorption_h            linear ramp up to RISING_FRACTION * dose
      plateau : absorption_h <= t < plateau_end   peak_fraction * dose
      decay   : t >= plateau_end                  first-order elimination from the plateau level
    Before injection (t < 0) the dose contributes nothing.
    """
    if elapsed_h < 0:
        return 0.0
    if elapsed_h < profile.absorption_h:
        return amount_mg * (elapsed_h / profile.absorption_h) * RISING_FRACTION
    plateau_level = amount_mg * profile.peak_fraction
    if elapsed_h < profile.plateau_end_h:
        return plateau_level
    k = LN2 / profile.half_life_h
    return plateau_level * math.exp(-k * (elapsed_h - profile.plateau_end_h))


def contribution_curve(amount_mg: float, elapsed_h: np.ndarray, profile: DrugProfile) -> np.ndarray:
    """
    Vectorized three_phase_level over an array of elapsed hours.
    """
    t = np.asarray(elapsed_h, dtype=float)
    plateau_level = amount_mg * profile.peak_fraction
    k = LN2 / profile.half_life_h

    # Evaluate each branch only on its own slice (avoids 0/0 when absorption_h == 0)
    out = np.zeros_like(t)
    rising = (t >= 0) & (t < profile.absorption_h)
    if np.any(rising):
        out[rising] = amount_mg * (t[rising] / profile.absorption_h) * RISING_FRACTION
    plateau = (t >= profile.absorption_h) & (t < profile.plateau_end_h)
    out[plateau] = plateau_level
    decaying = t >= profile.plateau_end_h
    out[decaying] = plateau_level * np.exp(-k * (t[decaying] - profile.plateau_end_h))
    return out
