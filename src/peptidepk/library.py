# src/peptidepk/library.py
"""
Static peptide table: PK profile and approved dose steps per peptide.

Only peptides with a profile here can be charted; the rest of the tracker's
peptide library is plain catalogue data.
"""
from typing import Mapping, Tuple

from .types import DrugProfile

TIRZEPATIDE = DrugProfile(
    half_life_h=5 * 24.0,
    absorption_h=24.0,
    peak_fraction=0.95,
    weekly_limit_mg=15.0,
    plateau_h=24.0,
    drug_id="tirzepatide",
)

RETATRUTIDE = DrugProfile(
    half_life_h=6 * 24.0,
    absorption_h=24.0,
    peak_fraction=0.95,
    weekly_limit_mg=12.0,
    plateau_h=24.0,
    drug_id="retatrutide",
)

PROFILES: Mapping[str, DrugProfile] = {p.drug_id: p for p in (TIRZEPATIDE, RETATRUTIDE)}

APPROVED_DOSES_MG: Mapping[str, Tuple[float, ...]] = {
    "tirzepatide": (2.5, 5.0, 7.5, 10.0, 12.5, 15.0),
    "retatrutide": (2.0, 4.0, 6.0, 8.0, 10.0, 12.0),
}


def resolve_drug_id(name: str) -> str:
    """
    Map a peptide id or display name ("Tirzepatide", "Retatrutide 10mg vial")
    onto a known drug_id. Raises KeyError if nothing matches.
    """
    key = name.strip().lower()
    if key in PROFILES:
        return key
    for drug_id in PROFILES:
        if drug_id in key:
            return drug_id
    raise KeyError(f"No PK profile for peptide '{name}'.")


def get_profile(name: str) -> DrugProfile:
    return PROFILES[resolve_drug_id(name)]


def approved_doses(name: str) -> Tuple[float, ...]:
    return APPROVED_DOSES_MG[resolve_drug_id(name)]
