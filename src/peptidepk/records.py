# src/peptidepk/records.py
"""
Adapters from Dose Record Store rows to DoseEvent.

Rows look like the tracker's dose table joined with the peptide name:
    {"peptide_id": "...", "peptide_name": "Tirzepatide", "dose_amount": 5,
     "dose_unit": "mg", "administration_time": "2025-01-06T09:00:00Z",
     "injection_site": "abdomen", "notes": None}
"""
import logging
from typing import Any, Iterable, Mapping, Optional

from .types import DoseEvent, to_utc
from .library import resolve_drug_id

LOGGER = logging.getLogger(__name__)

# Multipliers to milligrams
UNIT_TO_MG = {"mg": 1.0, "mcg": 1e-3, "ug": 1e-3, "µg": 1e-3, "g": 1e3}


def amount_in_mg(amount: float, unit: str) -> float:
    try:
        factor = UNIT_TO_MG[unit.strip().lower()]
    except KeyError:
        raise ValueError(f"Unsupported dose unit '{unit}' (expected one of {sorted(UNIT_TO_MG)}).") from None
    return float(amount) * factor


def canonical_drug_id(name: str) -> str:
    """
    Library drug_id for `name`, or the stripped name itself for peptides
    without a PK profile (e.g. "KPV").
    """
    try:
        return resolve_drug_id(name)
    except KeyError:
        return name.strip()


def _row_drug_id(row: Mapping[str, Any]) -> str:
    name = row.get("peptide_name") or row.get("peptide_id") or "default"
    return canonical_drug_id(str(name))


def dose_event_from_record(row: Mapping[str, Any]) -> DoseEvent:
    """Convert one store row into a DoseEvent (UTC, mg)."""
    return DoseEvent(
        amount_mg=amount_in_mg(row["dose_amount"], row.get("dose_unit") or "mg"),
        administered_at=to_utc(row["administration_time"]),
        drug_id=_row_drug_id(row),
        injection_site=row.get("injection_site"),
        notes=row.get("notes"),
    )


def dose_events_from_records(rows: Iterable[Mapping[str, Any]],
                             drug_id: Optional[str] = None) -> list[DoseEvent]:
    """
    Convert store rows, optionally keeping only one peptide, oldest first.
    """
    events = [dose_event_from_record(r) for r in rows]
    if drug_id is not None:
        wanted = canonical_drug_id(drug_id).lower()
        events = [e for e in events if e.drug_id.lower() == wanted]
    events.sort(key=lambda e: e.administered_at)
    LOGGER.debug("loaded %d dose events%s", len(events), f" for {drug_id}" if drug_id else "")
    return events
