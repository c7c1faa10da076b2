from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable

from .types import DoseEvent

WEEK = timedelta(days=7)
MICROSECOND = timedelta(microseconds=1)


def hours_between(start: datetime, end: datetime) -> float:
    """Signed number of hours from `start` to `end`."""
    return (end - start).total_seconds() / 3600.0

def split_doses_by_drug(doses: Iterable[DoseEvent]) -> dict[str, tuple[DoseEvent, ...]]:
    """
    Group doses by drug_id, each group in chronological order.
    """
    buckets: dict[str, list[DoseEvent]] = defaultdict(list)
    for d in doses:
        buckets[d.drug_id].append(d)
    return {
        drug_id: tuple(sorted(ds, key=lambda x: x.administered_at))
        for drug_id, ds in buckets.items()
    }

def doses_in_window(doses: Iterable[DoseEvent], end: datetime, span: timedelta = WEEK) -> list[DoseEvent]:
    """
    Doses administered within [end - span, end], both edges inclusive.
    """
    start = end - span
    return [d for d in doses if start <= d.administered_at <= end]
