from datetime import datetime, timezone

import pytest

from peptidepk.types import DrugProfile


@pytest.fixture
def t0() -> datetime:
    return datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def profile() -> DrugProfile:
    # 5-day half-life, 24 h rise, 24 h plateau
    return DrugProfile(half_life_h=120.0, absorption_h=24.0, peak_fraction=0.95,
                       weekly_limit_mg=15.0, drug_id="tirzepatide")
