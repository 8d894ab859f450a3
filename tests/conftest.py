from __future__ import annotations

from typing import Dict, List, Optional

import pandas as pd
import pytest

from core.ingest import coerce_tables
from core.simulator import generate_sample_tables
from core.store import RecordSnapshot


def make_snapshot(
    *,
    doctors: Optional[List[dict]] = None,
    patients: Optional[List[dict]] = None,
    visits: Optional[List[dict]] = None,
    financial: Optional[List[dict]] = None,
    quality: Optional[List[dict]] = None,
    performance: Optional[List[dict]] = None,
) -> RecordSnapshot:
    raw: Dict[str, pd.DataFrame] = {
        "doctors": pd.DataFrame(doctors or []),
        "patients": pd.DataFrame(patients or []),
        "visits": pd.DataFrame(visits or []),
        "financial": pd.DataFrame(financial or []),
        "quality": pd.DataFrame(quality or []),
        "performance": pd.DataFrame(performance or []),
    }
    return RecordSnapshot.from_tables(coerce_tables(raw), generation=1, source="test")


@pytest.fixture(scope="session")
def sample_snapshot() -> RecordSnapshot:
    tables = coerce_tables(generate_sample_tables(2024, seed=7))
    return RecordSnapshot.from_tables(tables, generation=1, source="sample")


@pytest.fixture
def snapshot_factory():
    return make_snapshot
