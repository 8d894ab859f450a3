from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from core import config


@dataclass(frozen=True)
class ReportWindow:
    start_year: int = config.DEFAULT_START_YEAR
    end_year: int = config.DEFAULT_END_YEAR
    quality_min_year: int = config.DEFAULT_QUALITY_MIN_YEAR
    reporting_year: Optional[int] = None


def _as_int(value: object) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except Exception:
        return None


def normalize_window(raw: Optional[dict] = None) -> ReportWindow:
    raw = raw or {}
    start_year = _as_int(raw.get("start_year"))
    end_year = _as_int(raw.get("end_year"))
    start_year = config.DEFAULT_START_YEAR if start_year is None else start_year
    end_year = config.DEFAULT_END_YEAR if end_year is None else end_year
    if start_year > end_year:
        start_year, end_year = end_year, start_year

    quality_min_year = _as_int(raw.get("quality_min_year"))
    if quality_min_year is None:
        quality_min_year = start_year

    return ReportWindow(
        start_year=start_year,
        end_year=end_year,
        quality_min_year=quality_min_year,
        reporting_year=_as_int(raw.get("reporting_year")),
    )


def dated_in_window(dates: pd.Series, window: ReportWindow) -> pd.Series:
    """Mask of valid timestamps whose year falls inside the window (inclusive)."""
    years = dates.dt.year
    return dates.notna() & (years >= window.start_year) & (years <= window.end_year)


def completed_mask(visits: pd.DataFrame) -> pd.Series:
    return visits["status"].isin(["Completed"])


def monthly_counts(dates: pd.Series) -> pd.DataFrame:
    """Count timestamps per calendar month, oldest month first."""
    periods = dates.dropna().dt.to_period("M")
    counts = periods.value_counts().sort_index()
    return pd.DataFrame(
        {
            "year": [p.year for p in counts.index],
            "month": [p.month for p in counts.index],
            "count": counts.to_numpy(dtype=int),
        }
    )
