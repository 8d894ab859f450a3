from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import pandas as pd

from core import config
from core.filters import ReportWindow
from core.store import RecordSnapshot


def _metric_value(value: Any) -> float:
    if value is None or pd.isna(value):
        return 0.0
    return float(value)


def resolve_reporting_year(visits: pd.DataFrame, window: ReportWindow) -> int:
    if window.reporting_year is not None:
        return int(window.reporting_year)
    if not visits.empty and "visit_date" in visits.columns:
        years = visits["visit_date"].dt.year.dropna()
        if not years.empty:
            return int(years.max())
    return datetime.now(timezone.utc).year


def latest_financial(financial: pd.DataFrame) -> Optional[pd.Series]:
    """Most recent financial row by date; the first row when no date is usable."""
    if financial.empty:
        return None
    dated = financial.dropna(subset=["date"])
    if dated.empty:
        return financial.iloc[0]
    return dated.sort_values("date", ascending=False, kind="stable").iloc[0]


def compute_overview(snapshot: RecordSnapshot, window: ReportWindow = ReportWindow()) -> Dict[str, Any]:
    doctors = snapshot.doctors
    visits = snapshot.visits

    total_doctors = int(doctors["is_active"].sum()) if not doctors.empty else 0
    reporting_year = resolve_reporting_year(visits, window)
    total_visits = int((visits["visit_date"].dt.year == reporting_year).sum()) if not visits.empty else 0
    legacy_visits = int((visits["visit_date"].dt.year == config.LEGACY_VISITS_YEAR).sum()) if not visits.empty else 0

    latest = latest_financial(snapshot.financial)
    if latest is None:
        revenue = margin = occupancy = 0.0
    else:
        revenue = _metric_value(latest.get("total_revenue"))
        margin = _metric_value(latest.get("profit_margin")) * 100
        occupancy = _metric_value(latest.get("bed_occupancy_rate")) * 100

    return {
        "hospitalInfo": dict(config.HOSPITAL_INFO),
        "keyMetrics": {
            "totalDoctors": total_doctors,
            "totalPatients": int(len(snapshot.patients)),
            "reportingYear": reporting_year,
            "totalVisits": total_visits,
            "totalVisits2024": legacy_visits,
            "monthlyRevenue": revenue,
            "profitMargin": margin,
            "bedOccupancy": occupancy,
        },
    }
