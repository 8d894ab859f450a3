from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from core.data import format_month, format_ratio, round_half_up
from core.filters import ReportWindow, completed_mask, dated_in_window
from core.store import RecordSnapshot


logger = logging.getLogger(__name__)

MILLION = 1_000_000


def _trend_label(date: Any, year: Any, month: Any) -> Optional[str]:
    if pd.notna(date):
        return format_month(date.year, date.month)
    if pd.notna(year) and pd.notna(month) and 1 <= int(month) <= 12:
        return format_month(int(year), int(month))
    return None


def monthly_trends(financial: pd.DataFrame) -> List[Dict[str, Any]]:
    if financial.empty:
        return []
    df = financial.sort_values("date", kind="stable", na_position="last")
    trend = pd.DataFrame(
        {
            "month": [_trend_label(d, y, m) for d, y, m in zip(df["date"], df["year"], df["month"])],
            "revenue": (df["total_revenue"] / MILLION).to_numpy(),
            "profit": (df["net_profit"] / MILLION).to_numpy(),
            "profitMargin": (df["profit_margin"] * 100).to_numpy(),
            "occupancyRate": (df["bed_occupancy_rate"] * 100).to_numpy(),
        }
    )
    return trend.to_dict(orient="records")


def revenue_by_department(visits: pd.DataFrame, window: ReportWindow) -> List[Dict[str, Any]]:
    if visits.empty:
        return []
    has_date = visits["visit_date"].notna()
    in_window = dated_in_window(visits["visit_date"], window)
    completed = completed_mask(visits)
    logger.debug(
        "Revenue by department: %s visits, skipped %s",
        len(visits),
        {
            "noDate": int((~has_date).sum()),
            "wrongYear": int((has_date & ~in_window).sum()),
            "notCompleted": int((in_window & ~completed).sum()),
        },
    )

    kept = visits[in_window & completed]
    if kept.empty:
        return []
    grouped = (
        kept.groupby("department", sort=False)
        .agg(revenue=("total_cost", "sum"), total_visits=("total_cost", "size"))
        .reset_index()
    )
    total_revenue = float(grouped["revenue"].sum())
    grouped["avg_revenue_per_visit"] = [
        int(round_half_up(rev / n)) if n else 0 for rev, n in zip(grouped["revenue"], grouped["total_visits"])
    ]
    grouped["revenue_percentage"] = [format_ratio(rev, total_revenue, 100) for rev in grouped["revenue"]]
    grouped["revenue"] = grouped["revenue"] / MILLION
    grouped["total_visits"] = grouped["total_visits"].astype(int)
    grouped = grouped.sort_values("revenue", ascending=False, kind="stable")
    return grouped[
        ["department", "revenue", "total_visits", "avg_revenue_per_visit", "revenue_percentage"]
    ].to_dict(orient="records")


def compute_finance(snapshot: RecordSnapshot, window: ReportWindow = ReportWindow()) -> Dict[str, Any]:
    return {
        "monthlyTrends": monthly_trends(snapshot.financial),
        "revenueByDepartment": revenue_by_department(snapshot.visits, window),
    }
