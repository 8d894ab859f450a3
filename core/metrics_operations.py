from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.data import format_month, format_ratio
from core.filters import ReportWindow, completed_mask, dated_in_window
from core.store import RecordSnapshot


def monthly_throughput(visits: pd.DataFrame, window: ReportWindow) -> List[Dict[str, Any]]:
    if visits.empty:
        return []
    kept = visits[dated_in_window(visits["visit_date"], window)]
    if kept.empty:
        return []
    frame = pd.DataFrame(
        {
            "period": kept["visit_date"].dt.to_period("M"),
            "is_emergency": kept["visit_type"].isin(["Emergency"]).astype(int),
        }
    )
    grouped = (
        frame.groupby("period")
        .agg(totalVisits=("is_emergency", "size"), emergencyVisits=("is_emergency", "sum"))
        .sort_index()
    )
    return [
        {
            "month": format_month(period.year, period.month),
            "totalVisits": int(row.totalVisits),
            "emergencyVisits": int(row.emergencyVisits),
            "emergencyPercentage": format_ratio(row.emergencyVisits, row.totalVisits, 100),
        }
        for period, row in grouped.iterrows()
    ]


def length_of_stay_by_department(visits: pd.DataFrame) -> List[Dict[str, Any]]:
    if visits.empty:
        return []
    kept = visits[(visits["length_of_stay"] > 0) & completed_mask(visits)]
    if kept.empty:
        return []
    grouped = kept.groupby("department", sort=False)["length_of_stay"].agg(["sum", "size"]).reset_index()
    grouped["avgLengthOfStay"] = [format_ratio(total, n) for total, n in zip(grouped["sum"], grouped["size"])]
    grouped["_rank"] = grouped["avgLengthOfStay"].astype(float)
    grouped = grouped.sort_values("_rank", ascending=False, kind="stable")
    return grouped[["department", "avgLengthOfStay"]].to_dict(orient="records")


def compute_operations(snapshot: RecordSnapshot, window: ReportWindow = ReportWindow()) -> Dict[str, Any]:
    return {
        "monthlyThroughput": monthly_throughput(snapshot.visits, window),
        "lengthOfStayByDepartment": length_of_stay_by_department(snapshot.visits),
    }
