from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.data import format_month, format_ratio
from core.filters import ReportWindow, completed_mask
from core.store import RecordSnapshot

READMISSION_VISIT_TYPES = ["Inpatient", "Surgery"]


def satisfaction_trends(quality: pd.DataFrame, window: ReportWindow) -> List[Dict[str, Any]]:
    if quality.empty:
        return []
    mask = (quality["year"] >= window.quality_min_year) & quality["month"].between(1, 12)
    kept = quality[mask]
    if kept.empty:
        return []
    frame = pd.DataFrame(
        {
            "year": kept["year"].astype(int),
            "month": kept["month"].astype(int),
            "score": kept["patient_satisfaction_score"],
        }
    )
    grouped = frame.groupby(["year", "month"])["score"].agg(["sum", "size"]).sort_index()
    return [
        {"month": format_month(year, month), "satisfaction": format_ratio(row["sum"], row["size"])}
        for (year, month), row in grouped.iterrows()
    ]


def readmission_rates(visits: pd.DataFrame) -> List[Dict[str, Any]]:
    if visits.empty:
        return []
    kept = visits[visits["visit_type"].isin(READMISSION_VISIT_TYPES) & completed_mask(visits)]
    if kept.empty:
        return []
    grouped = (
        kept.assign(readmitted=kept["readmission_30_days"].astype(int))
        .groupby("department", sort=False)["readmitted"]
        .agg(["sum", "size"])
        .reset_index()
    )
    grouped["readmissionRate"] = [format_ratio(n, total, 100) for n, total in zip(grouped["sum"], grouped["size"])]
    grouped["_rank"] = grouped["readmissionRate"].astype(float)
    grouped = grouped.sort_values("_rank", ascending=False, kind="stable")
    return grouped[["department", "readmissionRate"]].to_dict(orient="records")


def compute_quality(snapshot: RecordSnapshot, window: ReportWindow = ReportWindow()) -> Dict[str, Any]:
    return {
        "satisfactionTrends": satisfaction_trends(snapshot.quality, window),
        "readmissionRates": readmission_rates(snapshot.visits),
    }
