from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.data import format_ratio
from core.store import RecordSnapshot


def performance_by_department(performance: pd.DataFrame) -> List[Dict[str, Any]]:
    if performance.empty:
        return []
    grouped = (
        performance.groupby("department", sort=False)
        .agg(
            staffCount=("performance_rating", "size"),
            rating=("performance_rating", "sum"),
            satisfaction=("average_patient_satisfaction", "sum"),
            overtime=("overtime_hours_monthly", "sum"),
        )
        .reset_index()
    )
    grouped["avgPerformanceRating"] = [format_ratio(v, n) for v, n in zip(grouped["rating"], grouped["staffCount"])]
    grouped["avgPatientSatisfaction"] = [format_ratio(v, n) for v, n in zip(grouped["satisfaction"], grouped["staffCount"])]
    grouped["avgMonthlyOvertime"] = [format_ratio(v, n) for v, n in zip(grouped["overtime"], grouped["staffCount"])]
    grouped["staffCount"] = grouped["staffCount"].astype(int)
    grouped["_rank"] = grouped["avgPerformanceRating"].astype(float)
    grouped = grouped.sort_values("_rank", ascending=False, kind="stable")
    return grouped[
        ["department", "avgPerformanceRating", "avgPatientSatisfaction", "avgMonthlyOvertime", "staffCount"]
    ].to_dict(orient="records")


def compute_staff(snapshot: RecordSnapshot) -> Dict[str, Any]:
    return {"performanceByDepartment": performance_by_department(snapshot.performance)}
