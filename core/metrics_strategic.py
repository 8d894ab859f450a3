from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from core.data import format_month, format_ratio
from core.filters import ReportWindow, dated_in_window, monthly_counts
from core.store import RecordSnapshot


def patient_acquisition(patients: pd.DataFrame, window: ReportWindow) -> List[Dict[str, Any]]:
    if patients.empty:
        return []
    registered = patients["registration_date"]
    counts = monthly_counts(registered[dated_in_window(registered, window)])
    return [
        {"month": format_month(year, month), "newPatients": int(n)}
        for year, month, n in zip(counts["year"], counts["month"], counts["count"])
    ]


def insurance_mix(patients: pd.DataFrame) -> List[Dict[str, Any]]:
    if patients.empty:
        return []
    total = len(patients)
    mix = (
        patients.groupby("insurance_provider", sort=False)
        .size()
        .reset_index(name="count")
        .rename(columns={"insurance_provider": "provider"})
        .sort_values(["count", "provider"], ascending=[False, True], kind="stable")
    )
    mix["count"] = mix["count"].astype(int)
    mix["percentage"] = [format_ratio(n, total, 100) for n in mix["count"]]
    return mix[["provider", "count", "percentage"]].to_dict(orient="records")


def compute_strategic(snapshot: RecordSnapshot, window: ReportWindow = ReportWindow()) -> Dict[str, Any]:
    return {
        "patientAcquisition": patient_acquisition(snapshot.patients, window),
        "insuranceMix": insurance_mix(snapshot.patients),
    }
