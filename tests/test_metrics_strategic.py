import pytest

from core.filters import ReportWindow
from core.metrics_strategic import compute_strategic


def patient(date, provider="Aetna"):
    return {"patient_id": "P1", "registration_date": date, "insurance_provider": provider}


def test_patient_acquisition_by_month_inside_window(snapshot_factory):
    snap = snapshot_factory(
        patients=[
            patient("2022-01-01"),
            patient("2021-12-31"),
            patient("2024-12-31"),
            patient("2025-01-01"),
            patient("2022-01-20"),
            patient("garbage"),
        ]
    )
    rows = compute_strategic(snap)["patientAcquisition"]
    assert rows == [{"month": "Jan 2022", "newPatients": 2}, {"month": "Dec 2024", "newPatients": 1}]

    narrow = compute_strategic(snap, ReportWindow(start_year=2024, end_year=2024))["patientAcquisition"]
    assert narrow == [{"month": "Dec 2024", "newPatients": 1}]


def test_insurance_mix_counts_every_patient(snapshot_factory):
    snap = snapshot_factory(
        patients=[
            patient("2019-05-05", "Medicare"),
            patient(None, None),
            patient("2023-01-01", "Aetna"),
            patient("2023-01-02", "Medicare"),
            patient("2023-01-03", "Cigna"),
        ]
    )
    mix = compute_strategic(snap)["insuranceMix"]

    assert mix == [
        {"provider": "Medicare", "count": 2, "percentage": "40.0"},
        {"provider": "Aetna", "count": 1, "percentage": "20.0"},
        {"provider": "Cigna", "count": 1, "percentage": "20.0"},
        {"provider": "Unknown", "count": 1, "percentage": "20.0"},
    ]


def test_sample_insurance_mix_sums_to_hundred(sample_snapshot):
    mix = compute_strategic(sample_snapshot)["insuranceMix"]
    assert sum(r["count"] for r in mix) == len(sample_snapshot.patients)
    assert sum(float(r["percentage"]) for r in mix) == pytest.approx(100, abs=0.1 * len(mix))


def test_empty_patients(snapshot_factory):
    assert compute_strategic(snapshot_factory()) == {"patientAcquisition": [], "insuranceMix": []}
