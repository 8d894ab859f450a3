"""
Synthetic hospital dataset used when no workbook can be loaded.

All values are random but bounded, and every visit references a generated
doctor and patient. Dates fall inside the target year and are emitted as
ISO-8601 strings so they go through the same ingestion path as real data.
"""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np
import pandas as pd

from core import config

DEPARTMENTS = [
    "Cardiology",
    "Neurology",
    "Orthopedics",
    "Emergency Medicine",
    "Internal Medicine",
    "Pediatrics",
]
VISIT_TYPES = ["Outpatient", "Inpatient", "Emergency", "Surgery"]
VISIT_STATUSES = ["Completed", "Cancelled", "No-Show"]
VISIT_STATUS_WEIGHTS = [0.95, 0.03, 0.02]
INSURANCE_PROVIDERS = ["Medicare", "Medicaid", "Blue Cross", "Aetna", "UnitedHealthcare", "Cigna", "Self-Pay"]
FIRST_NAMES = ["John", "Jane", "Michael", "Sarah", "David", "Lisa"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Davis"]

N_DOCTORS = 150
N_PATIENTS = 5000
N_VISITS = 15000
N_PERFORMANCE = 120

_ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.000Z"


def _random_times_in_year(rng: np.random.Generator, year: int, n: int) -> pd.DatetimeIndex:
    start = pd.Timestamp(year=year, month=1, day=1)
    end = pd.Timestamp(year=year + 1, month=1, day=1)
    seconds = int((end - start).total_seconds())
    offsets = rng.integers(0, seconds, n)
    return pd.DatetimeIndex(start + pd.to_timedelta(offsets, unit="s"))


def generate_doctors(rng: np.random.Generator, year: int) -> pd.DataFrame:
    idx = np.arange(N_DOCTORS)
    hire_days_before = rng.integers(180, 365 * 25, N_DOCTORS)
    hire_dates = pd.DatetimeIndex(pd.Timestamp(year=year, month=1, day=1) - pd.to_timedelta(hire_days_before, unit="D"))
    return pd.DataFrame(
        {
            "doctor_id": [f"DOC_{i + 1:04d}" for i in idx],
            "name": [f"Dr. {FIRST_NAMES[i % len(FIRST_NAMES)]} {LAST_NAMES[i % len(LAST_NAMES)]}" for i in idx],
            "department": [DEPARTMENTS[i % len(DEPARTMENTS)] for i in idx],
            "hire_date": hire_dates.strftime(_ISO_FORMAT),
            "is_active": True,
        }
    )


def generate_patients(rng: np.random.Generator, year: int) -> pd.DataFrame:
    idx = np.arange(N_PATIENTS)
    registered = _random_times_in_year(rng, year, N_PATIENTS).normalize()
    return pd.DataFrame(
        {
            "patient_id": [f"PAT_{i + 1:06d}" for i in idx],
            "name": [f"Patient {i + 1}" for i in idx],
            "registration_date": registered.strftime(_ISO_FORMAT),
            "insurance_provider": rng.choice(INSURANCE_PROVIDERS, N_PATIENTS),
        }
    )


def generate_visits(rng: np.random.Generator, year: int, doctors: pd.DataFrame, patients: pd.DataFrame) -> pd.DataFrame:
    doctor_idx = rng.integers(0, len(doctors), N_VISITS)
    patient_idx = rng.integers(0, len(patients), N_VISITS)
    visit_times = _random_times_in_year(rng, year, N_VISITS).floor("min")
    return pd.DataFrame(
        {
            "visit_id": [f"VISIT_{i + 1}" for i in range(N_VISITS)],
            "patient_id": patients["patient_id"].to_numpy()[patient_idx],
            "doctor_id": doctors["doctor_id"].to_numpy()[doctor_idx],
            "department": doctors["department"].to_numpy()[doctor_idx],
            "visit_date": visit_times.strftime(_ISO_FORMAT),
            "visit_type": rng.choice(VISIT_TYPES, N_VISITS),
            "total_cost": 500 + rng.random(N_VISITS) * 10_000,
            "status": rng.choice(VISIT_STATUSES, N_VISITS, p=VISIT_STATUS_WEIGHTS),
            "length_of_stay": rng.integers(0, 15, N_VISITS),
            "readmission_30_days": rng.random(N_VISITS) < 0.1,
        }
    )


def generate_financial(rng: np.random.Generator, year: int) -> pd.DataFrame:
    months = np.arange(1, 13)
    revenue = 8_000_000 + rng.random(12) * 7_000_000
    expenses = 6_000_000 + rng.random(12) * 6_000_000
    profit = revenue - expenses
    return pd.DataFrame(
        {
            "year": year,
            "month": months,
            "date": [f"{year}-{m:02d}-01T00:00:00.000Z" for m in months],
            "total_revenue": revenue,
            "operating_expenses": expenses,
            "net_profit": profit,
            "profit_margin": profit / revenue,
            "bed_occupancy_rate": 0.7 + rng.random(12) * 0.25,
            "average_daily_census": 200 + rng.random(12) * 200,
        }
    )


def generate_quality(rng: np.random.Generator, year: int) -> pd.DataFrame:
    rows = []
    for month in range(1, 13):
        for dept in DEPARTMENTS:
            rows.append(
                {
                    "year": year,
                    "month": month,
                    "department": dept,
                    "patient_satisfaction_score": 7.5 + rng.random() * 2,
                    "date": f"{year}-{month:02d}-01T00:00:00.000Z",
                }
            )
    return pd.DataFrame(rows)


def generate_performance(rng: np.random.Generator, doctors: pd.DataFrame) -> pd.DataFrame:
    staff = doctors.head(N_PERFORMANCE)[["doctor_id", "name", "department"]].reset_index(drop=True)
    n = len(staff)
    staff["performance_rating"] = 3 + rng.random(n) * 2
    staff["average_patient_satisfaction"] = 7 + rng.random(n) * 2.5
    staff["overtime_hours_monthly"] = rng.integers(0, 40, n)
    return staff


def generate_sample_tables(year: int = config.SAMPLE_YEAR, seed: Optional[int] = None) -> Dict[str, pd.DataFrame]:
    """Generate raw (pre-ingestion) tables for all six collections."""
    rng = np.random.default_rng(seed)
    doctors = generate_doctors(rng, year)
    patients = generate_patients(rng, year)
    return {
        "doctors": doctors,
        "patients": patients,
        "visits": generate_visits(rng, year, doctors, patients),
        "financial": generate_financial(rng, year),
        "quality": generate_quality(rng, year),
        "performance": generate_performance(rng, doctors),
    }
