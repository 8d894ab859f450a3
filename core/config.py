from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# ---------------- Paths / sources ----------------
DATA_DIR = Path(os.environ.get("HOSPITAL_DATA_DIR", Path(__file__).resolve().parents[1] / "public" / "data"))
LOCAL_WORKBOOK_PATH = Path(os.environ.get("HOSPITAL_LOCAL_WORKBOOK", DATA_DIR / "hospital_data.xlsx"))

BLOB_KEY = os.environ.get("HOSPITAL_BLOB_KEY", "hospital_data.xlsx")
BLOB_BACKEND = os.environ.get("HOSPITAL_BLOB_BACKEND", "local").strip().lower()
BLOB_DIR = Path(os.environ.get("HOSPITAL_BLOB_DIR", DATA_DIR / "blobs"))
FIREBASE_BUCKET = os.environ.get("HOSPITAL_FIREBASE_BUCKET", "")

SHEET_NAMES: Dict[str, str] = {
    "doctors": "hospital_doctors",
    "patients": "hospital_patients",
    "visits": "hospital_patient_visits",
    "financial": "hospital_financial_metrics",
    "quality": "hospital_quality_metrics",
    "performance": "hospital_staff_performance",
}

# ---------------- Refresh / sample data ----------------
REFRESH_INTERVAL_SECONDS = _env_int("HOSPITAL_REFRESH_INTERVAL_SECONDS", 600)
SAMPLE_YEAR = _env_int("HOSPITAL_SAMPLE_YEAR", 2024)

# ---------------- Report window ----------------
DEFAULT_START_YEAR = 2022
DEFAULT_END_YEAR = 2024
DEFAULT_QUALITY_MIN_YEAR = 2022
# Year counted under keyMetrics.totalVisits2024, the key existing dashboards read.
LEGACY_VISITS_YEAR = 2024

# ---------------- Upload ----------------
UPLOAD_FIELD = "excelFile"
UPLOAD_MAX_BYTES = 10 * 1024 * 1024
UPLOAD_EXTENSIONS = (".xlsx", ".xls")

# ---------------- HTTP ----------------
PORT = _env_int("PORT", 3000)
LOG_LEVEL = os.environ.get("HOSPITAL_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS: List[str] = [
    o.strip() for o in os.environ.get("HOSPITAL_CORS_ORIGINS", "*").split(",") if o.strip()
]

HOSPITAL_INFO = {
    "name": "Renova Hospitals",
    "founded": "1985",
    "beds": 450,
    "departments": 12,
    "accreditation": "Joint Commission Accredited",
}
