from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import pandas as pd

from core import config
from core.data import (
    WorkbookSource,
    coerce_active_flags,
    coerce_flags,
    coerce_str_safe,
    normalize_date_column,
    numericize,
    read_workbook,
)
from core.errors import SourceUnavailable
from core.simulator import generate_sample_tables
from core.storage import BlobStore
from core.store import COLLECTIONS, LoadResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionSchema:
    text: Dict[str, Optional[str]] = field(default_factory=dict)
    numeric: Tuple[str, ...] = ()
    nullable_numeric: Tuple[str, ...] = ()
    dates: Tuple[str, ...] = ()
    flags: Dict[str, bool] = field(default_factory=dict)
    active_flags: Tuple[str, ...] = ()


SCHEMAS: Dict[str, CollectionSchema] = {
    "doctors": CollectionSchema(
        text={"doctor_id": None, "name": None, "department": "Unknown"},
        dates=("hire_date",),
        active_flags=("is_active",),
    ),
    "patients": CollectionSchema(
        text={"patient_id": None, "name": None, "insurance_provider": "Unknown"},
        dates=("registration_date",),
    ),
    "visits": CollectionSchema(
        text={
            "visit_id": None,
            "patient_id": None,
            "doctor_id": None,
            "department": "Unknown",
            "visit_type": None,
            "status": "Completed",
        },
        numeric=("total_cost", "length_of_stay"),
        dates=("visit_date",),
        flags={"readmission_30_days": False},
    ),
    "financial": CollectionSchema(
        numeric=(
            "total_revenue",
            "operating_expenses",
            "net_profit",
            "profit_margin",
            "bed_occupancy_rate",
            "average_daily_census",
        ),
        nullable_numeric=("year", "month"),
        dates=("date",),
    ),
    "quality": CollectionSchema(
        text={"department": "Unknown"},
        numeric=("patient_satisfaction_score",),
        nullable_numeric=("year", "month"),
        dates=("date",),
    ),
    "performance": CollectionSchema(
        text={"doctor_id": None, "name": None, "department": "Unknown"},
        numeric=("performance_rating", "average_patient_satisfaction", "overtime_hours_monthly"),
    ),
}


def coerce_collection(name: str, raw: pd.DataFrame) -> Tuple[pd.DataFrame, int]:
    """Apply per-field coercion and date normalization to one raw collection."""
    schema = SCHEMAS[name]
    df = raw.copy()
    df.columns = [str(c).strip() for c in df.columns]
    df = df.reset_index(drop=True)
    for col, default in schema.text.items():
        df = coerce_str_safe(df, [col], default=default)
    df = numericize(df, schema.numeric)
    df = numericize(df, schema.nullable_numeric, default=None)
    for col, default in schema.flags.items():
        df = coerce_flags(df, [col], default=default)
    df = coerce_active_flags(df, schema.active_flags)
    malformed = sum(normalize_date_column(df, col) for col in schema.dates)
    return df, malformed


def coerce_tables(raw_tables: Mapping[str, Optional[pd.DataFrame]]) -> Dict[str, pd.DataFrame]:
    tables: Dict[str, pd.DataFrame] = {}
    for name in COLLECTIONS:
        raw = raw_tables.get(name)
        if raw is None:
            raw = pd.DataFrame()
        try:
            df, malformed = coerce_collection(name, raw)
        except Exception:
            logger.exception("Could not coerce %s; collection left empty", name)
            df, malformed = coerce_collection(name, pd.DataFrame())
        if malformed:
            logger.warning("%s: %s rows with malformed dates excluded from date-based reports", name, malformed)
        tables[name] = df
    logger.info("Data summary: %s", {name: len(df) for name, df in tables.items()})
    return tables


def build_tables(sheets: Mapping[str, pd.DataFrame], sheet_names: Mapping[str, str] = config.SHEET_NAMES) -> Dict[str, pd.DataFrame]:
    raw_tables: Dict[str, Optional[pd.DataFrame]] = {}
    for name in COLLECTIONS:
        sheet = sheet_names.get(name, name)
        if sheet not in sheets:
            logger.warning("Sheet %r not found; %s will be empty", sheet, name)
        raw_tables[name] = sheets.get(sheet)
    return coerce_tables(raw_tables)


def load_workbook_tables(source: WorkbookSource, *, tier: str = "local") -> Dict[str, pd.DataFrame]:
    try:
        sheets = read_workbook(source)
    except Exception as exc:
        raise SourceUnavailable(tier, f"unreadable workbook: {exc}") from exc
    if not any(sheet in sheets for sheet in config.SHEET_NAMES.values()):
        raise SourceUnavailable(tier, f"none of the expected sheets present (found {sorted(sheets)})")
    tables = build_tables(sheets)
    if not any(len(df) for df in tables.values()):
        raise SourceUnavailable(tier, "workbook contains no records")
    return tables


class DataLoader:
    """Loads the six collections through the remote -> local -> sample fallback chain."""

    def __init__(
        self,
        blob_store: Optional[BlobStore],
        *,
        local_path: Path = config.LOCAL_WORKBOOK_PATH,
        blob_key: str = config.BLOB_KEY,
        sample_year: int = config.SAMPLE_YEAR,
        sample_seed: Optional[int] = None,
    ) -> None:
        self.blob_store = blob_store
        self.local_path = Path(local_path)
        self.blob_key = blob_key
        self.sample_year = sample_year
        self.sample_seed = sample_seed

    def load_remote(self) -> Dict[str, pd.DataFrame]:
        if self.blob_store is None:
            raise SourceUnavailable("remote", "no blob store configured")
        try:
            exists = self.blob_store.exists(self.blob_key)
            payload = self.blob_store.download(self.blob_key) if exists else None
        except Exception as exc:
            raise SourceUnavailable("remote", str(exc)) from exc
        if payload is None:
            raise SourceUnavailable("remote", f"{self.blob_key} not found")
        return load_workbook_tables(payload, tier="remote")

    def load_local(self) -> Dict[str, pd.DataFrame]:
        if not self.local_path.is_file():
            raise SourceUnavailable("local", f"{self.local_path} not found")
        return load_workbook_tables(self.local_path, tier="local")

    def load_sample(self) -> Dict[str, pd.DataFrame]:
        return coerce_tables(generate_sample_tables(self.sample_year, seed=self.sample_seed))

    def load(self) -> LoadResult:
        for tier, loader in (("remote", self.load_remote), ("local", self.load_local)):
            try:
                tables = loader()
            except SourceUnavailable as exc:
                logger.warning("%s; trying next source", exc)
                continue
            logger.info("Loaded hospital data from %s source", tier)
            return LoadResult(tables=tables, source=tier)
        logger.warning("No workbook available, generating sample data for %s", self.sample_year)
        return LoadResult(tables=self.load_sample(), source="sample")
