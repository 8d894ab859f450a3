from __future__ import annotations

import calendar
import io
import math
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, Optional, Union

import numpy as np
import pandas as pd


# Days between the spreadsheet epoch (1899-12-30) and the Unix epoch.
EXCEL_UNIX_EPOCH_OFFSET = 25569
SECONDS_PER_DAY = 86400

TRUE_TOKENS = {"true", "t", "yes", "y", "1"}
FALSE_TOKENS = {"false", "f", "no", "n", "0"}

WorkbookSource = Union[str, Path, bytes, bytearray, BinaryIO]


def is_number(value: object) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, float, np.integer, np.floating))


def is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


# ---------------- Dates ----------------
def normalize_serial_date(value: object) -> object:
    """Convert a spreadsheet serial day number to an ISO-8601 UTC string.

    Anything that is not a finite number (strings, datetimes, None) is returned unchanged.
    """
    if not is_number(value):
        return value
    serial = float(value)
    if not math.isfinite(serial):
        return value
    try:
        ts = pd.Timestamp((serial - EXCEL_UNIX_EPOCH_OFFSET) * SECONDS_PER_DAY, unit="s", tz="UTC")
    except (OverflowError, ValueError):
        return value
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def parse_timestamp(value: object) -> pd.Timestamp:
    """Parse a normalized date value into a naive UTC timestamp (NaT when unusable)."""
    if is_blank(value) or is_number(value) or isinstance(value, (bool, np.bool_)):
        return pd.NaT
    if isinstance(value, str):
        value = value.strip()
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError):
        return pd.NaT
    if pd.isna(ts):
        return pd.NaT
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def normalize_date_column(df: pd.DataFrame, col: str) -> int:
    """Normalize one date column in place; returns the count of malformed, non-blank cells."""
    if col not in df.columns:
        df[col] = pd.Series(pd.NaT, index=df.index, dtype="datetime64[ns]")
        return 0
    raw = df[col]
    parsed = raw.map(normalize_serial_date).map(parse_timestamp)
    malformed = int((parsed.isna() & ~raw.map(is_blank)).sum())
    df[col] = pd.to_datetime(parsed)
    return malformed


def format_month(year: int, month: int) -> str:
    """Month label in the dashboard's "Mon YYYY" form, e.g. "Jan 2024"."""
    return f"{calendar.month_abbr[int(month)]} {int(year)}"


# ---------------- Field coercion ----------------
def numericize(df: pd.DataFrame, cols: Iterable[str], default: Optional[float] = 0.0) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = default if default is not None else np.nan
        df[col] = pd.to_numeric(df[col], errors="coerce")
        if default is not None:
            df[col] = df[col].fillna(default)
    return df


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str], default: Optional[str] = None) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = pd.NA
        series = df[col].astype("string").str.strip()
        series = series.replace({"nan": pd.NA, "None": pd.NA, "": pd.NA})
        if default is not None:
            series = series.fillna(default)
        df[col] = series
    return df


def coerce_flag(value: object, default: bool) -> bool:
    if is_blank(value):
        return default
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if is_number(value):
        return float(value) != 0
    token = str(value).strip().lower()
    if token in FALSE_TOKENS:
        return False
    if token in TRUE_TOKENS:
        return True
    return default


def coerce_flags(df: pd.DataFrame, cols: Iterable[str], default: bool) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = default
        df[col] = df[col].map(lambda v: coerce_flag(v, default)).astype(bool)
    return df


def coerce_active_flag(value: object) -> bool:
    """Only an explicit false (boolean or the word "false") marks a record inactive."""
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, str):
        return value.strip().lower() != "false"
    return True


def coerce_active_flags(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = True
        df[col] = df[col].map(coerce_active_flag).astype(bool)
    return df


# ---------------- Formatting ----------------
def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_ratio(numerator: float, denominator: float, scale: float = 1.0) -> str:
    """One-decimal string of numerator/denominator*scale, or "0" for a zero denominator."""
    if not denominator:
        return "0"
    value = float(numerator) / float(denominator) * scale
    if not math.isfinite(value):
        return f"{value:.1f}"
    # Exact binary ties round away from zero: 2.25 -> "2.3".
    return str(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


# ---------------- Workbook reader ----------------
def read_workbook(source: WorkbookSource) -> Dict[str, pd.DataFrame]:
    """Read every sheet of an XLSX/XLS workbook into DataFrames keyed by sheet name."""
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(bytes(source))
    return pd.read_excel(source, sheet_name=None)
