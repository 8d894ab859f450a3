import numpy as np
import pandas as pd
import pytest

from core.data import (
    coerce_active_flag,
    coerce_flag,
    format_month,
    format_ratio,
    normalize_date_column,
    normalize_serial_date,
    parse_timestamp,
    round_half_up,
)


def test_serial_date_converts_to_iso_utc():
    assert normalize_serial_date(45296) == "2024-01-05T00:00:00.000Z"
    assert normalize_serial_date(45296.5) == "2024-01-05T12:00:00.000Z"
    assert normalize_serial_date(np.int64(44562)) == "2022-01-01T00:00:00.000Z"


@pytest.mark.parametrize("serial", range(2, 73051, 997))
def test_plausible_serials_land_between_1900_and_2100(serial):
    ts = parse_timestamp(normalize_serial_date(serial))
    assert 1900 <= ts.year <= 2100


@pytest.mark.parametrize("value", ["2024-01-05T00:00:00.000Z", "2023-07-14", "not a date", None, True])
def test_non_numeric_values_pass_through(value):
    assert normalize_serial_date(value) is value


def test_non_finite_serial_is_left_alone():
    value = float("nan")
    assert normalize_serial_date(value) is value


def test_parse_timestamp_handles_strings_and_garbage():
    assert parse_timestamp("2024-01-05T00:00:00.000Z") == pd.Timestamp("2024-01-05")
    assert parse_timestamp(" 2023-07-14 ") == pd.Timestamp("2023-07-14")
    assert pd.isna(parse_timestamp("not a date"))
    assert pd.isna(parse_timestamp(""))
    assert pd.isna(parse_timestamp(None))
    assert pd.isna(parse_timestamp(12345))


def test_normalize_date_column_counts_malformed_cells():
    df = pd.DataFrame({"visit_date": [45296, "2024-02-10", None, "not a date"]})
    malformed = normalize_date_column(df, "visit_date")

    assert malformed == 1
    assert pd.api.types.is_datetime64_any_dtype(df["visit_date"])
    assert df["visit_date"].iloc[0] == pd.Timestamp("2024-01-05")
    assert df["visit_date"].iloc[1] == pd.Timestamp("2024-02-10")
    assert df["visit_date"].iloc[2:].isna().all()


def test_normalize_date_column_adds_missing_column():
    df = pd.DataFrame({"name": ["a", "b"]})
    assert normalize_date_column(df, "hire_date") == 0
    assert df["hire_date"].isna().all()


def test_format_ratio_zero_guard():
    assert format_ratio(0, 0) == "0"
    assert format_ratio(5, 0, 100) == "0"
    assert format_ratio(0, 5) == "0.0"
    assert format_ratio(1, 3, 100) == "33.3"
    assert format_ratio(2, 3, 100) == "66.7"


@pytest.mark.parametrize(
    "num,den,scale,expected",
    [
        (9, 4, 1, "2.3"),
        (1, 16, 100, "6.3"),
        (8.5, 2, 1, "4.3"),
        (-9, 4, 1, "-2.3"),
        (1.005, 1, 1, "1.0"),
        (0.35, 1, 1, "0.3"),
    ],
)
def test_format_ratio_rounds_exact_ties_up(num, den, scale, expected):
    assert format_ratio(num, den, scale) == expected


def test_round_half_up_rounds_halves_away_from_zero():
    assert round_half_up(2.5) == 3.0
    assert round_half_up(1500.4999) == 1500.0
    assert round_half_up(None) is None


@pytest.mark.parametrize(
    "value,default,expected",
    [
        (None, True, True),
        ("", False, False),
        (False, True, False),
        ("false", True, False),
        ("No", True, False),
        ("yes", False, True),
        (1, False, True),
        (0.0, True, False),
        ("maybe", True, True),
    ],
)
def test_coerce_flag(value, default, expected):
    assert coerce_flag(value, default) is expected


@pytest.mark.parametrize(
    "value,expected",
    [
        (False, False),
        (np.bool_(False), False),
        (" FALSE ", False),
        (True, True),
        (0, True),
        ("no", True),
        ("f", True),
        (None, True),
        (float("nan"), True),
    ],
)
def test_active_flag_is_false_only_when_explicit(value, expected):
    assert coerce_active_flag(value) is expected


def test_format_month():
    assert format_month(2024, 1) == "Jan 2024"
    assert format_month(2022.0, 12.0) == "Dec 2022"
