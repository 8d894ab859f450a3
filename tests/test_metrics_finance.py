import json

import pytest

from core.filters import ReportWindow
from core.metrics_finance import compute_finance


def visit(dept, cost, status, date, **extra):
    row = {"department": dept, "total_cost": cost, "status": status, "visit_date": date, "visit_type": "Outpatient"}
    row.update(extra)
    return row


def test_revenue_by_department_end_to_end(snapshot_factory):
    snap = snapshot_factory(
        visits=[
            visit("Cardiology", 1000, "Completed", "2024-01-05"),
            visit("Cardiology", 2000, "Completed", "2024-02-10"),
            visit("Neurology", 1000, "Cancelled", "2024-01-15"),
        ]
    )
    rows = compute_finance(snap)["revenueByDepartment"]

    assert len(rows) == 1
    cardio = rows[0]
    assert cardio["department"] == "Cardiology"
    assert cardio["revenue"] == pytest.approx(0.003)
    assert cardio["total_visits"] == 2
    assert cardio["avg_revenue_per_visit"] == 1500
    assert cardio["revenue_percentage"] == "100.0"


def test_year_window_boundaries(snapshot_factory):
    snap = snapshot_factory(
        visits=[
            visit("Cardiology", 500, "Completed", "2021-12-31"),
            visit("Neurology", 700, "Completed", "2022-01-01"),
            visit("Pediatrics", 900, "Completed", "2025-01-01"),
        ]
    )
    rows = compute_finance(snap)["revenueByDepartment"]
    assert [r["department"] for r in rows] == ["Neurology"]

    wider = compute_finance(snap, ReportWindow(start_year=2021, end_year=2025))["revenueByDepartment"]
    assert {r["department"] for r in wider} == {"Cardiology", "Neurology", "Pediatrics"}


def test_missing_status_counts_as_completed_and_bad_dates_are_skipped(snapshot_factory):
    snap = snapshot_factory(
        visits=[
            visit("Cardiology", 100, None, "2023-03-01"),
            visit("Cardiology", 100, "Completed", "not a date"),
            visit(None, 300, "Completed", "2023-03-02"),
            visit("Neurology", "abc", "Completed", "2023-03-03"),
        ]
    )
    rows = {r["department"]: r for r in compute_finance(snap)["revenueByDepartment"]}

    assert rows["Cardiology"]["total_visits"] == 1
    assert rows["Unknown"]["revenue"] == pytest.approx(0.0003)
    assert rows["Neurology"]["revenue"] == 0
    assert rows["Neurology"]["avg_revenue_per_visit"] == 0
    assert [r for r in rows] == ["Unknown", "Cardiology", "Neurology"]


def test_zero_total_revenue_renders_literal_zero(snapshot_factory):
    snap = snapshot_factory(
        visits=[
            visit("Cardiology", 0, "Completed", "2024-01-05"),
            visit("Neurology", None, "Completed", "2024-01-06"),
        ]
    )
    rows = compute_finance(snap)["revenueByDepartment"]
    assert [r["revenue_percentage"] for r in rows] == ["0", "0"]


def test_revenue_percentages_sum_to_hundred(sample_snapshot):
    rows = compute_finance(sample_snapshot)["revenueByDepartment"]
    assert rows
    assert sum(float(r["revenue_percentage"]) for r in rows) == pytest.approx(100, abs=0.1 * len(rows))
    revenues = [r["revenue"] for r in rows]
    assert revenues == sorted(revenues, reverse=True)


def test_monthly_trends_sorted_and_scaled(snapshot_factory):
    snap = snapshot_factory(
        financial=[
            {"year": 2024, "month": 2, "date": "2024-02-01", "total_revenue": 12_000_000, "net_profit": 1_500_000, "profit_margin": 0.125, "bed_occupancy_rate": 0.8},
            {"year": 2024, "month": 1, "date": 45292, "total_revenue": 10_000_000, "net_profit": 1_000_000, "profit_margin": 0.1, "bed_occupancy_rate": 0.75},
            {"year": 2024, "month": 3, "date": None, "total_revenue": None},
        ]
    )
    trends = compute_finance(snap)["monthlyTrends"]

    assert [t["month"] for t in trends] == ["Jan 2024", "Feb 2024", "Mar 2024"]
    assert trends[0]["revenue"] == pytest.approx(10.0)
    assert trends[0]["profit"] == pytest.approx(1.0)
    assert trends[0]["profitMargin"] == pytest.approx(10.0)
    assert trends[0]["occupancyRate"] == pytest.approx(75.0)
    assert trends[2]["revenue"] == 0


def test_finance_is_idempotent_and_leaves_snapshot_untouched(sample_snapshot):
    before = sample_snapshot.visits.copy()
    first = json.dumps(compute_finance(sample_snapshot), sort_keys=True)
    second = json.dumps(compute_finance(sample_snapshot), sort_keys=True)
    assert first == second
    assert sample_snapshot.visits.equals(before)


def test_empty_snapshot_yields_empty_lists(snapshot_factory):
    assert compute_finance(snapshot_factory()) == {"monthlyTrends": [], "revenueByDepartment": []}
