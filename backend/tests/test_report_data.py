"""Tests for report profiles and payload normalization."""
from __future__ import annotations

import pytest

from reporting.pagination import CapacityPolicyError
from reporting.report_data import build_report_data, extract_groups, extract_summary, humanize_key
from reporting.report_profiles import PROFILES, get_profile, list_profiles


def _rider(i: int) -> dict:
    return {
        "riderNameAR": f"مندوب {i}",
        "riderNameEN": f"Rider {i}",
        "workingId": f"W{i:03d}",
        "totalShifts": 20,
        "totalOrders": 300 + i,
        "targetOrders": 310,
        "totalRejections": 4,
        "rejectionRate": 1.3,
        "totalRealRejections": 2,
        "realRejectionRate": 0.65,
    }


# --- Profiles ---
def test_profiles_carry_observed_capacities():
    expected = {
        "rejection": ("document", 4, 7),
        "riders_summary": ("document", 5, 7),
        "rider_daily": ("document", 16, 23),
        "housing_rejection": ("group", 7, 8),
        "housing_performance": ("group", 7, 8),
        "housing_detailed": ("group", 18, 18),
        "daily_details": ("group", 20, 20),
    }
    for key, (scope, first, other) in expected.items():
        policy = PROFILES[key].policy
        assert (policy.scope, policy.first_page_rows, policy.other_page_rows) == (scope, first, other)


def test_get_profile_unknown_returns_none():
    assert get_profile("nonexistent") is None
    assert len(list_profiles()) == len(PROFILES)


def test_with_capacity_overrides_one_value():
    profile = get_profile("rejection").with_capacity(first_page_rows=5)
    assert profile.policy.first_page_rows == 5
    assert profile.policy.other_page_rows == 7
    assert get_profile("rejection").policy.first_page_rows == 4


def test_with_capacity_no_overrides_returns_same_profile():
    profile = get_profile("rejection")
    assert profile.with_capacity() is profile


def test_with_capacity_rejects_zero():
    with pytest.raises(CapacityPolicyError):
        get_profile("housing_rejection").with_capacity(other_page_rows=0)


# --- Payload adapters ---
def test_extract_groups_flat_payload():
    groups = extract_groups(get_profile("rejection"), {"totals": {}, "riderDetails": [_rider(1), _rider(2)]})
    assert len(groups) == 1
    assert groups[0].name is None
    assert len(groups[0].rows) == 2


def test_extract_groups_flat_payload_missing_rows():
    groups = extract_groups(get_profile("riders_summary"), {"totals": {"totalRiders": 0}})
    assert len(groups) == 1
    assert groups[0].rows == []


def test_extract_groups_housing_rejection_nested_rows():
    payload = [
        {"housingName": "North", "rejectionReport": {"riderDetails": [_rider(1)]}},
        {"housingName": "South", "rejectionReport": None},
        {"housingName": "East"},
    ]
    groups = extract_groups(get_profile("housing_rejection"), payload)
    assert [g.name for g in groups] == ["North", "South", "East"]
    assert [len(g.rows) for g in groups] == [1, 0, 0]


def test_extract_groups_housing_performance_accepts_report_data_wrapper():
    payload = {"reportData": [{"housingName": "West", "summaryReport": {"riderSummaries": [{}, {}]}}]}
    groups = extract_groups(get_profile("housing_performance"), payload)
    assert groups[0].name == "West"
    assert len(groups[0].rows) == 2


def test_extract_groups_housing_detailed():
    payload = {
        "companyName": "Keta",
        "grandTotalOrders": 120,
        "housingDetails": [{"housingName": "A", "riders": [{"riderName": "x"}]}, "not-a-group"],
    }
    groups = extract_groups(get_profile("housing_detailed"), payload)
    assert len(groups) == 1
    assert groups[0].name == "A"


def test_extract_groups_grouped_payload_without_groups():
    assert extract_groups(get_profile("daily_details"), {"reportDate": "2026-01-01"}) == []
    assert extract_groups(get_profile("housing_rejection"), None) == []


def test_extract_summary_flattens_totals_and_scalars():
    summary = extract_summary({
        "totals": {"totalRiders": 3, "overallRejectionRate": 2.5},
        "riderDetails": [_rider(1)],
        "reportDate": "2026-01-01",
        "empty": None,
    })
    assert summary == [("Total riders", 3), ("Overall rejection rate", 2.5), ("Report date", "2026-01-01")]


def test_humanize_key():
    assert humanize_key("totalRealRejections") == "Total real rejections"
    assert humanize_key("grand_total_orders") == "Grand total orders"
    assert humanize_key("") == ""


# --- Report data builder ---
def test_build_report_data_flat_rejection():
    payload = {"totals": {"totalRiders": 11}, "riderDetails": [_rider(i) for i in range(11)]}
    data = build_report_data(get_profile("rejection"), payload, {"start_date": "2026-01-01", "end_date": "2026-01-31"})
    assert data["title"] == "Declined Orders Report"
    assert data["subtitle"] == "From 2026-01-01 to 2026-01-31"
    assert [len(p.rows) for p in data["pages"]] == [4, 7]
    assert data["total_pages"] == 2
    assert data["row_count"] == 11
    assert ("Total riders", 11) in data["summary"]


def test_build_report_data_grouped_has_no_summary_panel():
    payload = [
        {"housingName": "North", "rejectionReport": {"riderDetails": [_rider(i) for i in range(22)]}},
        {"housingName": "South", "rejectionReport": {"riderDetails": []}},
    ]
    data = build_report_data(get_profile("housing_rejection"), payload, {"title": "Custom"})
    assert data["title"] == "Custom"
    assert data["summary"] == []
    assert [len(p.rows) for p in data["pages"]] == [7, 8, 7, 0]
    assert data["group_page_counts"] == [("North", 3), ("South", 1)]


def test_build_report_data_group_totals_and_grand_total():
    payload = [
        {"housingName": "North", "rejectionReport": {"riderDetails": [_rider(i) for i in range(4)]}},
        {"housingName": "South", "rejectionReport": {"riderDetails": []}},
    ]
    data = build_report_data(get_profile("housing_rejection"), payload)
    north, south = data["group_totals"]
    assert (north["name"], north["rows"], north["total"]) == ("North", 4, 1206)
    assert north["average"] == pytest.approx(301.5)
    assert (south["rows"], south["total"], south["average"]) == (0, None, None)
    assert data["grand_total"] == {"rows": 4, "total": 1206}


def test_rejection_profile_derives_orders_difference_column():
    column = next(c for c in get_profile("rejection").columns if c.key == "ordersDifference")
    assert column.kind == "signed"
    assert column.derive_from == ("totalOrders", "targetOrders")
