"""
Named report profiles: page capacities, payload layout and table columns per report kind.

Capacities are configuration, not a business rule; callers may override either value per request.
"""
from __future__ import annotations

from dataclasses import dataclass, replace

from .pagination import CapacityPolicy, document_summary_policy, group_banner_policy, uniform_policy


@dataclass(frozen=True)
class ReportColumn:
    key: str
    label: str
    kind: str = "text"  # text | number | signed | percent | date
    fallback_key: str | None = None
    # (minuend_key, subtrahend_key): cell value is computed from the row instead of read
    derive_from: tuple[str, str] | None = None


@dataclass(frozen=True)
class ReportProfile:
    key: str
    title: str
    policy: CapacityPolicy
    grouped: bool
    has_summary: bool
    columns: tuple[ReportColumn, ...]
    # Flat payloads: key holding the row list. Grouped payloads: key holding the group list
    # (None when the payload itself is the list) and the path from a group to its rows.
    rows_key: str | None = None
    groups_key: str | None = None
    group_rows_path: tuple[str, ...] = ("riders",)
    group_name_key: str = "housingName"
    # Numeric row field summed into the per-group and grand totals of grouped reports.
    total_key: str | None = None

    def with_capacity(self, first_page_rows: int | None = None, other_page_rows: int | None = None) -> "ReportProfile":
        if first_page_rows is None and other_page_rows is None:
            return self
        return replace(self, policy=self.policy.with_overrides(first_page_rows, other_page_rows))


_RIDER = ReportColumn("riderNameAR", "Rider", fallback_key="riderNameEN")
_WORKING_ID = ReportColumn("workingId", "Working ID")

_REJECTION_COLUMNS = (
    _RIDER,
    _WORKING_ID,
    ReportColumn("totalShifts", "Days", "number"),
    ReportColumn("totalOrders", "Orders", "number"),
    ReportColumn("targetOrders", "Target", "number"),
    ReportColumn("ordersDifference", "Difference", "signed", derive_from=("totalOrders", "targetOrders")),
    ReportColumn("totalRejections", "Rejections", "number"),
    ReportColumn("rejectionRate", "Rejection rate", "percent"),
    ReportColumn("totalRealRejections", "Real rejections", "number"),
    ReportColumn("realRejectionRate", "Real rejection rate", "percent"),
)

_SUMMARY_COLUMNS = (
    _RIDER,
    _WORKING_ID,
    ReportColumn("actualWorkingDays", "Working days", "number"),
    ReportColumn("missingDays", "Missing days", "number"),
    ReportColumn("totalWorkingHours", "Hours", "number"),
    ReportColumn("targetWorkingHours", "Target hours", "number"),
    ReportColumn("hoursDifference", "Hours diff", "signed"),
    ReportColumn("totalOrders", "Orders", "number"),
    ReportColumn("targetOrders", "Target orders", "number"),
    ReportColumn("ordersDifference", "Orders diff", "signed", derive_from=("totalOrders", "targetOrders")),
)

_DAILY_COLUMNS = (
    ReportColumn("date", "Date", "date"),
    ReportColumn("shiftStatus", "Status"),
    ReportColumn("workingHours", "Hours", "number"),
    ReportColumn("targetHours", "Target hours", "number"),
    ReportColumn("hoursDifference", "Hours diff", "signed"),
    ReportColumn("acceptedOrders", "Accepted", "number"),
    ReportColumn("rejectedOrders", "Rejected", "number"),
)

_HOUSING_RIDER_COLUMNS = (
    ReportColumn("riderName", "Rider"),
    _WORKING_ID,
    ReportColumn("acceptedOrders", "Accepted orders", "number"),
)


PROFILES: dict[str, ReportProfile] = {
    "rejection": ReportProfile(
        key="rejection",
        title="Declined Orders Report",
        policy=document_summary_policy(4, 7),
        grouped=False,
        has_summary=True,
        columns=_REJECTION_COLUMNS,
        rows_key="riderDetails",
        total_key="totalOrders",
    ),
    "riders_summary": ReportProfile(
        key="riders_summary",
        title="Riders Summary",
        policy=document_summary_policy(5, 7),
        grouped=False,
        has_summary=True,
        columns=_SUMMARY_COLUMNS,
        rows_key="riderSummaries",
        total_key="totalOrders",
    ),
    "rider_daily": ReportProfile(
        key="rider_daily",
        title="Rider Daily Details",
        policy=document_summary_policy(16, 23),
        grouped=False,
        has_summary=True,
        columns=_DAILY_COLUMNS,
        rows_key="dailyDetails",
    ),
    "housing_rejection": ReportProfile(
        key="housing_rejection",
        title="Housing Rejection Report",
        policy=group_banner_policy(7, 8),
        grouped=True,
        has_summary=False,
        columns=_REJECTION_COLUMNS,
        group_rows_path=("rejectionReport", "riderDetails"),
        total_key="totalOrders",
    ),
    "housing_performance": ReportProfile(
        key="housing_performance",
        title="Housing Performance Report",
        policy=group_banner_policy(7, 8),
        grouped=True,
        has_summary=False,
        columns=_SUMMARY_COLUMNS,
        group_rows_path=("summaryReport", "riderSummaries"),
        total_key="totalOrders",
    ),
    "housing_detailed": ReportProfile(
        key="housing_detailed",
        title="Housing Detailed Report",
        policy=uniform_policy(18),
        grouped=True,
        has_summary=True,
        columns=_HOUSING_RIDER_COLUMNS,
        groups_key="housingDetails",
        total_key="acceptedOrders",
    ),
    "daily_details": ReportProfile(
        key="daily_details",
        title="Daily Details Report",
        policy=uniform_policy(20),
        grouped=True,
        has_summary=True,
        columns=_HOUSING_RIDER_COLUMNS + (ReportColumn("phoneNumber", "Phone"),),
        groups_key="housingDetails",
        total_key="acceptedOrders",
    ),
}


def get_profile(key: str) -> ReportProfile | None:
    return PROFILES.get(key)


def list_profiles() -> list[ReportProfile]:
    return list(PROFILES.values())
