"""Report pagination and print rendering."""

from reporting.pagination import (
    CapacityPolicy,
    CapacityPolicyError,
    PagePlan,
    ReportGroup,
    chunk_group,
    document_summary_policy,
    group_banner_policy,
    plan_flat_report,
    plan_pages,
    uniform_policy,
)

__all__ = [
    "CapacityPolicy",
    "CapacityPolicyError",
    "PagePlan",
    "ReportGroup",
    "chunk_group",
    "document_summary_policy",
    "group_banner_policy",
    "plan_flat_report",
    "plan_pages",
    "uniform_policy",
]
