"""
Normalize upstream report payloads into groups + summary and run the page planner.

Payload shapes follow the dashboard API: flat reports carry a row list plus a `totals`
record; grouped reports carry housings, each with its rider rows nested one or two levels deep.
"""
from __future__ import annotations

import re
from typing import Any

from .format_utils import to_float
from .pagination import PagePlan, ReportGroup, plan_pages, summarize_plan
from .report_profiles import ReportProfile

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _dig(value: Any, path: tuple[str, ...]) -> Any:
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def humanize_key(key: str) -> str:
    """totalRealRejections -> Total real rejections"""
    words = _CAMEL_BOUNDARY.sub(" ", str(key)).replace("_", " ").split()
    if not words:
        return ""
    text = " ".join(words).lower()
    return text[0].upper() + text[1:]


def extract_groups(profile: ReportProfile, payload: Any) -> list[ReportGroup]:
    """Missing row lists become empty groups; missing group lists become no groups."""
    if not profile.grouped:
        rows = _as_list(payload.get(profile.rows_key)) if isinstance(payload, dict) else _as_list(payload)
        return [ReportGroup(name=None, rows=rows)]

    if isinstance(payload, dict):
        raw_groups = payload.get(profile.groups_key) if profile.groups_key else payload.get("reportData")
    else:
        raw_groups = payload
    groups = []
    for raw in _as_list(raw_groups):
        if not isinstance(raw, dict):
            continue
        name = raw.get(profile.group_name_key)
        groups.append(
            ReportGroup(
                name=str(name) if name is not None else None,
                rows=_as_list(_dig(raw, profile.group_rows_path)),
            )
        )
    return groups


def extract_summary(payload: Any) -> list[tuple[str, Any]]:
    """Scalar top-level fields and the `totals` record, in payload order."""
    if not isinstance(payload, dict):
        return []
    summary: list[tuple[str, Any]] = []
    for key, value in payload.items():
        if key == "totals" and isinstance(value, dict):
            summary.extend((humanize_key(k), v) for k, v in value.items() if not isinstance(v, (dict, list)))
        elif not isinstance(value, (dict, list)) and value is not None:
            summary.append((humanize_key(key), value))
    return summary


def _sum_field(rows: list[Any], key: str | None) -> int | float | None:
    """Sum of the numeric values of `key`; None when no row carries one."""
    if not key:
        return None
    values = [row.get(key) for row in rows if isinstance(row, dict)]
    numbers = [v for v in values if to_float(v) is not None and not isinstance(v, str)]
    if not numbers:
        return None
    return sum(numbers)


def group_totals(groups: list[ReportGroup], total_key: str | None) -> list[dict[str, Any]]:
    """Row count, summed `total_key` and per-row average for each group, in group order."""
    totals = []
    for group in groups:
        rows = list(group.rows or [])
        total = _sum_field(rows, total_key)
        totals.append(
            {
                "name": group.name,
                "rows": len(rows),
                "total": total,
                "average": total / len(rows) if total is not None and rows else None,
            }
        )
    return totals


def grand_total(totals: list[dict[str, Any]]) -> dict[str, Any]:
    known = [t["total"] for t in totals if t["total"] is not None]
    return {"rows": sum(t["rows"] for t in totals), "total": sum(known) if known else None}


def build_report_data(profile: ReportProfile, payload: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Build everything the renderer needs: title, paginated groups, summary panel rows,
    page totals and per-group row totals. The page plan is the only part derived from row counts.
    """
    meta = meta or {}
    groups = extract_groups(profile, payload)
    pages: list[PagePlan] = plan_pages(groups, profile.policy)
    plan_summary = summarize_plan(pages)
    totals = group_totals(groups, profile.total_key)
    return {
        "profile": profile.key,
        "title": (meta.get("title") or "").strip() or profile.title,
        "subtitle": _period_label(meta),
        "columns": profile.columns,
        "summary": extract_summary(payload) if profile.has_summary else [],
        "groups": groups,
        "pages": pages,
        "total_pages": plan_summary.total_pages,
        "group_page_counts": plan_summary.group_page_counts,
        "row_count": sum(len(g.rows or []) for g in groups),
        "grouped": profile.grouped,
        "total_key": profile.total_key,
        "group_totals": totals,
        "grand_total": grand_total(totals),
    }


def _period_label(meta: dict[str, Any]) -> str:
    start = str(meta.get("start_date") or "").strip()
    end = str(meta.get("end_date") or "").strip()
    if start and end:
        return f"From {start} to {end}"
    return start or end
