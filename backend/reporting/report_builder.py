"""
Render a paginated report as print HTML, one <section class="page"> per PagePlan.
Converts HTML to PDF via Playwright when available.
"""
from __future__ import annotations

import hashlib
import html
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from .format_utils import EMPTY_CELL, format_cell, format_number, format_summary_value, to_float
from .pagination import PagePlan
from .report_data import build_report_data
from .report_profiles import ReportColumn, ReportProfile

_LOG = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
_REPORT_HTML = (_TEMPLATE_DIR / "report.html").read_text(encoding="utf-8")

DEFAULT_COMPANY_NAME = os.getenv("REPORT_COMPANY_NAME", "Logistics Services")
DEFAULT_PAGE_MARGIN_MM = int(os.getenv("REPORT_PDF_MARGIN_MM", "10"))
_NUMERIC_KINDS = {"number", "signed", "percent"}

# Short-lived memo of report_data per (profile capacities, payload, meta). Capped by REPORT_DATA_CACHE_MAX.
_REPORT_DATA_CACHE: dict[str, dict[str, Any]] = {}
_REPORT_DATA_CACHE_ORDER: list[str] = []
_MAX_REPORT_DATA_CACHE = max(1, int(os.getenv("REPORT_DATA_CACHE_MAX", "16")))


def report_cache_key(profile: ReportProfile, payload: Any, meta: dict[str, Any]) -> str:
    key_payload = json.dumps(
        {
            "profile": profile.key,
            "capacity": [profile.policy.first_page_rows, profile.policy.other_page_rows, profile.policy.scope],
            "payload": payload,
            "meta": meta,
        },
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(key_payload.encode()).hexdigest()


def get_report_data_cached(profile: ReportProfile, payload: Any, meta: dict[str, Any]) -> dict[str, Any]:
    """Planning is deterministic, so identical requests can share one result."""
    key = report_cache_key(profile, payload, meta)
    if key in _REPORT_DATA_CACHE:
        return _REPORT_DATA_CACHE[key]
    data = build_report_data(profile, payload, meta)
    if len(_REPORT_DATA_CACHE) >= _MAX_REPORT_DATA_CACHE and _REPORT_DATA_CACHE_ORDER:
        oldest = _REPORT_DATA_CACHE_ORDER.pop(0)
        _REPORT_DATA_CACHE.pop(oldest, None)
    _REPORT_DATA_CACHE[key] = data
    _REPORT_DATA_CACHE_ORDER.append(key)
    return data


def _escape(s: Any) -> str:
    return html.escape(str(s), quote=True)


def _cell_value(row: Any, column: ReportColumn) -> Any:
    if not isinstance(row, dict):
        return row
    if column.derive_from:
        left, right = (row.get(k) for k in column.derive_from)
        if any(isinstance(v, str) or to_float(v) is None for v in (left, right)):
            return None
        return left - right
    value = row.get(column.key)
    if (value is None or value == "") and column.fallback_key:
        value = row.get(column.fallback_key)
    return value


def _build_doc_header(title: str, subtitle: str, company_name: str) -> str:
    subtitle_html = f'<p class="subtitle">{_escape(subtitle)}</p>' if subtitle else ""
    return (
        '<header class="doc-header">'
        f'<div><h1>{_escape(title)}</h1>{subtitle_html}</div>'
        f'<div class="company">{_escape(company_name)}</div>'
        "</header>"
    )


def _build_summary_panel(summary: list[tuple[str, Any]]) -> str:
    if not summary:
        return ""
    stats = "".join(
        f'<div class="stat"><div class="label">{_escape(label)}</div>'
        f'<div class="value">{_escape(format_summary_value(value))}</div></div>'
        for label, value in summary
    )
    return f'<div class="summary">{stats}</div>'


def _build_group_banner(page: PagePlan) -> str:
    if not page.group_name:
        return ""
    if page.is_first_page_of_group:
        return f'<div class="group-banner">{_escape(page.group_name)}</div>'
    return f'<div class="group-continued">{_escape(page.group_name)} (Continued)</div>'


def _build_row_table(columns: tuple[ReportColumn, ...], rows: tuple[Any, ...], first_row_number: int = 1) -> str:
    """Row numbers count from the start of the group, so they carry on across its pages."""
    if not rows:
        return '<div class="empty">No rows for this group.</div>'
    head = '<th class="row-no">#</th>' + "".join(f"<th>{_escape(c.label)}</th>" for c in columns)
    body = "".join(
        f'<tr><td class="row-no">{number}</td>'
        + "".join(
            f'<td class="num">{_escape(format_cell(_cell_value(row, c), c.kind))}</td>'
            if c.kind in _NUMERIC_KINDS
            else f"<td>{_escape(format_cell(_cell_value(row, c), c.kind))}</td>"
            for c in columns
        )
        + "</tr>"
        for number, row in enumerate(rows, start=first_row_number)
    )
    return f'<table class="rows"><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>'


def _format_total(value: Any) -> str:
    if value is None:
        return EMPTY_CELL
    return format_number(value, precision=0 if isinstance(value, int) else 2)


def _build_group_totals(totals: dict[str, Any], total_label: str) -> str:
    name = f"{_escape(totals['name'])} " if totals["name"] else ""
    return (
        '<div class="group-totals">'
        f'<span class="label">{name}Totals</span>'
        f'<span>Riders: {totals["rows"]}</span>'
        f'<span>{_escape(total_label)}: {_escape(_format_total(totals["total"]))}</span>'
        f'<span>Average: {_escape(_format_total(totals["average"]))}</span>'
        "</div>"
    )


def _build_grand_total(grand: dict[str, Any], total_label: str) -> str:
    return (
        '<div class="grand-total">'
        '<span class="label">Grand Total</span>'
        f'<span>Riders: {grand["rows"]}</span>'
        f'<span>{_escape(total_label)}: {_escape(_format_total(grand["total"]))}</span>'
        "</div>"
    )


def _total_label(report_data: dict[str, Any]) -> str:
    key = report_data.get("total_key")
    for column in report_data["columns"]:
        if column.key == key:
            return column.label
    return "Total"


def _build_footer(page: PagePlan, total_pages: int, generated_at: str) -> str:
    return (
        '<footer class="page-footer">'
        f"<span>Page {page.local_page_index} of {page.local_page_count}</span>"
        f"<span>{page.global_page_index}/{total_pages}</span>"
        f"<span>Generated: {_escape(generated_at)}</span>"
        "</footer>"
    )


def _build_page(page: PagePlan, report_data: dict[str, Any], company_name: str, generated_at: str) -> str:
    parts = []
    if page.is_first_page_of_document:
        parts.append(_build_doc_header(report_data["title"], report_data["subtitle"], company_name))
        parts.append(_build_summary_panel(report_data["summary"]))
    parts.append(_build_group_banner(page))
    parts.append(_build_row_table(report_data["columns"], page.rows, page.first_row_number))
    # Flat reports already carry their totals in the summary panel.
    if report_data["grouped"]:
        if page.is_last_page_of_group:
            parts.append(_build_group_totals(report_data["group_totals"][page.group_index], _total_label(report_data)))
        if page.global_page_index == report_data["total_pages"]:
            parts.append(_build_grand_total(report_data["grand_total"], _total_label(report_data)))
    parts.append(_build_footer(page, report_data["total_pages"], generated_at))
    return f'<section class="page">{"".join(parts)}</section>'


def _build_empty_page(report_data: dict[str, Any], company_name: str) -> str:
    return (
        '<section class="page">'
        + _build_doc_header(report_data["title"], report_data["subtitle"], company_name)
        + '<div class="empty">No data to display.</div>'
        + "</section>"
    )


def build_report_html(
    profile: ReportProfile,
    payload: Any,
    meta: dict[str, Any] | None = None,
    report_data: dict[str, Any] | None = None,
) -> str:
    """
    Produce the full HTML document. The document header and summary panel appear on the
    first page only. Each group opens with its banner, continues under a "(Continued)" label
    and, in grouped reports, closes with its totals; the last page adds the grand total.
    Every page gets a footer with its group-local and document-wide position.
    """
    meta = meta or {}
    if report_data is None:
        report_data = get_report_data_cached(profile, payload, meta)

    company_name = (meta.get("company_name") or "").strip() or DEFAULT_COMPANY_NAME
    generated_at = (meta.get("generated_at") or "").strip() or datetime.now().strftime("%d/%m/%Y %H:%M")

    pages: list[PagePlan] = report_data["pages"]
    if pages:
        pages_html = "\n".join(_build_page(p, report_data, company_name, generated_at) for p in pages)
    else:
        pages_html = _build_empty_page(report_data, company_name)
    _LOG.debug("build_report_html profile=%s pages=%s rows=%s", profile.key, len(pages), report_data["row_count"])

    return (
        _REPORT_HTML.replace("__REPORT_TITLE__", _escape(report_data["title"]))
        .replace("__PAGES_HTML__", pages_html)
    )


def html_to_pdf(html_content: str, page_margin_mm: int = DEFAULT_PAGE_MARGIN_MM) -> bytes:
    """Render HTML to landscape A4 PDF using Playwright."""
    from playwright.sync_api import sync_playwright

    margin_in = f"{page_margin_mm / 25.4:.2f}in"
    margin = {"top": margin_in, "bottom": margin_in, "left": margin_in, "right": margin_in}
    with sync_playwright() as p:
        browser = p.chromium.launch()
        page = browser.new_page()
        page.set_content(html_content, wait_until="networkidle")
        page.emulate_media(media="print")
        pdf_bytes = page.pdf(
            format="A4",
            landscape=True,
            print_background=True,
            margin=margin,
        )
        browser.close()
    return pdf_bytes


def build_report_pdf(profile: ReportProfile, payload: Any, meta: dict[str, Any] | None = None) -> bytes:
    """Plan, render HTML, then PDF. Returns PDF bytes."""
    meta = meta or {}
    report_data = get_report_data_cached(profile, payload, meta)
    html_str = build_report_html(profile, payload, meta, report_data=report_data)
    return html_to_pdf(html_str)
