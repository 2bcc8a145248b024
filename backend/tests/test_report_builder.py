from __future__ import annotations

from reporting import report_builder
from reporting.format_utils import format_cell, format_date, format_number, format_percent, format_signed
from reporting.report_builder import build_report_html, get_report_data_cached, report_cache_key
from reporting.report_profiles import get_profile


def _housing_payload(sizes: dict[str, int]) -> list[dict]:
    return [
        {
            "housingName": name,
            "rejectionReport": {
                "riderDetails": [
                    {"riderNameEN": f"{name} rider {i}", "workingId": f"{name[:1]}{i}", "rejectionRate": 2.0}
                    for i in range(size)
                ]
            },
        }
        for name, size in sizes.items()
    ]


def test_grouped_html_has_one_section_per_page_and_banner_per_group():
    html = build_report_html(
        get_profile("housing_rejection"),
        _housing_payload({"North": 22, "South": 0}),
        {"generated_at": "01/02/2026 10:00"},
    )
    assert html.count('<section class="page">') == 4
    assert html.count('class="group-banner"') == 2
    assert html.count('class="doc-header"') == 1
    assert "Page 3 of 3" in html
    assert "Page 1 of 1" in html
    assert "4/4" in html
    assert "No rows for this group." in html
    assert "North rider 21" in html


def test_flat_html_draws_summary_only_on_first_page():
    payload = {
        "totals": {"totalRiders": 11, "overallRejectionRate": 3.25},
        "riderDetails": [{"riderNameAR": f"r{i}", "totalOrders": i} for i in range(11)],
    }
    html = build_report_html(get_profile("rejection"), payload, {"start_date": "2026-01-01", "end_date": "2026-01-31"})
    assert html.count('<section class="page">') == 2
    assert html.count('class="summary"') == 1
    assert "Total riders" in html
    assert "From 2026-01-01 to 2026-01-31" in html
    assert 'class="group-banner"' not in html


def test_empty_plan_renders_no_data_page():
    html = build_report_html(get_profile("housing_rejection"), [], {})
    assert html.count('<section class="page">') == 1
    assert "No data to display." in html


def test_cell_values_are_escaped():
    payload = {"riderDetails": [{"riderNameAR": "<script>alert(1)</script>"}]}
    html = build_report_html(get_profile("rejection"), payload, {})
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_report_cache_key_depends_on_capacity():
    profile = get_profile("rejection")
    payload = {"riderDetails": [{}]}
    assert report_cache_key(profile, payload, {}) == report_cache_key(profile, payload, {})
    assert report_cache_key(profile, payload, {}) != report_cache_key(profile.with_capacity(5), payload, {})


def test_report_data_cache_returns_same_object():
    profile = get_profile("riders_summary")
    payload = {"riderSummaries": [{"workingId": "cache-test"}]}
    assert get_report_data_cached(profile, payload, {}) is get_report_data_cached(profile, payload, {})


def test_build_report_pdf_passes_rendered_html(monkeypatch):
    captured = {}

    def fake_html_to_pdf(html_content: str, page_margin_mm: int = 10) -> bytes:
        captured["html"] = html_content
        return b"%PDF-fake"

    monkeypatch.setattr(report_builder, "html_to_pdf", fake_html_to_pdf)
    pdf = report_builder.build_report_pdf(get_profile("rider_daily"), {"dailyDetails": [{"date": "2026-01-05"}]})
    assert pdf == b"%PDF-fake"
    assert "05/01/2026" in captured["html"]


# --- Formatting ---
def test_format_helpers():
    assert format_number(1234) == "1,234"
    assert format_number(12.5) == "12.5"
    assert format_number(None) == "—"
    assert format_signed(5) == "+5"
    assert format_signed(-3) == "-3"
    assert format_percent(12.345) == "12.3%"
    assert format_percent("n/a") == "—"
    assert format_date("2026-02-19") == "19/02/2026"
    assert format_date("") == "—"
    assert format_cell(None) == "—"
    assert format_cell(7, "number") == "7"
    assert format_cell(7.5, "number") == "7.50"
    assert format_cell(-50, "signed") == "-50"
    assert format_cell(12, "signed") == "+12"
    assert format_cell(None, "signed") == "—"


# --- Row numbers, group totals, continuation labels ---
def _detailed_payload(riders: int, accepted: int = 10) -> dict:
    return {
        "housingDetails": [
            {
                "housingName": "North",
                "riders": [{"riderName": f"R{i}", "workingId": f"N{i}", "acceptedOrders": accepted} for i in range(riders)],
            }
        ]
    }


def test_grouped_html_numbers_rows_across_pages_and_totals_last_page():
    html = build_report_html(get_profile("housing_detailed"), _detailed_payload(20), {})
    pages = html.split('<section class="page">')[1:]
    assert len(pages) == 2
    assert '<th class="row-no">#</th>' in pages[0]
    assert '<td class="row-no">18</td>' in pages[0]
    assert '<td class="row-no">19</td>' in pages[1]
    assert '<td class="row-no">20</td>' in pages[1]
    assert 'class="group-totals"' not in pages[0]
    assert 'class="group-totals"' in pages[1]
    assert "Riders: 20" in pages[1]
    assert "Accepted orders: 200" in pages[1]
    assert "Average: 10.00" in pages[1]
    assert html.count('class="grand-total"') == 1
    assert 'class="grand-total"' in pages[1]


def test_continuation_pages_repeat_group_name():
    html = build_report_html(
        get_profile("housing_rejection"),
        _housing_payload({"North": 22, "South": 0}),
        {"generated_at": "01/02/2026 10:00"},
    )
    pages = html.split('<section class="page">')[1:]
    assert 'class="group-continued"' not in pages[0]
    assert "North (Continued)" in pages[1]
    assert "North (Continued)" in pages[2]
    assert "South (Continued)" not in html
    assert html.count('class="group-totals"') == 2
    assert "North Totals" in pages[2]
    assert "South Totals" in pages[3]


def test_grand_total_sums_every_group():
    payload = _detailed_payload(3, accepted=7)
    payload["housingDetails"].append(
        {"housingName": "South", "riders": [{"riderName": "S0", "workingId": "S0", "acceptedOrders": 5}]}
    )
    html = build_report_html(get_profile("housing_detailed"), payload, {})
    grand = html.split('class="grand-total"')[1]
    assert "Riders: 4" in grand
    assert "Accepted orders: 26" in grand


def test_flat_report_has_no_group_totals():
    payload = {"riderDetails": [{"riderNameAR": "r", "totalOrders": 10}]}
    html = build_report_html(get_profile("rejection"), payload, {})
    assert 'class="group-totals"' not in html
    assert 'class="grand-total"' not in html
    assert '<td class="row-no">1</td>' in html


def test_rejection_rows_show_signed_orders_difference():
    payload = {
        "riderDetails": [
            {"riderNameEN": "Under", "totalOrders": 250, "targetOrders": 300},
            {"riderNameEN": "Over", "totalOrders": 320, "targetOrders": 300},
            {"riderNameEN": "Unknown", "totalOrders": 320},
        ]
    }
    html = build_report_html(get_profile("rejection"), payload, {})
    assert "<th>Difference</th>" in html
    assert '<td class="num">-50</td>' in html
    assert '<td class="num">+20</td>' in html
    unknown_row = html.split("Unknown")[1].split("</tr>")[0]
    assert '<td class="num">—</td>' in unknown_row
