"""
Generate sample paginated report fixtures:
1) flat rejection report (summary panel on page 1)
2) grouped housing rejection report (one empty housing)
3) housing detailed report (uniform capacity)

Usage:
  cd backend
  python3 scripts/generate_report_fixtures.py
"""
from __future__ import annotations

from pathlib import Path
import sys

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from reporting.report_builder import build_report_html, build_report_pdf
from reporting.report_profiles import get_profile


OUT_DIR = Path(__file__).resolve().parents[1] / "reports" / "fixtures"


def _rider(i: int) -> dict:
    orders = 280 + (i * 7) % 60
    rejections = (i * 3) % 11
    return {
        "riderNameEN": f"Sample Rider {i + 1}",
        "workingId": f"W{1000 + i}",
        "totalShifts": 22 + i % 4,
        "totalOrders": orders,
        "targetOrders": 300,
        "totalRejections": rejections,
        "rejectionRate": round(rejections / orders * 100, 1),
        "totalRealRejections": rejections // 2,
        "realRejectionRate": round((rejections // 2) / orders * 100, 1),
    }


def _write_fixture(name: str, profile_key: str, payload, meta: dict) -> None:
    profile = get_profile(profile_key)
    html = build_report_html(profile, payload, meta)
    html_path = OUT_DIR / f"{name}.html"
    html_path.write_text(html, encoding="utf-8")

    try:
        pdf = build_report_pdf(profile, payload, meta)
    except Exception as exc:  # pragma: no cover - local tooling fallback
        print(f"[fixture] {name}: PDF generation skipped ({exc})")
        return

    pdf_path = OUT_DIR / f"{name}.pdf"
    pdf_path.write_bytes(pdf)
    print(f"[fixture] wrote {pdf_path}")


def main() -> None:
    OUT_DIR.mkdir(parents=True, exist_ok=True)
    meta = {"start_date": "2026-01-01", "end_date": "2026-01-31"}

    riders = [_rider(i) for i in range(25)]
    flat_payload = {
        "totals": {
            "totalRiders": len(riders),
            "totalOrders": sum(r["totalOrders"] for r in riders),
            "totalRejections": sum(r["totalRejections"] for r in riders),
        },
        "riderDetails": riders,
    }
    housing_payload = [
        {"housingName": "North Housing", "rejectionReport": {"riderDetails": riders[:22]}},
        {"housingName": "South Housing", "rejectionReport": {"riderDetails": []}},
        {"housingName": "East Housing", "rejectionReport": {"riderDetails": riders[22:]}},
    ]
    detailed_payload = {
        "reportDate": "2026-01-31",
        "grandTotalRiders": len(riders),
        "grandTotalOrders": sum(r["totalOrders"] for r in riders),
        "housingDetails": [
            {
                "housingName": "North Housing",
                "riders": [
                    {"riderName": r["riderNameEN"], "workingId": r["workingId"], "acceptedOrders": r["totalOrders"]}
                    for r in riders
                ],
            }
        ],
    }

    _write_fixture("rejection-flat", "rejection", flat_payload, meta)
    _write_fixture("housing-rejection-grouped", "housing_rejection", housing_payload, meta)
    _write_fixture("housing-detailed-uniform", "housing_detailed", detailed_payload, meta)
    print(f"[fixture] complete. Outputs in {OUT_DIR}")


if __name__ == "__main__":
    main()
