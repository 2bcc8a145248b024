"""Cell formatting for printed report tables. Never render raw floats or None."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any

EMPTY_CELL = "—"


def to_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    if out != out:  # NaN
        return None
    return out


def format_number(value: Any, precision: int = 0) -> str:
    num = to_float(value)
    if num is None:
        return EMPTY_CELL if value in (None, "") else str(value)
    if precision <= 0 and num.is_integer():
        return f"{num:,.0f}"
    return f"{num:,.{max(precision, 1)}f}"


def format_signed(value: Any, precision: int = 0) -> str:
    num = to_float(value)
    if num is None:
        return format_number(value, precision)
    text = format_number(num, precision)
    return f"+{text}" if num > 0 else text


def format_percent(value: Any, precision: int = 1) -> str:
    """Rates arrive already scaled to 0-100."""
    num = to_float(value)
    if num is None:
        return EMPTY_CELL
    return f"{num:,.{precision}f}%"


def format_date(d: Any) -> str:
    if d is None:
        return EMPTY_CELL
    if isinstance(d, (date, datetime)):
        return d.strftime("%d/%m/%Y")
    text = str(d).strip()
    if not text:
        return EMPTY_CELL
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%m/%d/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(text[:10], fmt).date().strftime("%d/%m/%Y")
        except ValueError:
            continue
    return text


def format_cell(value: Any, kind: str = "text") -> str:
    if kind == "number":
        return format_number(value, precision=0 if isinstance(value, int) else 2)
    if kind == "signed":
        return format_signed(value, precision=0 if isinstance(value, int) else 2)
    if kind == "percent":
        return format_percent(value)
    if kind == "date":
        return format_date(value)
    if value is None or value == "":
        return EMPTY_CELL
    return str(value)


def format_summary_value(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if to_float(value) is not None and not isinstance(value, str):
        return format_number(value, precision=0 if isinstance(value, int) else 2)
    return format_cell(value)
