"""
Disk cache for rendered report PDFs.
Key = sha256(profile + capacities + payload + meta) -> PDF bytes, one file per key.
"""
from __future__ import annotations

import os
import re
from pathlib import Path

_DEFAULT_CACHE_DIR = Path(__file__).resolve().parent / "report_pdfs"
_KEY_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def report_pdf_cache_dir() -> Path:
    override = os.getenv("REPORT_PDF_CACHE_DIR", "").strip()
    return Path(override) if override else _DEFAULT_CACHE_DIR


def _ensure_dir(d: Path) -> None:
    d.mkdir(parents=True, exist_ok=True)


def _pdf_path(cache_key: str) -> Path:
    if not _KEY_PATTERN.match(cache_key):
        raise ValueError(f"Invalid report cache key: {cache_key!r}")
    return report_pdf_cache_dir() / f"{cache_key}.pdf"


def get_cached_report_pdf(cache_key: str) -> bytes | None:
    """Return cached PDF bytes, or None. Unreadable entries count as a miss."""
    path = _pdf_path(cache_key)
    if not path.is_file():
        return None
    try:
        return path.read_bytes()
    except OSError:
        return None


def set_cached_report_pdf(cache_key: str, pdf_bytes: bytes) -> None:
    """Store PDF bytes in cache."""
    path = _pdf_path(cache_key)
    _ensure_dir(path.parent)
    path.write_bytes(pdf_bytes)
