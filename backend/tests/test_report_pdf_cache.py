from __future__ import annotations

import hashlib
import uuid

import pytest

from cache.disk_cache import get_cached_report_pdf, report_pdf_cache_dir, set_cached_report_pdf


def _key() -> str:
    return hashlib.sha256(str(uuid.uuid4()).encode()).hexdigest()


def test_report_pdf_cache_round_trip_and_isolation(monkeypatch, tmp_path):
    monkeypatch.setenv("REPORT_PDF_CACHE_DIR", str(tmp_path / "pdfs"))
    key = _key()
    pdf_bytes = f"pdf-{uuid.uuid4()}".encode("utf-8")

    assert get_cached_report_pdf(key) is None
    set_cached_report_pdf(key, pdf_bytes)

    assert get_cached_report_pdf(key) == pdf_bytes
    assert get_cached_report_pdf(_key()) is None
    assert (report_pdf_cache_dir() / f"{key}.pdf").is_file()


def test_report_pdf_cache_rejects_path_like_keys(monkeypatch, tmp_path):
    monkeypatch.setenv("REPORT_PDF_CACHE_DIR", str(tmp_path))
    with pytest.raises(ValueError):
        get_cached_report_pdf("../../etc/passwd")
