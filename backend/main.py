from __future__ import annotations

import logging
import os
import time
import uuid
from pathlib import Path

from dotenv import load_dotenv

# Load .env from backend directory so REPORT_* settings are available
load_dotenv(Path(__file__).resolve().parent / ".env")

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from cache.disk_cache import get_cached_report_pdf, set_cached_report_pdf
from models import (
    CapacityOverride,
    GroupPageCount,
    PagePlanOut,
    PaginateRequest,
    PaginateResponse,
    ReportColumnOut,
    ReportProfileOut,
    ReportRenderRequest,
)
from reporting import report_builder
from reporting.pagination import (
    SCOPE_DOCUMENT,
    CapacityPolicy,
    CapacityPolicyError,
    PagePlan,
    ReportGroup,
    document_summary_policy,
    group_banner_policy,
    plan_flat_report,
    plan_pages,
    summarize_plan,
)
from reporting.report_data import build_report_data
from reporting.report_profiles import ReportProfile, get_profile, list_profiles

VERSION = (os.environ.get("GIT_COMMIT") or "").strip() or "unknown"

_LOG = logging.getLogger("uvicorn.error")


def _pdf_runtime_importable() -> bool:
    try:
        import playwright.sync_api  # noqa: F401
    except ImportError:
        return False
    return True


app = FastAPI(title="Report Pagination Backend", version="0.1.0")

# CORS: use ALLOWED_ORIGINS env (comma-separated) if set, else default
_origins_env = os.environ.get("ALLOWED_ORIGINS", "").strip()
if _origins_env:
    ALLOWED_ORIGINS = [o.strip() for o in _origins_env.split(",") if o.strip()]
else:
    ALLOWED_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        _LOG.info(
            "request_id=%s method=%s path=%s status=%s duration_ms=%.0f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        response.headers["X-Request-Id"] = request_id
        return response


app.add_middleware(RequestLogMiddleware)


@app.on_event("startup")
def startup_log() -> None:
    port = os.environ.get("PORT", "8010")
    host = os.environ.get("HOST", "127.0.0.1")
    pdf_ready = _pdf_runtime_importable()
    _LOG.info(
        "Backend starting on http://%s:%s (pdf runtime importable: %s) version=%s",
        host, port, pdf_ready, VERSION,
    )
    if not pdf_ready:
        _LOG.warning("Playwright is not installed. PDF endpoints will return 503; use /preview for HTML.")


@app.get("/health")
def health():
    return {
        "status": "ok",
        "pdf_runtime": _pdf_runtime_importable(),
        "version": VERSION,
    }


def _profile_out(profile: ReportProfile) -> ReportProfileOut:
    return ReportProfileOut(
        key=profile.key,
        title=profile.title,
        scope=profile.policy.scope,
        grouped=profile.grouped,
        has_summary=profile.has_summary,
        first_page_rows=profile.policy.first_page_rows,
        other_page_rows=profile.policy.other_page_rows,
        columns=[ReportColumnOut(key=c.key, label=c.label, kind=c.kind) for c in profile.columns],
    )


@app.get("/profiles", response_model=list[ReportProfileOut])
def get_profiles_list() -> list[ReportProfileOut]:
    """Return report profiles with their default page capacities."""
    return [_profile_out(p) for p in list_profiles()]


def _resolve_profile(profile_key: str, capacity: CapacityOverride | None) -> ReportProfile:
    profile = get_profile(profile_key)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"Unknown report profile: {profile_key}")
    if capacity is None:
        return profile
    try:
        return profile.with_capacity(capacity.first_page_rows, capacity.other_page_rows)
    except CapacityPolicyError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _paginate_response(
    pages: list[PagePlan],
    policy: CapacityPolicy,
    profile_key: str | None = None,
) -> PaginateResponse:
    summary = summarize_plan(pages)
    return PaginateResponse(
        profile=profile_key,
        scope=policy.scope,
        first_page_rows=policy.first_page_rows,
        other_page_rows=policy.other_page_rows,
        total_pages=summary.total_pages,
        group_page_counts=[GroupPageCount(group_name=name, pages=count) for name, count in summary.group_page_counts],
        pages=[PagePlanOut.from_plan(p) for p in pages],
    )


@app.post("/paginate", response_model=PaginateResponse)
def paginate(req: PaginateRequest) -> PaginateResponse:
    """
    Plan pages for explicit groups (or a flat row list). Capacities come from the named
    profile, or from the scope defaults, then per-request overrides. A scope that
    contradicts the named profile is a 422.
    """
    capacity = req.capacity or CapacityOverride()
    if req.profile:
        policy = _resolve_profile(req.profile, capacity).policy
        if req.scope is not None and req.scope != policy.scope:
            raise HTTPException(
                status_code=422,
                detail=f"Profile {req.profile!r} uses scope {policy.scope!r}; got scope {req.scope!r}",
            )
    else:
        try:
            base = document_summary_policy() if req.scope == SCOPE_DOCUMENT else group_banner_policy()
            policy = base.with_overrides(capacity.first_page_rows, capacity.other_page_rows)
        except CapacityPolicyError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    if req.rows is not None:
        pages = plan_flat_report(req.rows, policy)
    else:
        pages = plan_pages([ReportGroup(name=g.name, rows=g.rows) for g in req.groups or []], policy)
    return _paginate_response(pages, policy, req.profile)


@app.post("/reports/{profile_key}/paginate", response_model=PaginateResponse)
def paginate_report_payload(profile_key: str, req: ReportRenderRequest) -> PaginateResponse:
    """Adapt an upstream report payload for the profile and return its page plan."""
    profile = _resolve_profile(profile_key, req.capacity)
    meta_dict = req.meta.model_dump() if req.meta else {}
    data = build_report_data(profile, req.payload, meta_dict)
    return _paginate_response(data["pages"], profile.policy, profile.key)


@app.post("/reports/{profile_key}/preview", response_class=HTMLResponse)
def preview_report(profile_key: str, req: ReportRenderRequest) -> HTMLResponse:
    """Return the paginated report as print HTML (no Playwright required)."""
    profile = _resolve_profile(profile_key, req.capacity)
    meta_dict = req.meta.model_dump() if req.meta else {}
    report_id = report_builder.report_cache_key(profile, req.payload, meta_dict)[:16]
    html_str = report_builder.build_report_html(profile, req.payload, meta_dict)
    return HTMLResponse(html_str, headers={"X-Report-ID": report_id})


@app.post("/reports/{profile_key}/pdf")
def report_pdf(profile_key: str, req: ReportRenderRequest) -> Response:
    """
    Render the paginated report to PDF. Uses the disk cache when the same profile,
    capacities, payload and meta were rendered before.
    """
    profile = _resolve_profile(profile_key, req.capacity)
    meta_dict = req.meta.model_dump() if req.meta else {}
    cache_key = report_builder.report_cache_key(profile, req.payload, meta_dict)
    headers = {
        "X-Report-ID": cache_key[:16],
        "Content-Disposition": f'attachment; filename="{profile.key}-report.pdf"',
    }

    cached_pdf = get_cached_report_pdf(cache_key)
    if cached_pdf is not None:
        return Response(content=cached_pdf, media_type="application/pdf", headers=headers)

    html_str = report_builder.build_report_html(profile, req.payload, meta_dict)
    try:
        pdf_bytes = report_builder.html_to_pdf(html_str)
    except ImportError as e:
        raise HTTPException(
            status_code=503,
            detail="Playwright is required for PDF. Install: pip install playwright && playwright install chromium. Use /preview for HTML.",
            headers={"X-Report-ID": cache_key[:16]},
        ) from e
    except Exception as e:
        _LOG.warning("report_pdf profile=%s PDF generation failed: %s", profile.key, e)
        raise HTTPException(
            status_code=503,
            detail="PDF generation runtime unavailable. Use /preview to get HTML instead.",
            headers={"X-Report-ID": cache_key[:16]},
        ) from e

    set_cached_report_pdf(cache_key, pdf_bytes)
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)


def get_app() -> FastAPI:
    """
    Convenience accessor for ASGI servers.
    """
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8010")),
        reload=True,
    )
