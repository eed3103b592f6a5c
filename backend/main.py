"""Shrink Tools API – FastAPI app, JSON endpoints and server-rendered tool pages."""

from datetime import datetime, timezone
import logging
import os
from pathlib import Path
import sys

from dotenv import load_dotenv
from fastapi import FastAPI, Form, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

from audit_service import AuditOutcome, run_audit
from database import get_report_by_id, get_report_by_slug, init_db
from gate import ToolEvent, ToolState, is_unlocked, next_state, remember_unlock
from leads import forward_lead, lead_validation_error
from models import TOOLS, AuditMode, ToolInfo, tool_for
from schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    AuditReport,
    ErrorResponse,
    LeadRequest,
    LeadResponse,
)
from scraper import FetchError, InvalidURLError

logger = logging.getLogger(__name__)

INVALID_URL_MESSAGE = "That doesn't look like a URL. Try something like stripe.com"
UNREACHABLE_MESSAGE = "Couldn't reach that site. Check the URL and try again."
GENERIC_ERROR_MESSAGE = "Something went wrong on our end. Give it another go."
LEAD_FAILURE_MESSAGE = "Failed to save your details. Your report is still available."
GATE_CONSENT_MESSAGE = "You'll need to tick this one - we can't send your report without it."

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

app = FastAPI(
    title="Shrink Tools API",
    description="Single-page website audits scored by Claude",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup() -> None:
    init_db()


def _audit_or_error(raw_url: str, mode: AuditMode) -> tuple[AuditOutcome | None, int, str]:
    """Run an audit; on failure return (None, status, user-facing message)."""
    try:
        return run_audit(raw_url, mode), 200, ""
    except InvalidURLError:
        return None, 400, INVALID_URL_MESSAGE
    except FetchError:
        return None, 400, UNREACHABLE_MESSAGE
    except Exception:
        logger.exception("ANALYSIS ERROR: tool=%s url=%r", mode.value, raw_url)
        return None, 500, GENERIC_ERROR_MESSAGE


def _analyze(body: AnalyzeRequest, mode: AuditMode) -> AnalyzeResponse | JSONResponse:
    outcome, status, message = _audit_or_error(body.url, mode)
    if outcome is None:
        return JSONResponse(status_code=status, content={"error": message})
    return outcome.to_response()


_ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


@app.post("/api/analyze", response_model=AnalyzeResponse, responses=_ERROR_RESPONSES)
def analyze_plg(body: AnalyzeRequest):
    """PLG readiness audit."""
    return _analyze(body, AuditMode.PLG)


@app.post("/api/analyze-accessibility", response_model=AnalyzeResponse, responses=_ERROR_RESPONSES)
def analyze_accessibility(body: AnalyzeRequest):
    """Accessibility audit."""
    return _analyze(body, AuditMode.ACCESSIBILITY)


@app.post("/api/analyze-structure", response_model=AnalyzeResponse, responses=_ERROR_RESPONSES)
def analyze_structure(body: AnalyzeRequest):
    """Structure and information-architecture audit."""
    return _analyze(body, AuditMode.STRUCTURE)


@app.post("/api/analyze-seo-aeo", response_model=AnalyzeResponse, responses=_ERROR_RESPONSES)
def analyze_seo_aeo(body: AnalyzeRequest):
    """SEO and AI-engine visibility audit."""
    return _analyze(body, AuditMode.SEO_AEO)


@app.post("/api/leads", response_model=LeadResponse, response_model_exclude_none=True)
def create_lead(body: LeadRequest, response: Response):
    """
    Forward a captured lead to ClickUp.
    Delivery problems are logged and still reported as success.
    """
    error = lead_validation_error(body)
    if error:
        return JSONResponse(status_code=400, content={"success": False, "error": error})

    try:
        task_id = forward_lead(body)
    except Exception:
        logger.exception("LEADS ERROR: %s", body.email)
        return JSONResponse(status_code=500, content={"success": False, "error": LEAD_FAILURE_MESSAGE})

    remember_unlock(response)
    return LeadResponse(success=True, task_id=task_id)


@app.get("/health")
def health() -> dict:
    """Health check for deployment."""
    return {"status": "ok"}


# --- Pages ---


def _format_day(iso_timestamp: str) -> str:
    try:
        moment = datetime.fromisoformat(iso_timestamp)
    except (TypeError, ValueError):
        return ""
    return f"{moment.day} {moment:%b %Y}"


def _tool_labels(tool_value: str) -> tuple[str, str]:
    """(label, score label) for a stored tool value, tolerating unknown values."""
    try:
        tool = tool_for(tool_value or AuditMode.PLG.value)
    except ValueError:
        return "Report", "Score"
    return tool.label, tool.score_label


def report_metadata(report: dict) -> dict:
    """Title, description and Open Graph title for a stored report page."""
    label, _ = _tool_labels(report.get("tool"))
    site, score = report["site_name"], report["overall_score"]
    return {
        "title": f"{label} Report: {site} - {score}/100 | Shrink Studio",
        "description": report["summary"],
        "og_title": f"{label}: {site} scored {score}/100",
    }


def _not_found(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "not_found.html",
        {"meta": {"title": "Report not found | Shrink Studio", "description": ""}},
        status_code=404,
    )


def _render_tool(
    request: Request,
    tool: ToolInfo,
    state: ToolState,
    *,
    status_code: int = 200,
    error: str = "",
    gate_error: str = "",
    url: str = "",
    report: AuditReport | None = None,
    report_id: str | None = None,
    slug: str | None = None,
    form: dict | None = None,
) -> HTMLResponse:
    context = {
        "meta": {"title": f"{tool.label} | Shrink Studio", "description": tool.tagline},
        "tool": tool,
        "state": state.value,
        "error": error,
        "gate_error": gate_error,
        "url": url,
        "domain": (url.split("//", 1)[-1].split("/", 1)[0] if url else ""),
        "report": report.model_dump() if report else None,
        "report_json": report.model_dump_json(by_alias=True) if report else "",
        "report_id": report_id or "",
        "slug": slug or "",
        "form": form or {},
    }
    return templates.TemplateResponse(request, "tool.html", context, status_code=status_code)


def _register_tool_pages(tool: ToolInfo) -> None:
    """GET (idle), POST (analyze), POST /unlock (gate) and POST /reset for one tool page."""

    def show_tool(request: Request):
        return _render_tool(request, tool, ToolState.IDLE)

    def submit_tool(request: Request, url: str = Form("")):
        state = next_state(ToolState.IDLE, ToolEvent.SUBMIT)
        outcome, status, message = _audit_or_error(url, tool.mode)
        if outcome is None:
            state = next_state(state, ToolEvent.FAIL)
            return _render_tool(request, tool, state, status_code=status, error=message, form={"url": url})

        state = next_state(state, ToolEvent.SUCCEED, unlocked=is_unlocked(request.cookies))
        return _render_tool(
            request,
            tool,
            state,
            url=outcome.url,
            report=outcome.report,
            report_id=outcome.report_id,
            slug=outcome.slug,
        )

    def unlock_tool(
        request: Request,
        url: str = Form(""),
        report_json: str = Form(""),
        report_id: str = Form(""),
        slug: str = Form(""),
        email: str = Form(""),
        company: str = Form(""),
        gdpr_consent: bool = Form(False),
        mailing_list_opt_in: bool = Form(False),
    ):
        try:
            report = AuditReport.model_validate_json(report_json)
        except ValidationError:
            logger.warning("GATE ERROR: unreadable report payload for %s", url)
            return _render_tool(request, tool, ToolState.IDLE, status_code=400, error=GENERIC_ERROR_MESSAGE)

        gated = {"url": url, "report": report, "report_id": report_id, "slug": slug}
        form = {"email": email, "company": company, "mailing_list_opt_in": mailing_list_opt_in}
        if not gdpr_consent:
            return _render_tool(
                request, tool, ToolState.GATED, status_code=400, gate_error=GATE_CONSENT_MESSAGE, form=form, **gated
            )

        lead = LeadRequest(
            email=email,
            company=company,
            url=url,
            overall_score=report.overall_score,
            gdpr_consent=True,
            mailing_list_opt_in=mailing_list_opt_in,
            tool=tool.mode.value,
            timestamp=datetime.now(timezone.utc).isoformat(),
            report_id=report_id or None,
        )
        error = lead_validation_error(lead)
        if error:
            return _render_tool(request, tool, ToolState.GATED, status_code=400, gate_error=error, form=form, **gated)

        try:
            forward_lead(lead)
        except Exception:
            logger.exception("LEADS ERROR: %s", email)

        state = next_state(ToolState.GATED, ToolEvent.UNLOCK)
        response = _render_tool(request, tool, state, **gated)
        remember_unlock(response)
        return response

    def reset_tool(request: Request):
        return _render_tool(request, tool, next_state(ToolState.RESULTS, ToolEvent.RESET))

    name = tool.mode.value
    app.add_api_route(tool.page_path, show_tool, methods=["GET"], response_class=HTMLResponse, name=f"{name}-page")
    app.add_api_route(tool.page_path, submit_tool, methods=["POST"], response_class=HTMLResponse, name=f"{name}-submit")
    app.add_api_route(
        f"{tool.page_path}/unlock", unlock_tool, methods=["POST"], response_class=HTMLResponse, name=f"{name}-unlock"
    )
    app.add_api_route(
        f"{tool.page_path}/reset", reset_tool, methods=["POST"], response_class=HTMLResponse, name=f"{name}-reset"
    )


for _tool in TOOLS.values():
    _register_tool_pages(_tool)


@app.get("/", response_class=HTMLResponse)
def landing(request: Request):
    """Landing page listing the audit tools."""
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "meta": {"title": "Shrink Tools | Shrink Studio", "description": "Free website audits, scored in seconds."},
            "tools": list(TOOLS.values()),
        },
    )


@app.get("/report/{report_id}", response_class=HTMLResponse)
def legacy_report(request: Request, report_id: str):
    """Old id-based report links redirect to the slug address."""
    report = get_report_by_id(report_id)
    if report is None or not report.get("slug"):
        return _not_found(request)
    return RedirectResponse(url=f"/{report['slug']}", status_code=308)


@app.get("/{slug}", response_class=HTMLResponse)
def report_page(request: Request, slug: str):
    """Public, shareable report page."""
    report = get_report_by_slug(slug)
    if report is None:
        return _not_found(request)

    _, score_label = _tool_labels(report.get("tool"))
    return templates.TemplateResponse(
        request,
        "report.html",
        {
            "meta": report_metadata(report),
            "report": report,
            "score_label": score_label,
            "generated_on": _format_day(report["created_at"]),
        },
    )
