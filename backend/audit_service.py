"""Shared audit pipeline used by every tool.

normalize URL -> fetch page (+ /pricing for PLG) -> extract signals ->
compose prompt -> Claude -> store report. All steps run sequentially.
"""

from dataclasses import dataclass
import logging

from ai_service import request_report
from database import save_report
from models import AuditMode
from prompts import SYSTEM_PROMPTS, compose_prompt
from schemas import AnalyzeResponse, AuditReport
from scraper import (
    extract,
    extract_pricing_text,
    fetch_page,
    fetch_pricing_page,
    normalize_url,
    site_name,
)

logger = logging.getLogger(__name__)


@dataclass
class AuditOutcome:
    """A finished audit. report_id and slug are None when storage failed."""

    url: str
    site_name: str
    mode: AuditMode
    report: AuditReport
    report_id: str | None = None
    slug: str | None = None

    def to_response(self) -> AnalyzeResponse:
        return AnalyzeResponse(
            **self.report.model_dump(),
            report_id=self.report_id,
            slug=self.slug,
        )


def run_audit(raw_url: str, mode: AuditMode) -> AuditOutcome:
    """
    Run one audit end to end.

    Raises InvalidURLError before any network I/O, FetchError if the site
    cannot be reached, and UpstreamError if Claude fails or answers badly.
    Storage failures are absorbed.
    """
    mode = AuditMode(mode)

    # 1. Validate and normalize
    url = normalize_url(raw_url)

    # 2. Fetch (pricing page is best-effort and PLG-only)
    html = fetch_page(url)
    pricing_html = fetch_pricing_page(url) if mode is AuditMode.PLG else ""

    # 3. Extract and compose
    signals = extract(html, mode)
    if mode is AuditMode.PLG:
        signals["pricing_content"] = extract_pricing_text(pricing_html)
    user_prompt = compose_prompt(signals, mode, url)

    # 4. Score
    report = request_report(SYSTEM_PROMPTS[mode], user_prompt)

    # 5. Store
    host = site_name(url)
    saved = save_report(report, url=url, site_name=host, tool=mode)
    outcome = AuditOutcome(url=url, site_name=host, mode=mode, report=report)
    if saved:
        outcome.report_id = saved["id"]
        outcome.slug = saved["slug"]

    logger.info(
        "AUDIT DONE: tool=%s url=%s score=%s slug=%s",
        mode.value,
        url,
        report.overall_score,
        outcome.slug,
    )
    return outcome
