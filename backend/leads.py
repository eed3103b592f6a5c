"""Lead delivery to the ClickUp task list.

Delivery is best-effort: a missing CLICKUP_API_KEY, a transport error or a
non-2xx reply is logged and reported as "no task created", never raised.
"""

from datetime import datetime
import logging
import os
from pathlib import Path

import requests
from dotenv import load_dotenv

from database import get_report_slug
from schemas import EMAIL_PATTERN, LeadRequest

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")

logger = logging.getLogger(__name__)

CLICKUP_API_BASE = "https://api.clickup.com/api/v2"
DEFAULT_CLICKUP_LIST_ID = "901216009134"
DEFAULT_PUBLIC_SITE_URL = "https://tools.shrink.studio"
LEAD_TIMEOUT_SECONDS = 10

INVALID_EMAIL_MESSAGE = "Valid email is required."
MISSING_CONSENT_MESSAGE = "GDPR consent is required."


def public_site_url() -> str:
    return (os.getenv("PUBLIC_SITE_URL") or DEFAULT_PUBLIC_SITE_URL).rstrip("/")


def lead_validation_error(lead: LeadRequest) -> str | None:
    """Return the user-facing error for an unacceptable lead, else None."""
    if not lead.email or not EMAIL_PATTERN.match(lead.email):
        return INVALID_EMAIL_MESSAGE
    if not lead.gdpr_consent:
        return MISSING_CONSENT_MESSAGE
    return None


def format_captured_at(timestamp: str) -> str:
    """Format an ISO timestamp as e.g. 19 Oct 2026, 14:05. Unparseable input is returned as-is."""
    try:
        captured = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp or "Unknown"
    return f"{captured.day} {captured:%b %Y, %H:%M}"


def report_link(report_id: str) -> str:
    """Shareable report URL: slug-based when resolvable, id-based otherwise."""
    base = public_site_url()
    slug = get_report_slug(report_id)
    if slug:
        return f"{base}/{slug}"
    return f"{base}/report/{report_id}"


def build_task_description(lead: LeadRequest) -> str:
    lines = [
        "Lead from Shrink Tools",
        "",
        f"Email: {lead.email}",
        f"Company: {lead.company or 'Not provided'}",
        f"URL analysed: {lead.url}",
        f"Tool: {lead.tool}",
        f"Overall score: {lead.overall_score}/100",
        "GDPR consent: Yes",
        f"Mailing list opt-in: {'Yes' if lead.mailing_list_opt_in else 'No'}",
        f"Captured: {format_captured_at(lead.timestamp)}",
    ]
    if lead.report_id:
        lines.extend(["", f"Report: {report_link(lead.report_id)}"])
    return "\n".join(lines)


def forward_lead(lead: LeadRequest) -> str | None:
    """
    Create a ClickUp task for a validated lead.
    Returns the task id, or None if delivery was skipped or failed.
    """
    api_key = os.getenv("CLICKUP_API_KEY")
    if not api_key:
        logger.error("LEAD SKIPPED: CLICKUP_API_KEY is not set")
        return None

    list_id = os.getenv("CLICKUP_LIST_ID") or DEFAULT_CLICKUP_LIST_ID
    task = {
        "name": f"{lead.company or 'Unknown'} - {lead.email}",
        "description": build_task_description(lead),
        "status": "lead in",
        "tags": [lead.tool or "plg"],
    }

    try:
        response = requests.post(
            f"{CLICKUP_API_BASE}/list/{list_id}/task",
            json=task,
            headers={"Authorization": api_key, "Content-Type": "application/json"},
            timeout=LEAD_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.error("CLICKUP ERROR: request failed: %s", exc)
        return None

    if not response.ok:
        logger.error("CLICKUP ERROR: %s %s", response.status_code, response.text[:500])
        return None

    try:
        task_id = response.json().get("id")
    except ValueError:
        task_id = None
    logger.info("LEAD SENT: %s task=%s", lead.email, task_id)
    return str(task_id) if task_id else None
