"""
Claude API key must be defined in a .env file in the backend root:

ANTHROPIC_API_KEY=your_real_key_here

The app loads environment variables automatically using python-dotenv.

One call per audit: no retries, no fallback result. Anything other than a
well-formed AuditReport raises UpstreamError.
"""

import json
import logging
import os
import re
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")

from anthropic import Anthropic, APIError

from schemas import AuditReport

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
MAX_TOKENS = int(os.getenv("CLAUDE_MAX_TOKENS", "4000"))

_OPENING_FENCE = re.compile(r"^```(?:json)?\n?")
_CLOSING_FENCE = re.compile(r"\n?```$")


class UpstreamError(Exception):
    """The language model call failed or returned unusable output."""


class UpstreamContractError(UpstreamError):
    """The model returned JSON that does not match the AuditReport shape."""

    def __init__(self, message: str, payload: object = None):
        super().__init__(message)
        self.payload = payload


def strip_code_fence(text: str) -> str:
    """Remove a leading ``` / ```json fence line and its closing fence."""
    text = (text or "").strip()
    if text.startswith("```"):
        text = _CLOSING_FENCE.sub("", _OPENING_FENCE.sub("", text, count=1), count=1)
    return text


def parse_report(text: str) -> AuditReport:
    """Parse raw model text into a validated AuditReport."""
    json_text = strip_code_fence(text)
    try:
        payload = json.loads(json_text)
    except ValueError as exc:
        logger.error("CLAUDE PARSE ERROR: %s | raw=%r", exc, json_text[:500])
        raise UpstreamError("Model response was not valid JSON.") from exc

    try:
        return AuditReport.model_validate(payload)
    except ValidationError as exc:
        logger.error("CLAUDE CONTRACT ERROR: %s", exc.errors(include_url=False))
        raise UpstreamContractError("Model response did not match the report schema.", payload) from exc


def _extract_response_text(response: object) -> str:
    content = ""
    for block in getattr(response, "content", []) or []:
        text = getattr(block, "text", None)
        if text:
            content += text
    return content.strip()


def _call_claude(system_prompt: str, user_prompt: str) -> str:
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        logger.error("CLAUDE ERROR: ANTHROPIC_API_KEY not found in environment.")
        raise UpstreamError("ANTHROPIC_API_KEY is not configured.")

    model = os.getenv("CLAUDE_MODEL", "").strip() or DEFAULT_MODEL
    client = Anthropic(api_key=api_key, max_retries=0)
    try:
        response = client.messages.create(
            model=model,
            max_tokens=MAX_TOKENS,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
    except APIError as exc:
        logger.error("CLAUDE ERROR: model=%s: %s", model, exc)
        raise UpstreamError(str(exc)) from exc

    if getattr(response, "stop_reason", None) == "max_tokens":
        logger.warning("CLAUDE WARNING: output hit max_tokens for model=%s.", model)

    content = _extract_response_text(response)
    if not content:
        raise UpstreamError("Empty Claude response content.")
    return content


def request_report(system_prompt: str, user_prompt: str) -> AuditReport:
    """Send one prompt pair to Claude and return the parsed report."""
    return parse_report(_call_claude(system_prompt, user_prompt))
