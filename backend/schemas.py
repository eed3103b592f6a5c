"""Pydantic schemas for API request/response."""

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

PRIORITY_RANK = {"HIGH": 0, "MEDIUM": 1, "LOW": 2}


class CamelModel(BaseModel):
    """Snake-case fields in Python, camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeRequest(BaseModel):
    """Request body for POST /api/analyze*."""

    url: str = ""

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url_text(cls, value: object) -> str:
        return str(value or "").strip()


class CategoryScore(BaseModel):
    """One of the seven scored categories."""

    name: str
    score: int = Field(ge=0, le=100)
    description: str


class Strength(BaseModel):
    title: str
    impact: Literal["HIGH", "MEDIUM"]
    description: str


class Improvement(BaseModel):
    title: str
    priority: Literal["HIGH", "MEDIUM", "LOW"]
    description: str
    recommendation: str


class AuditReport(CamelModel):
    """Scored audit returned by the language model.

    Improvements are re-ordered HIGH -> LOW; every other deviation
    fails validation.
    """

    overall_score: int = Field(ge=0, le=100)
    summary: str
    categories: list[CategoryScore] = Field(min_length=7, max_length=7)
    strengths: list[Strength] = Field(min_length=3, max_length=4)
    improvements: list[Improvement] = Field(min_length=3, max_length=4)

    @field_validator("improvements")
    @classmethod
    def sort_by_priority(cls, value: list[Improvement]) -> list[Improvement]:
        return sorted(value, key=lambda item: PRIORITY_RANK[item.priority])


class AnalyzeResponse(AuditReport):
    """Response for POST /api/analyze*."""

    report_id: str | None = None
    slug: str | None = None


class ErrorResponse(BaseModel):
    error: str


class LeadRequest(CamelModel):
    """Lead captured by the email gate.

    Email and consent checks live in leads.lead_validation_error.
    """

    email: str = ""
    company: str = ""
    url: str = ""
    overall_score: int = 0
    gdpr_consent: bool = False
    mailing_list_opt_in: bool = False
    tool: str = "plg"
    timestamp: str = ""
    report_id: str | None = None

    @field_validator("email", "company", "url", "tool", "timestamp", mode="before")
    @classmethod
    def normalize_text_fields(cls, value: object) -> str:
        return str(value or "").strip()


class LeadResponse(CamelModel):
    success: bool
    task_id: str | None = None
    error: str | None = None
