"""Data models and types used across the backend.

Database table definitions are in database.py.
Request/response schemas live in schemas.py.
Audit modes and extracted-signal shapes live here.
"""

from enum import Enum
from typing import NamedTuple, TypedDict


class AuditMode(str, Enum):
    """Scoring profile applied to a fetched page."""

    PLG = "plg"
    ACCESSIBILITY = "accessibility"
    STRUCTURE = "structure"
    SEO_AEO = "seo-aeo"


class ToolInfo(NamedTuple):
    """Routing and labelling metadata for one audit tool."""

    mode: AuditMode
    page_path: str
    api_path: str
    label: str
    score_label: str
    slug_suffix: str
    prompt_intro: str
    tagline: str


TOOLS: dict[AuditMode, ToolInfo] = {
    AuditMode.PLG: ToolInfo(
        mode=AuditMode.PLG,
        page_path="/plg-readiness",
        api_path="/api/analyze",
        label="PLG Readiness",
        score_label="PLG Readiness Score",
        slug_suffix="plg-assessment",
        prompt_intro="Analyze this website for PLG readiness",
        tagline="How well does your site sell itself without a sales call?",
    ),
    AuditMode.ACCESSIBILITY: ToolInfo(
        mode=AuditMode.ACCESSIBILITY,
        page_path="/accessibility",
        api_path="/api/analyze-accessibility",
        label="Accessibility",
        score_label="Accessibility Score",
        slug_suffix="accessibility-assessment",
        prompt_intro="Analyze this website for accessibility",
        tagline="Can everyone actually use your site?",
    ),
    AuditMode.STRUCTURE: ToolInfo(
        mode=AuditMode.STRUCTURE,
        page_path="/structure",
        api_path="/api/analyze-structure",
        label="Structure & Scaffolding",
        score_label="Structure Score",
        slug_suffix="structure-assessment",
        prompt_intro="Analyze this website's structure and information architecture",
        tagline="Is your site organised the way people look for things?",
    ),
    AuditMode.SEO_AEO: ToolInfo(
        mode=AuditMode.SEO_AEO,
        page_path="/seo-aeo",
        api_path="/api/analyze-seo-aeo",
        label="SEO & AEO Visibility",
        score_label="SEO & AEO Score",
        slug_suffix="seo-aeo-assessment",
        prompt_intro="Analyze this website for SEO and AI Engine Optimisation",
        tagline="Will search engines and AI assistants find and cite you?",
    ),
}


def tool_for(value: str | AuditMode) -> ToolInfo:
    """Return tool metadata for a mode value such as "seo-aeo"."""
    return TOOLS[AuditMode(value)]


# --- Shared sub-records ---


class Heading(TypedDict):
    tag: str
    text: str


class Link(TypedDict):
    text: str
    href: str


class ImageRef(TypedDict):
    src: str
    alt: str
    has_alt: bool


# --- PLG readiness ---


class PlgSignals(TypedDict):
    """Content and call-to-action signals for the PLG audit."""

    title: str
    meta_description: str
    headings: list[Heading]
    paragraphs: list[str]
    links: list[Link]
    buttons: list[str]
    images: list[ImageRef]
    forms: int
    signup_signals: list[str]
    login_signals: list[str]
    pricing_links: list[str]
    demo_signals: list[str]
    pricing_content: str


# --- Accessibility ---


class LabelledLink(TypedDict):
    text: str
    href: str
    aria_label: str


class FormInput(TypedDict):
    type: str
    id: str
    name: str
    aria_label: str
    autocomplete: str
    has_label: bool


class FormSummary(TypedDict):
    inputs: list[FormInput]
    has_fieldset: bool
    has_legend: bool


class AriaElement(TypedDict):
    tag: str
    role: str
    aria_label: str


class TabindexElement(TypedDict):
    tag: str
    tabindex: str
    text: str


class ButtonRef(TypedDict):
    text: str
    aria_label: str
    type: str


class AccessibilitySignals(TypedDict):
    """Markup signals relevant to WCAG-style checks."""

    title: str
    meta_description: str
    html_lang: str
    viewport_meta: str
    headings: list[Heading]
    images: list[ImageRef]
    links: list[LabelledLink]
    forms: list[FormSummary]
    aria_attributes: list[AriaElement]
    landmarks: list[AriaElement]
    skip_links: list[Link]
    tabindex_elements: list[TabindexElement]
    buttons: list[ButtonRef]


# --- SEO / AEO ---


class MetaTag(TypedDict):
    name: str
    content: str


class Hreflang(TypedDict):
    hreflang: str
    href: str


class SeoAeoSignals(TypedDict):
    """On-page SEO and AI-citability signals."""

    title: str
    title_length: int
    meta_description: str
    meta_description_length: int
    canonical: str
    robots_meta: str
    viewport: str
    og_tags: list[MetaTag]
    twitter_tags: list[MetaTag]
    favicon: str
    apple_touch_icon: str
    headings: list[Heading]
    h1_count: int
    h1_text: str
    json_ld_scripts: int
    schema_types: list[str]
    schema_details: list[str]
    all_links: list[Link]
    broken_link_patterns: list[Link]
    images: list[ImageRef]
    hreflang_tags: list[Hreflang]
    sitemap_link: str
    robots_txt_ref: bool
    privacy_link: bool
    terms_link: bool
    contact_info: bool
    social_links: list[Link]
    email_links: list[Link]
    phone_links: list[Link]
    copyright_year: str
    paragraphs: list[str]
    faq_sections: int
    question_patterns: list[str]


# --- Structure ---


class NavRegion(TypedDict):
    aria_label: str
    links: list[Link]


class ClassifiedLink(TypedDict):
    text: str
    href: str
    is_external: bool


class LayoutImage(TypedDict):
    src: str
    alt: str
    has_width: bool
    has_height: bool
    loading: str


class HeadScript(TypedDict):
    src: str
    is_async: bool
    defer: bool
    type: str


class ResourceHint(TypedDict):
    rel: str
    href: str
    as_: str


class ContentSection(TypedDict):
    tag: str
    aria_label: str
    heading_text: str


class StructureSignals(TypedDict):
    """Navigation, hierarchy and layout signals for the structure audit."""

    title: str
    meta_description: str
    viewport_meta: str
    nav_elements: list[NavRegion]
    headings: list[Heading]
    h1_count: int
    all_links: list[ClassifiedLink]
    internal_link_count: int
    external_link_count: int
    vague_anchors: list[ClassifiedLink]
    footer_links: list[Link]
    breadcrumbs: list[str]
    images: list[LayoutImage]
    head_scripts: list[HeadScript]
    resource_hints: list[ResourceHint]
    font_faces: list[str]
    third_party_scripts: list[str]
    paragraphs: list[str]
    sections: list[ContentSection]
    ctas: list[str]


ExtractedSignals = PlgSignals | AccessibilitySignals | SeoAeoSignals | StructureSignals
