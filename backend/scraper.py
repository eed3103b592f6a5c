"""Page fetcher and markup extractors.

Fetches a single page (plus an optional /pricing page for the PLG audit)
and pulls a fixed set of signals out of it for one audit mode:
general/PLG content, accessibility, SEO/AEO, or site structure.
Does NOT crawl beyond those pages and never executes JavaScript.

Extraction is tolerant: BeautifulSoup always yields a best-effort tree
and missing elements come back as empty strings, zero counts or empty
lists, so a bare page still produces a well-formed signal set.
"""

import json as _json
import logging
import re
import time
from typing import Callable
from urllib.parse import urljoin, urlparse

import requests
from requests.compat import chardet
from bs4 import BeautifulSoup, Tag

from models import (
    AccessibilitySignals,
    AuditMode,
    ExtractedSignals,
    Heading,
    ImageRef,
    Link,
    PlgSignals,
    SeoAeoSignals,
    StructureSignals,
)

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 15
_CHUNK_SIZE = 64 * 1024

_REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
}

_SCHEME_PATTERN = re.compile(r"^https?://", re.I)
_HOST_PATTERN = re.compile(r"^[\w.\-:]+$")

_NON_CONTENT_TAGS = "script, style, noscript, svg"
_HEADING_TAGS = "h1, h2, h3, h4, h5, h6"
_CTA_SELECTOR = 'button, [role="button"], a[class*="btn"], a[class*="button"], a[class*="cta"]'

SIGNUP_VOCABULARY = (
    "sign up",
    "signup",
    "get started",
    "free trial",
    "start free",
    "try free",
    "create account",
    "register",
)
LOGIN_VOCABULARY = ("log in", "login", "sign in", "signin")
DEMO_VOCABULARY = ("demo",)
VAGUE_ANCHOR_TEXTS = {"click here", "read more", "learn more", "here", "more", "link"}
BROKEN_HREFS = {"#", "", "javascript:void(0)"}
SOCIAL_DOMAINS = (
    "linkedin.com",
    "twitter.com",
    "x.com",
    "facebook.com",
    "instagram.com",
    "youtube.com",
    "github.com",
)
SKIP_LINK_PREFIXES = ("#main", "#content", "#skip")

_COPYRIGHT_PATTERN = re.compile(r"©\s*(\d{4})|copyright\s*(\d{4})", re.I)
_FONT_DISPLAY_PATTERN = re.compile(r"font-display\s*:\s*\w+")


class InvalidURLError(ValueError):
    """Input could not be turned into an absolute http(s) URL."""


class FetchError(Exception):
    """Target site was unreachable or timed out."""


def normalize_url(raw_url: str) -> str:
    """Prefix https:// when no scheme is given and validate the result."""
    candidate = (raw_url or "").strip()
    if not _SCHEME_PATTERN.match(candidate):
        candidate = f"https://{candidate}"

    try:
        parsed = urlparse(candidate)
        parsed.port
    except ValueError as exc:
        raise InvalidURLError(raw_url) from exc

    host = parsed.hostname or ""
    if parsed.scheme not in ("http", "https") or not host or not _HOST_PATTERN.match(host):
        raise InvalidURLError(raw_url)
    return candidate


def site_name(url: str) -> str:
    """Hostname of a normalized URL, or the raw URL when it has none."""
    return urlparse(url).hostname or url


# --- Fetching ---


def _decode(body: bytes) -> str:
    """UTF-8 when the bytes are valid UTF-8, otherwise the detected charset."""
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        pass
    detected = (chardet.detect(body) or {}).get("encoding") if chardet else None
    try:
        return body.decode(detected or "latin-1", errors="replace")
    except LookupError:
        return body.decode("latin-1", errors="replace")


def _read_body(response: requests.Response, deadline: float) -> str:
    """Read a streamed body, giving up once the overall deadline has passed."""
    body = bytearray()
    try:
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            body.extend(chunk)
            if time.monotonic() > deadline:
                raise requests.Timeout(f"response not complete within {FETCH_TIMEOUT_SECONDS}s")
    finally:
        response.close()
    return _decode(bytes(body))


def _get(url: str) -> tuple[requests.Response, float]:
    deadline = time.monotonic() + FETCH_TIMEOUT_SECONDS
    response = requests.get(url, timeout=FETCH_TIMEOUT_SECONDS, headers=_REQUEST_HEADERS, stream=True)
    return response, deadline


def fetch_page(url: str) -> str:
    """GET the page body. Any HTTP status is accepted; transport errors and the deadline are not."""
    try:
        response, deadline = _get(url)
        return _read_body(response, deadline)
    except (requests.RequestException, ValueError, OSError) as exc:
        logger.warning("FETCH ERROR: %s: %s", url, exc)
        raise FetchError(url) from exc


def fetch_pricing_page(url: str) -> str:
    """Best-effort fetch of <origin>/pricing. Returns "" when unavailable."""
    pricing_url = urljoin(url, "/pricing")
    try:
        response, deadline = _get(pricing_url)
        if not response.ok:
            response.close()
            logger.info("PRICING SKIPPED: %s returned %s", pricing_url, response.status_code)
            return ""
        return _read_body(response, deadline)
    except (requests.RequestException, ValueError, OSError) as exc:
        logger.info("PRICING SKIPPED: %s: %s", pricing_url, exc)
        return ""


def extract_pricing_text(html: str, limit: int = 3000) -> str:
    """Visible text of the pricing page, whitespace-collapsed and capped."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    _strip_non_content(soup)
    container = soup.select_one('main, [role="main"], .pricing, #pricing, body') or soup
    return re.sub(r"\s+", " ", container.get_text(" ")).strip()[:limit]


# --- Shared helpers ---


def _strip_non_content(soup: BeautifulSoup) -> None:
    for tag in soup.select(_NON_CONTENT_TAGS):
        tag.decompose()


def _text(el: Tag) -> str:
    return el.get_text(" ", strip=True)


def _attr(el: Tag | None, name: str) -> str:
    if el is None:
        return ""
    value = el.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def _meta_content(soup: BeautifulSoup, selector: str) -> str:
    return _attr(soup.select_one(selector), "content")


def _title(soup: BeautifulSoup) -> str:
    return soup.title.get_text(strip=True) if soup.title else ""


def _headings(soup: BeautifulSoup) -> list[Heading]:
    out: list[Heading] = []
    for el in soup.select(_HEADING_TAGS):
        text = _text(el)
        if text:
            out.append({"tag": el.name, "text": text})
    return out


def _paragraphs(soup: BeautifulSoup, limit: int) -> list[str]:
    return [t for t in (_text(p) for p in soup.find_all("p")) if t][:limit]


def _images(soup: BeautifulSoup, limit: int) -> list[ImageRef]:
    return [
        {"src": _attr(img, "src"), "alt": _attr(img, "alt"), "has_alt": img.has_attr("alt")}
        for img in soup.find_all("img")[:limit]
    ]


def _links(soup: BeautifulSoup) -> list[Link]:
    return [{"text": _text(a), "href": _attr(a, "href")} for a in soup.find_all("a")]


def _matching_texts(soup: BeautifulSoup, vocabulary: tuple[str, ...]) -> list[str]:
    out: list[str] = []
    for el in soup.select("a, button"):
        text = _text(el)
        if any(word in text.lower() for word in vocabulary):
            out.append(text)
    return out


def _is_social_link(href: str) -> bool:
    host = (urlparse(href.strip()).hostname or "").lower()
    return any(host == domain or host.endswith(f".{domain}") for domain in SOCIAL_DOMAINS)


# --- Extractors ---


def extract_plg(html: str) -> PlgSignals:
    """Content, CTA and pricing signals for the PLG readiness audit."""
    soup = BeautifulSoup(html, "html.parser")
    _strip_non_content(soup)

    pricing_links = [
        _text(a)
        for a in soup.find_all("a")
        if "pricing" in _attr(a, "href") or "pricing" in _text(a).lower()
    ]

    return {
        "title": _title(soup),
        "meta_description": _meta_content(soup, 'meta[name="description"]'),
        "headings": _headings(soup),
        "paragraphs": _paragraphs(soup, 50),
        "links": [link for link in _links(soup) if link["text"]][:100],
        "buttons": [t for t in (_text(el) for el in soup.select(_CTA_SELECTOR)) if t],
        "images": _images(soup, 30),
        "forms": len(soup.find_all("form")),
        "signup_signals": _matching_texts(soup, SIGNUP_VOCABULARY),
        "login_signals": _matching_texts(soup, LOGIN_VOCABULARY),
        "pricing_links": pricing_links,
        "demo_signals": _matching_texts(soup, DEMO_VOCABULARY),
        "pricing_content": "",
    }


def extract_accessibility(html: str) -> AccessibilitySignals:
    """Language, landmark, label and keyboard signals for the accessibility audit."""
    soup = BeautifulSoup(html, "html.parser")

    html_lang = _attr(soup.find("html"), "lang")

    links = []
    for a in soup.find_all("a"):
        text, aria_label = _text(a), _attr(a, "aria-label")
        if text or aria_label:
            links.append({"text": text, "href": _attr(a, "href"), "aria_label": aria_label})

    forms = []
    for form in soup.find_all("form"):
        inputs = []
        for field in form.find_all(["input", "select", "textarea"]):
            field_id = _attr(field, "id")
            inputs.append(
                {
                    "type": _attr(field, "type") or field.name,
                    "id": field_id,
                    "name": _attr(field, "name"),
                    "aria_label": _attr(field, "aria-label"),
                    "autocomplete": _attr(field, "autocomplete"),
                    "has_label": bool(field_id) and soup.find("label", attrs={"for": field_id}) is not None,
                }
            )
        forms.append(
            {
                "inputs": inputs,
                "has_fieldset": form.find("fieldset") is not None,
                "has_legend": form.find("legend") is not None,
            }
        )

    aria_attributes = [
        {"tag": el.name, "role": _attr(el, "role"), "aria_label": _attr(el, "aria-label")}
        for el in soup.select("[role], [aria-label], [aria-labelledby], [aria-describedby]")[:50]
    ]

    landmarks = [
        {"tag": el.name, "role": _attr(el, "role"), "aria_label": _attr(el, "aria-label")}
        for el in soup.select(
            'header, nav, main, footer, aside, [role="banner"], [role="navigation"], '
            '[role="main"], [role="contentinfo"], [role="complementary"]'
        )
    ]

    skip_links = []
    for a in soup.find_all("a"):
        href = _attr(a, "href")
        if href.startswith(SKIP_LINK_PREFIXES) or "skip" in _text(a).lower():
            skip_links.append({"text": _text(a), "href": href})

    tabindex_elements = [
        {"tag": el.name, "tabindex": _attr(el, "tabindex"), "text": _text(el)[:50]}
        for el in soup.select("[tabindex]")[:20]
    ]

    buttons = []
    for el in soup.select('button, [role="button"], input[type="submit"], input[type="button"]'):
        text = _text(el) or _attr(el, "value")
        aria_label = _attr(el, "aria-label")
        if text or aria_label:
            buttons.append({"text": text, "aria_label": aria_label, "type": _attr(el, "type")})

    viewport_meta = _meta_content(soup, 'meta[name="viewport"]')
    headings = _headings(soup)
    images = _images(soup, 30)

    _strip_non_content(soup)

    return {
        "title": _title(soup),
        "meta_description": _meta_content(soup, 'meta[name="description"]'),
        "html_lang": html_lang,
        "viewport_meta": viewport_meta,
        "headings": headings,
        "images": images,
        "links": links[:80],
        "forms": forms,
        "aria_attributes": aria_attributes,
        "landmarks": landmarks,
        "skip_links": skip_links,
        "tabindex_elements": tabindex_elements,
        "buttons": buttons,
    }


def _schema_types(value: object) -> list[str]:
    if isinstance(value, list):
        return [str(t) for t in value if t]
    return [str(value)] if value else []


def _parse_json_ld(scripts: list[str]) -> tuple[list[str], list[str]]:
    """Top-level and @graph item types, plus a short detail line per script."""
    schema_types: list[str] = []
    schema_details: list[str] = []
    for raw in scripts:
        try:
            parsed = _json.loads(raw)
        except ValueError:
            schema_details.append("(invalid JSON-LD)")
            continue

        items = parsed if isinstance(parsed, list) else [parsed]
        for item in items:
            if not isinstance(item, dict):
                continue
            if item.get("@type"):
                schema_types.extend(_schema_types(item["@type"]))
                schema_details.append(_json.dumps(item, separators=(",", ":"), ensure_ascii=False)[:500])
            graph = item.get("@graph")
            if isinstance(graph, list):
                for node in graph:
                    if isinstance(node, dict) and node.get("@type"):
                        schema_types.extend(_schema_types(node["@type"]))
    return schema_types, schema_details


def extract_seo_aeo(html: str) -> SeoAeoSignals:
    """Meta, schema, trust and AI-citability signals for the SEO/AEO audit."""
    soup = BeautifulSoup(html, "html.parser")

    title = _title(soup)
    meta_description = _meta_content(soup, 'meta[name="description"]')

    og_tags = [
        {"name": _attr(el, "property"), "content": _attr(el, "content")}
        for el in soup.select('meta[property^="og:"]')
    ]
    twitter_tags = [
        {"name": _attr(el, "name"), "content": _attr(el, "content")}
        for el in soup.select('meta[name^="twitter:"]')
    ]

    favicon = _attr(soup.select_one('link[rel="icon"]'), "href") or _attr(
        soup.select_one('link[rel="shortcut icon"]'), "href"
    )

    h1_tags = soup.find_all("h1")

    json_ld = [s.get_text() for s in soup.select('script[type="application/ld+json"]')]
    schema_types, schema_details = _parse_json_ld(json_ld)

    all_links = [link for link in _links(soup) if link["text"] or link["href"]][:100]
    lowered = [(link, link["text"].lower(), link["href"]) for link in all_links]

    match = _COPYRIGHT_PATTERN.search(html)
    copyright_year = (match.group(1) or match.group(2)) if match else ""

    headings = _headings(soup)
    images = _images(soup, 30)

    _strip_non_content(soup)

    paragraphs = _paragraphs(soup, 40)
    faq_sections = len(
        soup.select(
            '[class*="faq"], [class*="FAQ"], [id*="faq"], [id*="FAQ"], details, [itemtype*="FAQPage"]'
        )
    )

    return {
        "title": title,
        "title_length": len(title),
        "meta_description": meta_description,
        "meta_description_length": len(meta_description),
        "canonical": _attr(soup.select_one('link[rel="canonical"]'), "href"),
        "robots_meta": _meta_content(soup, 'meta[name="robots"]'),
        "viewport": _meta_content(soup, 'meta[name="viewport"]'),
        "og_tags": og_tags,
        "twitter_tags": twitter_tags,
        "favicon": favicon,
        "apple_touch_icon": _attr(soup.select_one('link[rel="apple-touch-icon"]'), "href"),
        "headings": headings,
        "h1_count": len(h1_tags),
        "h1_text": _text(h1_tags[0]) if h1_tags else "",
        "json_ld_scripts": len(json_ld),
        "schema_types": schema_types,
        "schema_details": schema_details,
        "all_links": all_links[:60],
        "broken_link_patterns": [link for link in all_links if link["href"] in BROKEN_HREFS],
        "images": images,
        "hreflang_tags": [
            {"hreflang": _attr(el, "hreflang"), "href": _attr(el, "href")}
            for el in soup.select('link[rel="alternate"][hreflang]')
        ],
        "sitemap_link": _attr(soup.select_one('link[rel="sitemap"]'), "href"),
        "robots_txt_ref": any("robots.txt" in href for _, _, href in lowered),
        "privacy_link": any("privacy" in text or "privacy" in href for _, text, href in lowered),
        "terms_link": any("terms" in text or "terms" in href for _, text, href in lowered),
        "contact_info": any("contact" in text or "contact" in href for _, text, href in lowered),
        "social_links": [link for link in all_links if _is_social_link(link["href"])],
        "email_links": [link for link in all_links if link["href"].startswith("mailto:")],
        "phone_links": [link for link in all_links if link["href"].startswith("tel:")],
        "copyright_year": copyright_year,
        "paragraphs": paragraphs,
        "faq_sections": faq_sections,
        "question_patterns": [p for p in paragraphs if p.endswith("?") or p.startswith("Q:")],
    }


def extract_structure(html: str) -> StructureSignals:
    """Navigation, linking, hierarchy and performance-hint signals for the structure audit."""
    soup = BeautifulSoup(html, "html.parser")

    nav_elements = []
    for nav in soup.select("nav, [role='navigation']"):
        nav_links = [link for link in _links(nav) if link["text"]][:30]
        nav_elements.append({"aria_label": _attr(nav, "aria-label"), "links": nav_links})

    own_url = _meta_content(soup, 'meta[property="og:url"]') or "NOMATCH"
    all_links = [
        {
            "text": link["text"],
            "href": link["href"],
            "is_external": link["href"].startswith("http") and own_url not in link["href"],
        }
        for link in _links(soup)
        if link["text"] or link["href"]
    ][:150]

    external_count = sum(1 for link in all_links if link["href"].startswith("http"))

    footer_links = [
        {"text": _text(a), "href": _attr(a, "href")}
        for a in soup.select("footer a, [role='contentinfo'] a")
        if _text(a)
    ]

    breadcrumbs = [
        _text(el)
        for el in soup.select(
            '[class*="breadcrumb"], [aria-label*="breadcrumb"], [aria-label*="Breadcrumb"], '
            'ol[class*="bread"], nav[aria-label="Breadcrumb"]'
        )
    ]

    images = [
        {
            "src": _attr(img, "src"),
            "alt": _attr(img, "alt"),
            "has_width": bool(_attr(img, "width")),
            "has_height": bool(_attr(img, "height")),
            "loading": _attr(img, "loading"),
        }
        for img in soup.find_all("img")[:40]
    ]

    head_scripts = [
        {
            "src": _attr(el, "src") or "inline",
            "is_async": el.has_attr("async"),
            "defer": el.has_attr("defer"),
            "type": _attr(el, "type"),
        }
        for el in soup.select("head script")
    ]

    resource_hints = [
        {"rel": _attr(el, "rel"), "href": _attr(el, "href"), "as_": _attr(el, "as")}
        for el in soup.select('link[rel="preload"], link[rel="preconnect"], link[rel="dns-prefetch"]')
    ]

    third_party_scripts = [
        src for src in (_attr(el, "src") for el in soup.select("script[src]")) if src.startswith("http")
    ]

    viewport_meta = _meta_content(soup, 'meta[name="viewport"]')
    headings = _headings(soup)

    _strip_non_content(soup)

    sections = []
    for el in soup.select("section, [role='region'], article")[:20]:
        heading = el.select_one("h1, h2, h3")
        sections.append(
            {
                "tag": el.name,
                "aria_label": _attr(el, "aria-label"),
                "heading_text": _text(heading) if heading else "",
            }
        )

    return {
        "title": _title(soup),
        "meta_description": _meta_content(soup, 'meta[name="description"]'),
        "viewport_meta": viewport_meta,
        "nav_elements": nav_elements,
        "headings": headings,
        "h1_count": len(soup.find_all("h1")),
        "all_links": all_links[:80],
        "internal_link_count": len(all_links) - external_count,
        "external_link_count": external_count,
        "vague_anchors": [link for link in all_links if link["text"].lower() in VAGUE_ANCHOR_TEXTS],
        "footer_links": footer_links,
        "breadcrumbs": breadcrumbs,
        "images": images,
        "head_scripts": head_scripts,
        "resource_hints": resource_hints,
        "font_faces": _FONT_DISPLAY_PATTERN.findall(html),
        "third_party_scripts": third_party_scripts,
        "paragraphs": _paragraphs(soup, 40),
        "sections": sections,
        "ctas": [t for t in (_text(el) for el in soup.select(_CTA_SELECTOR)) if t],
    }


_EXTRACTORS: dict[AuditMode, Callable[[str], ExtractedSignals]] = {
    AuditMode.PLG: extract_plg,
    AuditMode.ACCESSIBILITY: extract_accessibility,
    AuditMode.SEO_AEO: extract_seo_aeo,
    AuditMode.STRUCTURE: extract_structure,
}


def extract(html: str, mode: AuditMode) -> ExtractedSignals:
    """Run the extractor for `mode` over raw HTML."""
    return _EXTRACTORS[AuditMode(mode)](html or "")
