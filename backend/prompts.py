"""System prompts and user-prompt composition for each audit mode.

Composition is plain string templating over already-bounded signals:
every section is either populated or replaced with a fixed
"None found"/"NOT SET" literal. Same input, same prompt.
"""

from models import (
    AccessibilitySignals,
    AuditMode,
    ExtractedSignals,
    ImageRef,
    PlgSignals,
    SeoAeoSignals,
    StructureSignals,
    tool_for,
)

_RESPONSE_FORMAT = """Return ONLY valid JSON in this exact format:
{{
  "overallScore": <number 0-100>,
  "summary": "<2-3 sentence overview of {summary_focus}>",
  "categories": [
{categories}
  ],
  "strengths": [
    {{
      "title": "<strength title>",
      "impact": "HIGH" | "MEDIUM",
      "description": "<detailed explanation of what they're doing well, referencing specific content from the website>"
    }}
  ],
  "improvements": [
    {{
      "title": "<improvement title>",
      "priority": "HIGH" | "MEDIUM" | "LOW",
      "description": "<what the issue is, referencing specific observations>",
      "recommendation": "<specific actionable recommendation>"
    }}
  ]
}}"""

CATEGORY_NAMES: dict[AuditMode, tuple[str, ...]] = {
    AuditMode.PLG: (
        "Value Prop",
        "Self-Service",
        "Onboarding",
        "Social Proof",
        "CTA Clarity",
        "Visibility",
        "Pricing",
    ),
    AuditMode.ACCESSIBILITY: (
        "Colour & Contrast",
        "Images & Media",
        "Keyboard Nav",
        "Screen Reader",
        "Forms & Inputs",
        "Structure & Semantics",
        "Responsive & Adaptable",
    ),
    AuditMode.STRUCTURE: (
        "Navigation",
        "URL Structure",
        "Internal Linking",
        "Page Hierarchy",
        "Mobile Structure",
        "Performance Hints",
        "Content Organisation",
    ),
    AuditMode.SEO_AEO: (
        "Meta & On-Page SEO",
        "Heading & Content",
        "Schema & Structured Data",
        "AI Visibility",
        "Technical SEO",
        "Content Quality & E-E-A-T",
        "Local & Entity Signals",
    ),
}


def _response_format(mode: AuditMode, summary_focus: str) -> str:
    categories = ",\n".join(
        "    {\n"
        f'      "name": "{name}",\n'
        '      "score": <number 0-100>,\n'
        '      "description": "<brief assessment>"\n'
        "    }"
        for name in CATEGORY_NAMES[mode]
    )
    return _RESPONSE_FORMAT.format(summary_focus=summary_focus, categories=categories)


PLG_SYSTEM_PROMPT = f"""You are an expert Product-Led Growth (PLG) analyst. Analyze the provided website content and return a JSON response scoring the site across 7 PLG categories on how well it implements product-led growth principles.

Score each category 0-100 based on how effectively the website:
- Communicates value without requiring sales interaction
- Enables self-service signup and exploration
- Demonstrates the product before commitment
- Builds trust through social proof and transparency
- Guides users toward activation with clear CTAs

{_response_format(AuditMode.PLG, "the site's PLG effectiveness")}

Write like you're giving honest feedback to a founder over coffee. Short sentences. No filler.

Be specific and reference actual content from the website. Provide 3-4 strengths and 3-4 improvements. Return improvements sorted by priority, most impactful first. Be honest. If something is genuinely blocking growth, mark it HIGH.

Scores should be realistic and varied. Don't give everything 80-90. A site with no free trial or self-service signup should score low on Self-Service. A site with no product screenshots should score low on Visibility."""

ACCESSIBILITY_SYSTEM_PROMPT = f"""You are an expert web accessibility auditor. Analyze the provided website content and return a JSON response scoring the site across 7 accessibility categories.

Score each category 0-100 based on how well the website meets WCAG 2.1 AA standards:

1. **Colour & Contrast**: sufficient text/background contrast ratios, not relying on colour alone to convey information, focus indicators visible.
2. **Images & Media**: meaningful alt text on images, decorative images marked appropriately, video/audio alternatives.
3. **Keyboard Navigation**: all interactive elements reachable via keyboard, logical tab order, skip links present, no keyboard traps.
4. **Screen Reader Support**: proper ARIA roles/labels, landmark regions, live regions, meaningful link text (no "click here").
5. **Forms & Inputs**: labels associated with inputs, fieldset/legend for groups, clear error messaging, autocomplete attributes.
6. **Structure & Semantics**: logical heading hierarchy (h1, h2, h3), semantic HTML elements, lang attribute on <html>, meaningful page title.
7. **Responsive & Adaptable**: viewport meta configured, content reflows at different sizes, touch targets adequately sized, text resizable.

{_response_format(AuditMode.ACCESSIBILITY, "the site's accessibility")}

Write like you're giving helpful, honest feedback, not punitive. Short sentences. No filler. This is a sales tool, so be encouraging about what's working while being clear about what needs attention.

Be specific and reference actual content from the website. Provide 3-4 strengths and 3-4 improvements. Return improvements sorted by priority, most impactful first. Be honest. If something is a genuine barrier to access, mark it HIGH.

Scores should be realistic and varied. Don't give everything 70-80. A site with no alt text should score very low on Images & Media. A site with no skip links and missing focus styles should score low on Keyboard Navigation."""

STRUCTURE_SYSTEM_PROMPT = f"""You are an expert information architecture and web structure analyst. Analyze the provided website content and return a JSON response scoring the site across 7 structural categories.

Score each category 0-100 based on what you can observe in the HTML:

1. **Navigation**: Primary navigation is clear and consistent. Labels are descriptive (not vague like "Solutions" or "Resources" with no context). Navigation doesn't exceed 7 plus or minus 2 top-level items. Dropdown/mega menu structure is logical. Breadcrumbs present for deep pages.

2. **URL Structure**: URLs are clean, readable, and descriptive (not /page?id=123). Consistent URL patterns across the site. Logical hierarchy reflected in URL path (e.g. /blog/category/post). No excessive nesting (more than 3-4 levels deep is a warning). No URL parameters where clean URLs would work.

3. **Internal Linking**: Pages link to related content contextually. Anchor text is descriptive (not "click here" or "read more"). Footer isn't overloaded with links as a crutch for poor navigation. Key pages are reachable within 3 clicks from the homepage.

4. **Page Hierarchy**: Clear heading hierarchy (h1, h2, h3, no skipping levels). Only one h1 per page. Headings accurately describe the content that follows. Content is logically grouped under headings. Heading structure would make sense as a table of contents.

5. **Mobile Structure**: Viewport meta is properly configured. Content stacking order makes sense for mobile. Touch-friendly tap targets (no tiny links crammed together). Responsive images and media. Mobile-specific navigation works logically.

6. **Performance Hints**: Images have width/height attributes (prevents layout shift). Critical resources are preloaded or prioritised. No render-blocking scripts in the head without async/defer. Lazy loading on below-the-fold images. Font loading strategy (font-display: swap or similar). Minimal third-party script bloat visible in the HTML.

7. **Content Organisation**: Content is scannable (short paragraphs, clear sections). Related content is grouped logically. CTAs are placed in context (not randomly inserted). Information density is appropriate. Key information is above the fold. Content follows a logical flow (problem, solution, proof, action).

{_response_format(AuditMode.STRUCTURE, "the site's structural quality")}

Write like you're giving honest, practical feedback to a founder over coffee. Short sentences. No filler. This is a sales tool: findings should make the prospect think "I need professional help to fix this" while being encouraging about what's working.

Be specific and reference actual content from the website. Provide 3-4 strengths and 3-4 improvements. Return improvements sorted by priority, most impactful first. Be honest. If something genuinely hurts discoverability or user experience, mark it HIGH.

Scores should be realistic and varied. Don't give everything 60-80. A site with broken heading hierarchy should score very low on Page Hierarchy. A site with vague navigation labels and 15 top-level items should score low on Navigation.

If you can't fully assess something from a single page's HTML alone (like full site-wide linking patterns), note the limitation but assess what you can see. Focus on things that genuinely impact user experience and discoverability."""

SEO_AEO_SYSTEM_PROMPT = f"""You are an expert SEO and AI Engine Optimisation (AEO) analyst. Analyze the provided website content and return a JSON response scoring the site across 7 categories covering both traditional SEO and AI visibility.

Score each category 0-100 based on what you can observe in the HTML:

1. **Meta & On-Page SEO**: Title tag present, unique, descriptive, 50-60 characters. Meta description present, compelling, 150-160 characters. Canonical URL set correctly. Open Graph and Twitter Card meta tags present. Robots meta tag not accidentally blocking indexing. Favicon and apple-touch-icon present.

2. **Heading & Content Structure**: Single h1 that clearly describes the page topic. Logical heading hierarchy (h1, h2, h3). Headings contain relevant keywords naturally (not stuffed). Content length is appropriate for the page type. Content is original and substantive (not thin). Key information appears early on the page.

3. **Schema & Structured Data**: JSON-LD schema markup present. Schema type is appropriate for the page (Organization, WebPage, Product, Article, FAQ, etc.). Schema is complete (not just the bare minimum fields). Multiple relevant schema types used where appropriate. Schema would help generate rich snippets in search results. FAQ schema present where applicable (great for AI answers).

4. **AI Visibility & Citability**: This is the star category; be thorough. Content is written in clear, factual, quotable statements (AI models love to cite these). Questions are explicitly asked and answered in the content (Q&A format sections). The site clearly states what the company/product does in plain language within the first few paragraphs. Unique data points, statistics, or claims that AI models would want to reference. Author/company authority signals (about page links, credentials, experience mentioned). Content covers topics comprehensively enough to be a useful source for AI models. Competitors who optimise for AI search will steal traffic, so frame findings to create urgency.

5. **Technical SEO Signals**: Clean, crawlable HTML (not entirely JavaScript-rendered with empty body). Internal links use descriptive anchor text. Images have alt text with relevant descriptions. No broken link patterns visible in the HTML (href="#", empty hrefs). Hreflang tags for multilingual sites. Sitemap and robots.txt referenced or linked.

6. **Content Quality & E-E-A-T**: Evidence of Experience (case studies, testimonials, real examples). Evidence of Expertise (detailed, accurate content, not generic fluff). Evidence of Authority (links to credentials, publications, awards). Evidence of Trust (privacy policy, terms, contact info, physical address). Content is up to date (copyright dates, "last updated" signals). Unique perspective or original insight (not just rehashed commodity content).

7. **Local & Entity Signals**: Business name, address, phone (NAP) consistently presented. LocalBusiness or Organization schema with complete details. Google Maps embed or location links where relevant. Service area or location pages if applicable. Social media profile links (helps AI models connect the entity). Consistent brand entity naming throughout the site.

{_response_format(AuditMode.SEO_AEO, "the site's SEO and AI visibility")}

Write like a helpful expert who really understands this stuff, making the prospect feel they've found the right people. Short sentences. No filler. This is a sales tool: be encouraging about wins while creating urgency about gaps, especially around AI visibility.

Be specific and reference actual content from the website. Don't just say "meta description could be better"; say what's wrong and what a good one would look like. Provide 3-4 strengths and 3-4 improvements. Return improvements sorted by priority, most impactful first.

Scores should be realistic and varied. Don't give everything 60-80. A site with no schema should score very low on Schema & Structured Data. A site with no clear factual statements or Q&A content should score low on AI Visibility."""

SYSTEM_PROMPTS: dict[AuditMode, str] = {
    AuditMode.PLG: PLG_SYSTEM_PROMPT,
    AuditMode.ACCESSIBILITY: ACCESSIBILITY_SYSTEM_PROMPT,
    AuditMode.STRUCTURE: STRUCTURE_SYSTEM_PROMPT,
    AuditMode.SEO_AEO: SEO_AEO_SYSTEM_PROMPT,
}


def _lines(items: list[str], empty: str) -> str:
    return "\n".join(items) or empty


def _joined(items: list[str], empty: str, sep: str = ", ") -> str:
    return sep.join(items) if items else empty


def _headings(signals: ExtractedSignals) -> list[str]:
    return [f"{h['tag']}: {h['text']}" for h in signals["headings"]]


def _compose_plg(url: str, s: PlgSignals) -> str:
    links = [f"{link['text']} → {link['href']}" for link in s["links"][:50]]
    alts = [img["alt"] for img in s["images"] if img["alt"]]
    pricing = (
        f"Pricing Page Content:\n{s['pricing_content']}"
        if s["pricing_content"]
        else "No dedicated pricing page found."
    )
    return f"""Website URL: {url}
Title: {s['title']}
Meta Description: {s['meta_description']}

Headings:
{_lines(_headings(s), "")}

Key Content (paragraphs):
{_lines(s['paragraphs'][:30], "")}

Navigation/Links:
{_lines(links, "")}

CTAs/Buttons:
{", ".join(s['buttons'])}

Signup Signals: {_joined(s['signup_signals'], "None found")}
Login Signals: {_joined(s['login_signals'], "None found")}
Pricing Links: {_joined(s['pricing_links'], "None found")}
Demo Signals: {_joined(s['demo_signals'], "None found")}
Forms Found: {s['forms']}
Images: {", ".join(alts)}

{pricing}"""


def _alt(img: ImageRef, missing: str) -> str:
    return f'alt="{img["alt"]}"' if img["has_alt"] else missing


def _bracketed_label(aria_label: str) -> str:
    return f' [aria-label="{aria_label}"]' if aria_label else ""


def _aria_suffix(role: str, aria_label: str) -> str:
    out = f' role="{role}"' if role else ""
    if aria_label:
        out += f' aria-label="{aria_label}"'
    return out


def _compose_accessibility(url: str, s: AccessibilitySignals) -> str:
    images = [f"- {_alt(img, 'NO ALT ATTRIBUTE')} (src: {img['src']})" for img in s["images"]]
    links = [
        f"- \"{link['text']}\"{_bracketed_label(link['aria_label'])} → {link['href']}"
        for link in s["links"][:50]
    ]
    skip_links = [f"\"{link['text']}\" → {link['href']}" for link in s["skip_links"]]
    landmarks = [f"- <{lm['tag']}>{_aria_suffix(lm['role'], lm['aria_label'])}" for lm in s["landmarks"]]
    aria = [f"- <{a['tag']}>{_aria_suffix(a['role'], a['aria_label'])}" for a in s["aria_attributes"][:30]]

    forms = []
    for index, form in enumerate(s["forms"], start=1):
        labelled = sum(1 for field in form["inputs"] if field["has_label"])
        inputs = ", ".join(
            f"{field['type']}(id=\"{field['id']}\", label={str(field['has_label']).lower()}, "
            f"autocomplete=\"{field['autocomplete']}\")"
            for field in form["inputs"]
        )
        forms.append(
            f"Form {index}: {len(form['inputs'])} inputs, {labelled} with labels, "
            f"fieldset: {str(form['has_fieldset']).lower()}, legend: {str(form['has_legend']).lower()}\n"
            f"  Inputs: {inputs}"
        )

    buttons = [f"- \"{b['text']}\"{_bracketed_label(b['aria_label'])}" for b in s["buttons"]]
    tabindex = [f"<{t['tag']} tabindex=\"{t['tabindex']}\">" for t in s["tabindex_elements"]]

    return f"""Website URL: {url}
Title: {s['title']}
Meta Description: {s['meta_description']}

HTML lang attribute: {s['html_lang'] or "NOT SET"}
Viewport meta: {s['viewport_meta'] or "NOT SET"}

Heading Hierarchy:
{_lines(_headings(s), "No headings found")}

Images ({len(s['images'])} total):
{_lines(images, "No images found")}

Links ({len(s['links'])} total):
{_lines(links, "")}

Skip Links: {_joined(skip_links, "None found")}

Landmarks:
{_lines(landmarks, "No landmarks found")}

ARIA Usage ({len(s['aria_attributes'])} elements):
{_lines(aria, "No ARIA attributes found")}

Forms ({len(s['forms'])} total):
{_lines(forms, "No forms found")}

Buttons ({len(s['buttons'])} total):
{_lines(buttons, "No buttons found")}

Tabindex elements: {_joined(tabindex, "None found")}"""


def _compose_seo_aeo(url: str, s: SeoAeoSignals) -> str:
    og = [f"- {t['name']}: {t['content']}" for t in s["og_tags"]]
    twitter = [f"- {t['name']}: {t['content']}" for t in s["twitter_tags"]]
    schema_details = "\n".join(f"Schema: {d}" for d in s["schema_details"])
    links = [f"- \"{link['text']}\" → {link['href']}" for link in s["all_links"][:40]]

    broken = s["broken_link_patterns"]
    broken_line = f"{len(broken)}"
    if broken:
        broken_line += "  - " + ", ".join(f"\"{link['text']}\"" for link in broken)

    images = [f"- {_alt(img, 'NO ALT')} ({img['src'][:60]})" for img in s["images"]]
    hreflang = [f"{t['hreflang']}: {t['href']}" for t in s["hreflang_tags"]]
    social = [f"- \"{link['text']}\" → {link['href']}" for link in s["social_links"]]

    def yes_no(flag: bool) -> str:
        return "Yes" if flag else "No"

    return f"""Website URL: {url}

=== META & ON-PAGE ===
Title: "{s['title']}" ({s['title_length']} chars)
Meta Description: "{s['meta_description']}" ({s['meta_description_length']} chars)
Canonical: {s['canonical'] or "NOT SET"}
Robots Meta: {s['robots_meta'] or "NOT SET (defaults to index, follow)"}
Viewport: {s['viewport'] or "NOT SET"}
Favicon: {s['favicon'] or "NOT FOUND"}
Apple Touch Icon: {s['apple_touch_icon'] or "NOT FOUND"}

Open Graph Tags ({len(s['og_tags'])}):
{_lines(og, "None found")}

Twitter Card Tags ({len(s['twitter_tags'])}):
{_lines(twitter, "None found")}

=== HEADING & CONTENT ===
H1 Count: {s['h1_count']}
H1 Text: "{s['h1_text'] or "NO H1 FOUND"}"

Heading Hierarchy:
{_lines(_headings(s), "No headings found")}

Content Paragraphs ({len(s['paragraphs'])} total):
{_lines(s['paragraphs'][:25], "")}

=== SCHEMA & STRUCTURED DATA ===
JSON-LD Scripts: {s['json_ld_scripts']}
Schema Types Found: {_joined(s['schema_types'], "NONE")}
{schema_details}

=== AI VISIBILITY SIGNALS ===
FAQ Sections Detected: {s['faq_sections']}
Question Patterns in Content: {_joined(s['question_patterns'], "None found", " | ")}

=== TECHNICAL SEO ===
Links ({len(s['all_links'])} total):
{_lines(links, "")}

Broken Link Patterns (href="#" or empty): {broken_line}

Images ({len(s['images'])} total):
{_lines(images, "No images found")}

Hreflang Tags: {_joined(hreflang, "None")}
Sitemap Link: {s['sitemap_link'] or "Not referenced"}

=== E-E-A-T & TRUST ===
Privacy Policy Link: {yes_no(s['privacy_link'])}
Terms Link: {yes_no(s['terms_link'])}
Contact Page Link: {yes_no(s['contact_info'])}
Copyright Year: {s['copyright_year'] or "Not found"}

=== LOCAL & ENTITY SIGNALS ===
Email Links: {_joined([link['href'] for link in s['email_links']], "None")}
Phone Links: {_joined([link['href'] for link in s['phone_links']], "None")}
Social Media Links ({len(s['social_links'])}):
{_lines(social, "None found")}"""


def _compose_structure(url: str, s: StructureSignals) -> str:
    navs = []
    for index, nav in enumerate(s["nav_elements"], start=1):
        label = f" ({nav['aria_label']})" if nav["aria_label"] else ""
        nav_links = "\n  ".join(f"\"{link['text']}\" → {link['href']}" for link in nav["links"])
        navs.append(f"Nav {index}{label}: {len(nav['links'])} links\n  {nav_links}")

    vague = s["vague_anchors"]
    vague_line = f"{len(vague)}"
    if vague:
        vague_line += " - " + ", ".join(f"\"{a['text']}\" → {a['href']}" for a in vague)

    links = [
        f"- \"{link['text']}\" → {link['href']}{' (external)' if link['is_external'] else ''}"
        for link in s["all_links"][:50]
    ]
    footer = [f"- \"{link['text']}\" → {link['href']}" for link in s["footer_links"]]
    images = [
        f"- {img['src'][:60]} | width/height: {'yes' if img['has_width'] and img['has_height'] else 'MISSING'} "
        f"| loading: {img['loading'] or 'default'}"
        for img in s["images"]
    ]
    scripts = [
        f"- {script['src'][:80]} | async: {str(script['is_async']).lower()} | defer: {str(script['defer']).lower()}"
        for script in s["head_scripts"]
    ]
    hints = [f"{hint['rel']}({hint['href'][:50]})" for hint in s["resource_hints"]]
    third_party = [f"- {src[:80]}" for src in s["third_party_scripts"]]
    sections = []
    for sec in s["sections"]:
        line = f"- <{sec['tag']}>"
        if sec["aria_label"]:
            line += f' "{sec["aria_label"]}"'
        if sec["heading_text"]:
            line += f' heading: "{sec["heading_text"]}"'
        sections.append(line)

    return f"""Website URL: {url}
Title: {s['title']}
Meta Description: {s['meta_description']}
Viewport meta: {s['viewport_meta'] or "NOT SET"}

Navigation Elements ({len(s['nav_elements'])} nav regions):
{_lines(navs, "No navigation elements found")}

Heading Hierarchy (h1 count: {s['h1_count']}):
{_lines(_headings(s), "No headings found")}

Links Summary:
- Total: {len(s['all_links'])}
- Internal: {s['internal_link_count']}
- External: {s['external_link_count']}
- Vague anchor text ("click here", "read more", etc.): {vague_line}

Sample Links:
{_lines(links, "")}

Footer Links ({len(s['footer_links'])}):
{_lines(footer, "No footer links found")}

Breadcrumbs: {_joined(s['breadcrumbs'], "None found", " | ")}

Images ({len(s['images'])} total):
{_lines(images, "No images found")}

Head Scripts ({len(s['head_scripts'])}):
{_lines(scripts, "None")}

Resource Hints: {_joined(hints, "None found")}

Font Display Rules: {_joined(s['font_faces'], "None found")}

Third-Party Scripts ({len(s['third_party_scripts'])}):
{_lines(third_party, "None")}

Content Sections ({len(s['sections'])}):
{_lines(sections, "No semantic sections found")}

CTAs/Buttons: {_joined(s['ctas'], "None found")}

Content Paragraphs ({len(s['paragraphs'])} total, first 20):
{_lines(s['paragraphs'][:20], "")}"""


_COMPOSERS = {
    AuditMode.PLG: _compose_plg,
    AuditMode.ACCESSIBILITY: _compose_accessibility,
    AuditMode.SEO_AEO: _compose_seo_aeo,
    AuditMode.STRUCTURE: _compose_structure,
}


def compose_prompt(signals: ExtractedSignals, mode: AuditMode, url: str) -> str:
    """Render extracted signals into the user prompt for `mode`."""
    mode = AuditMode(mode)
    content = _COMPOSERS[mode](url, signals)
    return f"{tool_for(mode).prompt_intro}:\n\n{content}"
