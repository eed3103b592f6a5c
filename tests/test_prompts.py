import pytest

from models import TOOLS, AuditMode
from prompts import CATEGORY_NAMES, SYSTEM_PROMPTS, compose_prompt
from scraper import extract, extract_accessibility, extract_plg, extract_seo_aeo, extract_structure

URL = "https://example.com"


@pytest.mark.parametrize("mode", list(AuditMode))
def test_system_prompt_names_all_seven_categories(mode):
    prompt = SYSTEM_PROMPTS[mode]

    assert len(CATEGORY_NAMES[mode]) == 7
    for name in CATEGORY_NAMES[mode]:
        assert f'"name": "{name}"' in prompt
    assert "Return ONLY valid JSON" in prompt
    assert '"overallScore"' in prompt


@pytest.mark.parametrize("mode", list(AuditMode))
def test_prompt_starts_with_tool_intro_and_url(mode, sample_html):
    prompt = compose_prompt(extract(sample_html, mode), mode, URL)
    assert prompt.startswith(f"{TOOLS[mode].prompt_intro}:\n\nWebsite URL: {URL}\n")


@pytest.mark.parametrize("mode", list(AuditMode))
def test_composition_is_deterministic(mode, sample_html):
    signals = extract(sample_html, mode)
    assert compose_prompt(signals, mode, URL) == compose_prompt(signals, mode, URL)


class TestPlgPrompt:
    def test_empty_page_uses_placeholders(self):
        prompt = compose_prompt(extract_plg(""), AuditMode.PLG, URL)

        assert "Signup Signals: None found" in prompt
        assert "Demo Signals: None found" in prompt
        assert "Forms Found: 0" in prompt
        assert prompt.endswith("No dedicated pricing page found.")

    def test_pricing_content_is_included(self, sample_html):
        signals = extract_plg(sample_html)
        signals["pricing_content"] = "Starter $10 Growth $50"

        prompt = compose_prompt(signals, AuditMode.PLG, URL)
        assert "Pricing Page Content:\nStarter $10 Growth $50" in prompt
        assert "Start free trial" in prompt

    def test_paragraphs_are_capped(self):
        html = "".join(f"<p>Paragraph {i}</p>" for i in range(45))
        prompt = compose_prompt(extract_plg(html), AuditMode.PLG, URL)
        assert "Paragraph 29" in prompt
        assert "Paragraph 30" not in prompt


class TestAccessibilityPrompt:
    def test_missing_attributes_are_called_out(self):
        prompt = compose_prompt(
            extract_accessibility('<html><body><img src="a.png"></body></html>'), AuditMode.ACCESSIBILITY, URL
        )

        assert "HTML lang attribute: NOT SET" in prompt
        assert "- NO ALT ATTRIBUTE (src: a.png)" in prompt
        assert "No forms found" in prompt
        assert "Skip Links: None found" in prompt

    def test_form_summary(self, sample_html):
        prompt = compose_prompt(extract_accessibility(sample_html), AuditMode.ACCESSIBILITY, URL)
        assert "Form 1: 1 inputs, 1 with labels, fieldset: false, legend: false" in prompt


class TestSeoAeoPrompt:
    def test_missing_h1_and_canonical(self):
        prompt = compose_prompt(extract_seo_aeo("<p>Hello</p>"), AuditMode.SEO_AEO, URL)

        assert 'H1 Text: "NO H1 FOUND"' in prompt
        assert "Canonical: NOT SET" in prompt


class TestStructurePrompt:
    def test_empty_page_placeholders(self):
        prompt = compose_prompt(extract_structure(""), AuditMode.STRUCTURE, URL)

        assert "No navigation elements found" in prompt
        assert "Breadcrumbs: None found" in prompt
        assert "Resource Hints: None found" in prompt

    def test_external_links_are_marked(self, sample_html):
        prompt = compose_prompt(extract_structure(sample_html), AuditMode.STRUCTURE, URL)
        assert '- "Twitter" → https://twitter.com/acme (external)' in prompt
