import json

import pytest

import database
from schemas import AuditReport

_SAMPLE_HTML = """<!doctype html>
<html lang="en">
<head>
  <title>Acme - Billing for startups</title>
  <meta name="description" content="Acme runs billing so you don't have to.">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <script src="https://cdn.example.net/analytics.js" async></script>
  <style>body { color: red; }</style>
</head>
<body>
  <a href="#main">Skip to content</a>
  <header><nav aria-label="Primary"><a href="/pricing">Pricing</a><a href="/login">Sign in</a></nav></header>
  <main id="main">
    <h1>Billing that scales</h1>
    <p>Acme handles invoices, taxes and dunning.</p>
    <h2>Why Acme</h2>
    <p>Trusted by 4,000 companies.</p>
    <a class="btn-primary" href="/signup">Start free trial</a>
    <a href="/demo">Book a demo</a>
    <img src="/hero.png" alt="Dashboard screenshot">
    <img src="/logo.png">
    <form><label for="email">Email</label><input id="email" type="email" name="email"></form>
  </main>
  <footer><a href="https://twitter.com/acme">Twitter</a> © 2024 Acme Inc.</footer>
  <script>console.log("not content");</script>
</body>
</html>
"""


def make_report_payload(overall_score: int = 72) -> dict:
    """A camelCase payload that satisfies the AuditReport contract."""
    return {
        "overallScore": overall_score,
        "summary": "Clear value proposition with a visible free trial.",
        "categories": [
            {"name": f"Category {i}", "score": 50 + i, "description": "Fine."} for i in range(7)
        ],
        "strengths": [
            {"title": "Free trial", "impact": "HIGH", "description": "Start free trial is above the fold."},
            {"title": "Pricing link", "impact": "MEDIUM", "description": "Pricing is in the nav."},
            {"title": "Social proof", "impact": "MEDIUM", "description": "Mentions 4,000 companies."},
        ],
        "improvements": [
            {"title": "Alt text", "priority": "LOW", "description": "One image lacks alt.", "recommendation": "Add alt."},
            {"title": "Onboarding", "priority": "HIGH", "description": "No product tour.", "recommendation": "Add one."},
            {"title": "Demo", "priority": "MEDIUM", "description": "Demo is hidden.", "recommendation": "Surface it."},
        ],
    }


@pytest.fixture
def report_payload() -> dict:
    return make_report_payload()


@pytest.fixture
def report_json(report_payload) -> str:
    return json.dumps(report_payload)


@pytest.fixture
def report(report_payload) -> AuditReport:
    return AuditReport.model_validate(report_payload)


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "reports.db"
    monkeypatch.setattr(database, "DB_PATH", path)
    database.init_db()
    return path


@pytest.fixture
def sample_html() -> str:
    return _SAMPLE_HTML
