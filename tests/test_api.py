import json
from unittest.mock import Mock

import pytest
import requests
from fastapi.testclient import TestClient

import ai_service
import audit_service
import database
import leads
import main
import scraper
from audit_service import AuditOutcome
from gate import UNLOCK_COOKIE
from models import TOOLS, AuditMode


@pytest.fixture
def client(db_path):
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture
def fake_site(monkeypatch, sample_html):
    """Stub both page fetches with the sample page."""
    fetch = Mock(return_value=sample_html)
    pricing = Mock(return_value="<main>Starter $10</main>")
    monkeypatch.setattr(audit_service, "fetch_page", fetch)
    monkeypatch.setattr(audit_service, "fetch_pricing_page", pricing)
    return fetch


@pytest.fixture
def fake_claude(monkeypatch, report_json):
    """Stub the model call with a fenced, valid report."""
    call = Mock(return_value=f"```json\n{report_json}\n```")
    monkeypatch.setattr(ai_service, "_call_claude", call)
    return call


class TestAnalyze:
    def test_stripe_scenario(self, client, fake_site, fake_claude):
        response = client.post("/api/analyze", json={"url": "stripe.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["slug"].startswith("stripe-com-")
        assert body["reportId"]
        assert body["overallScore"] == 72
        assert len(body["categories"]) == 7
        assert [item["priority"] for item in body["improvements"]] == ["HIGH", "MEDIUM", "LOW"]
        fake_site.assert_called_once_with("https://stripe.com")

        system_prompt, user_prompt = fake_claude.call_args.args
        assert "Product-Led Growth" in system_prompt
        assert "Pricing Page Content:\nStarter $10" in user_prompt

    def test_malformed_url_never_fetches(self, client, fake_site, fake_claude):
        response = client.post("/api/analyze", json={"url": "not a url"})

        assert response.status_code == 400
        assert response.json() == {"error": main.INVALID_URL_MESSAGE}
        fake_site.assert_not_called()
        fake_claude.assert_not_called()

    def test_missing_url(self, client, fake_site):
        response = client.post("/api/analyze", json={})
        assert response.status_code == 400
        fake_site.assert_not_called()

    def test_timeout_is_reported_as_unreachable(self, client, monkeypatch, fake_claude):
        monkeypatch.setattr(scraper.requests, "get", Mock(side_effect=requests.Timeout("too slow")))

        response = client.post("/api/analyze-accessibility", json={"url": "https://slow.example"})

        assert response.status_code == 400
        assert response.json() == {"error": main.UNREACHABLE_MESSAGE}
        fake_claude.assert_not_called()

    def test_model_failure_is_generic(self, client, fake_site, monkeypatch):
        monkeypatch.setattr(ai_service, "_call_claude", Mock(side_effect=ai_service.UpstreamError("boom")))

        response = client.post("/api/analyze", json={"url": "stripe.com"})

        assert response.status_code == 500
        assert response.json() == {"error": main.GENERIC_ERROR_MESSAGE}

    def test_contract_violation_is_generic(self, client, fake_site, monkeypatch, report_payload):
        report_payload["strengths"] = report_payload["strengths"][:1]
        monkeypatch.setattr(ai_service, "_call_claude", Mock(return_value=json.dumps(report_payload)))

        response = client.post("/api/analyze", json={"url": "stripe.com"})
        assert response.status_code == 500

    def test_store_failure_still_returns_report(self, client, fake_site, fake_claude, monkeypatch, tmp_path):
        monkeypatch.setattr(database, "DB_PATH", tmp_path / "no-table.db")

        response = client.post("/api/analyze", json={"url": "stripe.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["reportId"] is None
        assert body["slug"] is None
        assert body["overallScore"] == 72

    def test_second_audit_gets_suffixed_slug(self, client, fake_site, fake_claude):
        first = client.post("/api/analyze", json={"url": "stripe.com"}).json()
        second = client.post("/api/analyze", json={"url": "https://stripe.com"}).json()
        assert second["slug"] == f"{first['slug']}-2"

    @pytest.mark.parametrize("tool", list(TOOLS.values()), ids=lambda tool: tool.mode.value)
    def test_each_endpoint_runs_its_own_mode(self, client, monkeypatch, report, tool):
        run = Mock(
            return_value=AuditOutcome(
                url="https://example.com", site_name="example.com", mode=tool.mode, report=report
            )
        )
        monkeypatch.setattr(main, "run_audit", run)

        response = client.post(tool.api_path, json={"url": "example.com"})

        assert response.status_code == 200
        run.assert_called_once_with("example.com", tool.mode)

    def test_pricing_page_only_fetched_for_plg(self, client, fake_site, fake_claude):
        client.post("/api/analyze-seo-aeo", json={"url": "stripe.com"})
        audit_service.fetch_pricing_page.assert_not_called()


class TestLeads:
    def lead(self, **overrides) -> dict:
        body = {
            "email": "ada@example.com",
            "company": "Acme",
            "url": "https://stripe.com",
            "overallScore": 72,
            "gdprConsent": True,
            "mailingListOptIn": True,
            "tool": "plg",
            "timestamp": "2026-10-19T14:05:00.000Z",
        }
        body.update(overrides)
        return body

    def test_missing_consent_never_reaches_clickup(self, client, monkeypatch):
        monkeypatch.setenv("CLICKUP_API_KEY", "pk_test")
        post = Mock()
        monkeypatch.setattr(leads.requests, "post", post)

        response = client.post("/api/leads", json=self.lead(gdprConsent=False))

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "GDPR consent is required."}
        post.assert_not_called()

    def test_invalid_email(self, client):
        response = client.post("/api/leads", json=self.lead(email="nope"))
        assert response.status_code == 400
        assert response.json()["error"] == "Valid email is required."

    def test_lead_is_forwarded_and_unlocks(self, client, monkeypatch):
        monkeypatch.setenv("CLICKUP_API_KEY", "pk_test")
        post = Mock(return_value=Mock(ok=True, status_code=200, json=Mock(return_value={"id": "task-9"})))
        monkeypatch.setattr(leads.requests, "post", post)

        response = client.post("/api/leads", json=self.lead())

        assert response.status_code == 200
        assert response.json() == {"success": True, "taskId": "task-9"}
        assert response.cookies.get(UNLOCK_COOKIE) == "true"
        post.assert_called_once()

    def test_delivery_failure_is_still_success(self, client, monkeypatch):
        monkeypatch.delenv("CLICKUP_API_KEY", raising=False)
        response = client.post("/api/leads", json=self.lead())
        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_unexpected_failure(self, client, monkeypatch):
        monkeypatch.setattr(main, "forward_lead", Mock(side_effect=RuntimeError("boom")))
        response = client.post("/api/leads", json=self.lead())
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": main.LEAD_FAILURE_MESSAGE}


class TestToolPages:
    def test_idle_page(self, client):
        response = client.get("/plg-readiness")
        assert response.status_code == 200
        assert 'name="url"' in response.text
        assert "PLG Readiness" in response.text

    def test_submit_shows_gate(self, client, fake_site, fake_claude):
        response = client.post("/plg-readiness", data={"url": "stripe.com"})

        assert response.status_code == 200
        assert "Unlock your full report" in response.text
        assert 'action="/plg-readiness/unlock"' in response.text
        assert "What to improve" not in response.text

    def test_unlocked_visitor_sees_results(self, client, fake_site, fake_claude):
        response = client.post(
            "/accessibility", data={"url": "stripe.com"}, headers={"Cookie": f"{UNLOCK_COOKIE}=true"}
        )

        assert response.status_code == 200
        assert "What to improve" in response.text
        assert "Unlock your full report" not in response.text

    def test_submit_error_returns_to_idle(self, client, fake_site):
        response = client.post("/structure", data={"url": "not a url"})

        assert response.status_code == 400
        assert "Try something like stripe.com" in response.text
        assert 'name="url"' in response.text

    def test_unlock_requires_consent(self, client, report_json, monkeypatch):
        forward = Mock()
        monkeypatch.setattr(main, "forward_lead", forward)

        response = client.post(
            "/plg-readiness/unlock",
            data={"url": "https://stripe.com", "report_json": report_json, "email": "ada@example.com"},
        )

        assert response.status_code == 400
        assert "tick this one" in response.text
        forward.assert_not_called()

    def test_unlock_rejects_bad_email(self, client, report_json):
        response = client.post(
            "/plg-readiness/unlock",
            data={"url": "https://stripe.com", "report_json": report_json, "email": "ada", "gdpr_consent": "true"},
        )
        assert response.status_code == 400
        assert "Valid email is required." in response.text

    def test_unlock_forwards_lead_and_shows_results(self, client, report_json, monkeypatch):
        forward = Mock(return_value="task-1")
        monkeypatch.setattr(main, "forward_lead", forward)

        response = client.post(
            "/seo-aeo/unlock",
            data={
                "url": "https://stripe.com",
                "report_json": report_json,
                "report_id": "abc",
                "email": "ada@example.com",
                "gdpr_consent": "true",
            },
        )

        assert response.status_code == 200
        assert "What to improve" in response.text
        assert response.cookies.get(UNLOCK_COOKIE) == "true"
        lead = forward.call_args.args[0]
        assert lead.tool == "seo-aeo"
        assert lead.overall_score == 72
        assert lead.report_id == "abc"

    def test_results_offer_a_reset(self, client, fake_site, fake_claude):
        response = client.post(
            "/structure", data={"url": "stripe.com"}, headers={"Cookie": f"{UNLOCK_COOKIE}=true"}
        )
        assert 'action="/structure/reset"' in response.text

    def test_reset_returns_to_idle(self, client):
        response = client.post("/structure/reset")

        assert response.status_code == 200
        assert 'name="url"' in response.text
        assert "What to improve" not in response.text


class TestReportPages:
    def saved_slug(self, client, report) -> dict:
        return database.save_report(report, url="https://stripe.com", site_name="stripe.com", tool=AuditMode.PLG)

    def test_report_page(self, client, report):
        saved = self.saved_slug(client, report)

        response = client.get(f"/{saved['slug']}")

        assert response.status_code == 200
        assert "<title>PLG Readiness Report: stripe.com - 72/100 | Shrink Studio</title>" in response.text
        assert 'property="og:title" content="PLG Readiness: stripe.com scored 72/100"' in response.text
        assert "Generated on" in response.text

    def test_unknown_slug(self, client):
        response = client.get("/does-not-exist")
        assert response.status_code == 404
        assert "Report not found" in response.text

    def test_legacy_id_link_redirects(self, client, report):
        saved = self.saved_slug(client, report)

        response = client.get(f"/report/{saved['id']}", follow_redirects=False)

        assert response.status_code == 308
        assert response.headers["location"] == f"/{saved['slug']}"

    def test_legacy_unknown_id(self, client):
        assert client.get("/report/nope", follow_redirects=False).status_code == 404


def test_landing_lists_every_tool(client):
    response = client.get("/")
    assert response.status_code == 200
    for tool in TOOLS.values():
        assert f'href="{tool.page_path}"' in response.text


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
