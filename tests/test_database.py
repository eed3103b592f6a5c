import database
from database import (
    generate_slug,
    get_report_by_id,
    get_report_by_slug,
    get_report_slug,
    save_report,
)
from models import AuditMode


class TestGenerateSlug:
    def test_www_is_stripped_and_dots_become_hyphens(self):
        assert generate_slug("www.Stripe.com", "plg") == "stripe-com-plg-assessment"

    def test_unsafe_characters_are_dropped(self):
        assert generate_slug("my_site.io", AuditMode.SEO_AEO) == "mysite-io-seo-aeo-assessment"

    def test_suffix_follows_tool(self):
        assert generate_slug("example.com", AuditMode.ACCESSIBILITY) == "example-com-accessibility-assessment"
        assert generate_slug("example.com", AuditMode.STRUCTURE) == "example-com-structure-assessment"


class TestSaveReport:
    def test_repeat_saves_get_numeric_suffixes(self, db_path, report):
        slugs = [
            save_report(report, url="https://stripe.com", site_name="stripe.com", tool=AuditMode.PLG)["slug"]
            for _ in range(3)
        ]
        assert slugs == [
            "stripe-com-plg-assessment",
            "stripe-com-plg-assessment-2",
            "stripe-com-plg-assessment-3",
        ]

    def test_tools_do_not_share_slugs(self, db_path, report):
        plg = save_report(report, url="https://stripe.com", site_name="stripe.com", tool=AuditMode.PLG)
        a11y = save_report(report, url="https://stripe.com", site_name="stripe.com", tool=AuditMode.ACCESSIBILITY)
        assert plg["slug"] == "stripe-com-plg-assessment"
        assert a11y["slug"] == "stripe-com-accessibility-assessment"

    def test_stored_report_round_trips(self, db_path, report):
        saved = save_report(report, url="https://www.stripe.com", site_name="www.stripe.com", tool="plg")

        stored = get_report_by_slug(saved["slug"])
        assert stored["id"] == saved["id"]
        assert stored["url"] == "https://www.stripe.com"
        assert stored["tool"] == "plg"
        assert stored["overall_score"] == 72
        assert len(stored["categories"]) == 7
        assert [item["priority"] for item in stored["improvements"]] == ["HIGH", "MEDIUM", "LOW"]
        assert stored["created_at"]

        assert get_report_by_id(saved["id"])["slug"] == saved["slug"]
        assert get_report_slug(saved["id"]) == saved["slug"]

    def test_unknown_lookups(self, db_path):
        assert get_report_by_slug("nope") is None
        assert get_report_by_id("nope") is None
        assert get_report_slug("nope") is None

    def test_database_failure_returns_none(self, tmp_path, monkeypatch, report):
        monkeypatch.setattr(database, "DB_PATH", tmp_path / "no-table.db")
        assert save_report(report, url="https://stripe.com", site_name="stripe.com", tool=AuditMode.PLG) is None
        assert get_report_slug("anything") is None
