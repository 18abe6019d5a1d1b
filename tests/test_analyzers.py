"""
End-to-end tests of the three audits against an in-memory site.
"""

import json
from typing import List

import pytest

from site_audit import SiteAnalyzer
from site_audit.ai import analyze_ai
from site_audit.collaborators import ScanRecord, remediation_candidates
from site_audit.errors import InputError, PrimaryFetchError
from site_audit.i18n import analyze_i18n
from site_audit.models import AuditDomain, CheckStatus
from site_audit.platform import PlatformCredentials
from site_audit.scoring import global_score
from site_audit.seo import analyze_seo

from conftest import FakeSite, filler, html_page


URL = "https://shop.test/"

# Two H1, no <main>, 120 words of filler.
THIN_PAGE = html_page(
    body=(
        "<h1>Linen shirts</h1><h1>Summer sale</h1>"
        f"<p>{filler(120)}</p>"
        '<img src="/shirt.jpg">'
        '<a href="/about">About</a><a href="/gone">Gone</a>'
        '<script>Shopify.shop = "demo.myshopify.com";</script>'
    ),
    head=(
        "<title>Linen shirts for summer | Example Shop</title>"
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
    ),
)

PRODUCTS_API = "https://demo.myshopify.com/admin/api/2024-01/products.json?fields=id,title,handle,images"


@pytest.fixture
def shop(site: FakeSite) -> FakeSite:
    site.add(URL, THIN_PAGE)
    site.add(f"{URL}about", html_page("<p>About us</p>"))
    site.add(f"{URL}robots.txt", "User-agent: GPTBot\nDisallow: /\n", headers={"content-type": "text/plain"})
    return site


# ===========================================================================
# SEO
# ===========================================================================


class TestSeoAudit:

    @pytest.mark.asyncio
    async def test_categories_and_scores(self, shop):
        async with shop.client() as client:
            report = await analyze_seo(URL, client=client)

        assert report.domain == AuditDomain.SEO
        assert list(report.categories) == [
            "meta", "structure", "technique", "contenu", "structuredData", "securite", "liens",
        ]
        assert report.score == global_score(report.categories)

        structure = report.categories["structure"]
        assert structure.get("H1 tag").status == CheckStatus.WARNING
        assert structure.get("Image alt attributes").status == CheckStatus.ERROR

        technique = report.categories["technique"]
        assert technique.get("robots.txt").status == CheckStatus.SUCCESS
        assert technique.get("sitemap.xml").status == CheckStatus.ERROR
        assert technique.get("Redirect chain").status == CheckStatus.SUCCESS
        assert technique.get("Mixed content (HTTP/HTTPS)").status == CheckStatus.SUCCESS

        assert report.categories["contenu"].get("Word count").status == CheckStatus.ERROR

        links = report.categories["liens"].get("Broken links")
        assert links.status == CheckStatus.WARNING
        assert links.detail_list == ["https://shop.test/gone (HTTP 404)"]

    @pytest.mark.asyncio
    async def test_credentials_add_product_cards(self, shop):
        shop.add(PRODUCTS_API, json.dumps({"products": [
            {"id": 1, "title": "Linen shirt", "handle": "linen-shirt", "images": [
                {"id": 10, "src": "https://cdn.test/1.jpg", "alt": ""},
                {"id": 11, "src": "https://cdn.test/2.jpg", "alt": "Front view"},
            ]},
            {"id": 2, "title": "Scarf", "handle": "scarf", "images": [{"id": 20, "src": "x", "alt": "Scarf"}]},
        ]}), headers={"content-type": "application/json"})
        credentials = PlatformCredentials(store="demo.myshopify.com", access_token="shpat_test")

        async with shop.client() as client:
            report = await analyze_seo(URL, client=client, credentials=credentials)

        check = report.categories["structure"].get("Image alt attributes")
        (card,) = check.detail_cards
        assert card.path == "/products/linen-shirt"
        assert [item.element for item in card.items] == ["Image 10"]

    @pytest.mark.asyncio
    async def test_platform_failure_keeps_plain_check(self, shop):
        credentials = PlatformCredentials(store="demo.myshopify.com", access_token="bad")
        async with shop.client() as client:
            report = await analyze_seo(URL, client=client, credentials=credentials)
        assert report.categories["structure"].get("Image alt attributes").detail_cards is None


# ===========================================================================
# AI readiness
# ===========================================================================


class TestAiAudit:

    @pytest.mark.asyncio
    async def test_thin_page(self, shop):
        shop.add(f"{URL}llms.txt", "# Example Shop\n\n> Linen clothing\n", headers={"content-type": "text/plain"})
        shop.add(f"{URL}ai-plugin.json", '{"name_for_model": "shop"}', headers={"content-type": "application/json"})

        async with shop.client() as client:
            report = await analyze_ai(URL, client=client)

        assert list(report.categories) == ["crawlers", "fichiers", "contenu", "citabilite"]
        assert report.platform_store == "demo.myshopify.com"

        crawlers = report.categories["crawlers"]
        assert crawlers.get("GPTBot (OpenAI/ChatGPT)").status == CheckStatus.ERROR
        assert crawlers.get("ClaudeBot (Claude/Anthropic)").status == CheckStatus.WARNING

        files = report.categories["fichiers"]
        assert files.get("llms.txt").status == CheckStatus.SUCCESS
        assert files.get("llms.txt").detail_list == ["# Example Shop", "> Linen clothing"]
        assert files.get("llms-full.txt").status == CheckStatus.WARNING
        assert files.get("ai-plugin.json").detail == "Found at /ai-plugin.json"

        quality = report.categories["contenu"]
        assert quality.get("Optimal length for AI").status == CheckStatus.ERROR
        assert quality.get("Clear content structure").detail_list[0].startswith("✗ Unique H1")
        assert "<main>" in quality.get("Semantic HTML").recommendation
        assert quality.get("Content freshness (Last-Modified)").status == CheckStatus.WARNING

    @pytest.mark.asyncio
    async def test_missing_llms_txt_is_error(self, shop):
        async with shop.client() as client:
            report = await analyze_ai(URL, client=client)
        files = report.categories["fichiers"]
        assert files.get("llms.txt").status == CheckStatus.ERROR
        assert files.get("ai-plugin.json").status == CheckStatus.WARNING


# ===========================================================================
# i18n
# ===========================================================================


class TestI18nAudit:

    @pytest.mark.asyncio
    async def test_bilingual_page_without_sitemap(self, site):
        head = (
            '<link rel="alternate" hreflang="en" href="https://shop.test/">'
            '<link rel="alternate" hreflang="fr" href="https://shop.test/fr/">'
            '<link rel="alternate" hreflang="x-default" href="https://shop.test/">'
        )
        site.add(URL, html_page(f"<h1>Linen shirts</h1><p>{filler(30)}</p>", head))
        site.add(f"{URL}fr/", html_page("<h1>Chemises</h1>", "<title>Chemises</title>", lang="fr"))

        async with site.client() as client:
            report = await analyze_i18n(URL, client=client, identify=lambda text: "en")

        assert list(report.categories) == ["configuration", "langues", "couverture", "qualite"]

        configuration = report.categories["configuration"]
        assert configuration.get("hreflang tags").status == CheckStatus.SUCCESS
        assert configuration.get("Default language (x-default)").status == CheckStatus.SUCCESS
        assert configuration.get("Meta content-language").status == CheckStatus.WARNING

        versions = report.categories["langues"]
        assert [c.name for c in versions.checks] == ["Version en", "Version fr"]
        assert all(c.passed for c in versions.checks)

        coverage = report.categories["couverture"]
        assert coverage.get("Translations of this page").value == "1/1 languages OK"
        assert coverage.checks[-1].name == "Sitemap analysis"

        quality = report.categories["qualite"]
        assert quality.get("Declared vs content language").status == CheckStatus.SUCCESS
        assert quality.get("Placeholder text (Lorem Ipsum)").status == CheckStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_no_declarations(self, site):
        site.add(URL, html_page("<p>Lorem ipsum dolor sit amet</p>", lang=""))
        async with site.client() as client:
            report = await analyze_i18n(URL, client=client, identify=lambda text: None)

        assert report.categories["langues"].get("Language versions").status == CheckStatus.ERROR
        assert report.categories["couverture"].score == 0
        quality = report.categories["qualite"]
        assert quality.get("Placeholder text (Lorem Ipsum)").status == CheckStatus.ERROR
        assert quality.get("Declared vs content language") is None


# ===========================================================================
# Failures and the analyzer facade
# ===========================================================================


class InMemoryHistory:
    def __init__(self):
        self.records: List[ScanRecord] = []

    def append(self, record: ScanRecord) -> None:
        self.records.append(record)

    def history(self, url: str) -> List[ScanRecord]:
        return [r for r in self.records if r.url == url]


class TestFailures:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["", "   ", "example.com", "ftp://example.com/", "https://", "http://[broken/"])
    async def test_invalid_url(self, url):
        with pytest.raises(InputError):
            await analyze_seo(url)

    @pytest.mark.asyncio
    async def test_unreachable_page_is_fatal(self, site):
        async with site.client() as client:
            with pytest.raises(PrimaryFetchError) as excinfo:
                await analyze_ai("https://shop.test/missing", client=client)
        assert excinfo.value.http_status == 404
        assert excinfo.value.status_code == 500


class TestSiteAnalyzer:

    @pytest.mark.asyncio
    async def test_dispatch_records_history(self, shop):
        history = InMemoryHistory()
        async with shop.client() as client:
            analyzer = SiteAnalyzer(client=client, history=history)
            report = await analyzer.analyze(URL, "seo")

        (record,) = history.history(URL)
        assert record.domain == AuditDomain.SEO
        assert record.score == report.score
        assert record.date == report.timestamp[:10]
        assert set(record.category_scores) == set(report.categories)

        names = remediation_candidates(report)
        assert "H1 tag" in names
        assert len(names) == len(set(names))

    @pytest.mark.asyncio
    async def test_unknown_domain(self):
        with pytest.raises(InputError):
            await SiteAnalyzer().analyze(URL, "performance")
