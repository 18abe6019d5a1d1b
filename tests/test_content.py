"""
Tests for the content-quality heuristics shared by the SEO and AI audits.
"""

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

from site_audit.content import (
    check_author,
    check_content_length,
    check_faq_schema,
    check_freshness,
    check_heading_structure,
    check_publication_date,
    check_script_dependency,
    check_semantic_tags,
    check_vocabulary,
    detect_cdn,
)
from site_audit.markup import Document
from site_audit.models import CheckStatus

from conftest import filler, html_page


NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _last_modified(days_ago: int) -> dict:
    return {"last-modified": format_datetime(NOW - timedelta(days=days_ago), usegmt=True)}


# ===========================================================================
# Freshness
# ===========================================================================


class TestFreshness:

    def test_recent_is_success(self):
        check = check_freshness(_last_modified(10), now=NOW)
        assert check.status == CheckStatus.SUCCESS
        assert check.value == "2026-05-22"
        assert check.recommendation is None

    def test_stale_is_warning(self):
        check = check_freshness(_last_modified(100), now=NOW)
        assert check.status == CheckStatus.WARNING
        assert "100 days" in check.recommendation

    def test_absent_is_warning(self):
        check = check_freshness({}, now=NOW)
        assert check.status == CheckStatus.WARNING
        assert check.value == "Absent"

    def test_unreadable_is_warning(self):
        check = check_freshness({"last-modified": "yesterday-ish"}, now=NOW)
        assert check.status == CheckStatus.WARNING
        assert check.value == "Unreadable"

    def test_cdn_named_when_header_missing(self):
        headers = {"cf-ray": "8a1b2c3d-CDG"}
        assert detect_cdn(headers) == "Cloudflare"
        check = check_freshness(headers, now=NOW)
        assert "Cloudflare" in check.detail
        assert "CDN detected: Cloudflare" in check.detail_list


# ===========================================================================
# Structure
# ===========================================================================


FULL_LAYOUT = (
    "<header><nav>Menu</nav></header>"
    "<main><article><section><h1>Title</h1></section></article></main>"
    "<aside>Related</aside><footer>Legal</footer>"
)


class TestSemanticTags:

    def test_all_tags_present(self):
        check = check_semantic_tags(Document.parse(html_page(FULL_LAYOUT)))
        assert check.status == CheckStatus.SUCCESS
        assert check.value == "7/7 tags"
        assert len(check.detail_list) == 7

    def test_three_tags_is_warning(self):
        doc = Document.parse(html_page("<header></header><main></main><footer></footer>"))
        check = check_semantic_tags(doc)
        assert check.status == CheckStatus.WARNING
        assert "<nav>" in check.recommendation

    def test_divs_only_is_error(self):
        check = check_semantic_tags(Document.parse(html_page("<div><div>text</div></div>")))
        assert check.status == CheckStatus.ERROR
        assert "Critical priority:" in check.recommendation


class TestHeadingStructure:

    def test_well_structured_page(self):
        paragraphs = "".join(f"<p>{filler(12, 'para')}</p>" for _ in range(6))
        body = (
            "<h1>Linen shirts</h1><h2>Fabric</h2><h3>Origin</h3><h2>Care</h2>"
            f"{paragraphs}<ul><li>Soft</li></ul><img src='a.jpg' alt='Shirt'>"
        )
        check = check_heading_structure(Document.parse(html_page(body)))
        assert check.status == CheckStatus.SUCCESS
        assert check.value == "7/7 criteria"

    def test_two_h1_without_lists_or_paragraphs(self):
        body = "<h1>One</h1><h1>Two</h1><p>Short.</p>"
        check = check_heading_structure(Document.parse(html_page(body)))
        assert check.status == CheckStatus.ERROR
        assert "Several H1 found" in check.recommendation
        assert check.detail_list[0].startswith("✗ Unique H1")


class TestScriptDependency:

    def test_static_content(self):
        doc = Document.parse(html_page(f"<p>{filler(120)}</p><script>var x = 1;</script>"))
        check = check_script_dependency(doc)
        assert check.status == CheckStatus.SUCCESS

    def test_spa_shell(self):
        doc = Document.parse(html_page('<div id="root"></div><script src="/app.js"></script>'))
        check = check_script_dependency(doc, "https://shop.test/")
        assert check.status == CheckStatus.ERROR
        assert check.value == "Depends on JS"
        assert "curl https://shop.test/" in check.recommendation
        assert "JS framework root detected (React/Vue/Angular)" in check.detail


# ===========================================================================
# Schema, length, vocabulary, citability
# ===========================================================================


class TestFaqSchema:

    def test_faq_in_graph(self):
        head = (
            '<script type="application/ld+json">'
            '{"@graph": [{"@type": "Organization"}, {"@type": "FAQPage", "mainEntity": '
            '[{"@type": "Question", "name": "Is it washable?"}]}]}'
            "</script>"
        )
        check = check_faq_schema(Document.parse(html_page(head=head)))
        assert check.status == CheckStatus.SUCCESS
        assert "Q: Is it washable?" in check.detail_list

    def test_no_faq_is_warning(self):
        check = check_faq_schema(Document.parse(html_page("<p>Hi</p>")))
        assert check.status == CheckStatus.WARNING
        assert check.value == "Absent"


class TestContentLength:

    def test_below_minimum_is_error(self):
        check = check_content_length(Document.parse(html_page(f"<p>{filler(120)}</p>")))
        assert check.status == CheckStatus.ERROR
        assert check.value == "120 words"

    def test_between_minimum_and_optimal_is_warning(self):
        check = check_content_length(Document.parse(html_page(f"<p>{filler(250)}</p>")))
        assert check.status == CheckStatus.WARNING

    def test_optimal_range_is_success(self):
        check = check_content_length(Document.parse(html_page(f"<main><p>{filler(800)}</p></main>")))
        assert check.status == CheckStatus.SUCCESS
        assert "<main> content: 800 words" in check.detail_list


class TestVocabulary:

    def test_diverse_text(self):
        check = check_vocabulary(Document.parse(html_page(f"<p>{filler(100, 'term')}</p>")))
        assert check.status == CheckStatus.SUCCESS

    def test_repetitive_text(self):
        text = " ".join(["shirt linen"] * 50)
        check = check_vocabulary(Document.parse(html_page(f"<p>{text}</p>")))
        assert check.status == CheckStatus.ERROR
        assert '"shirt" — 50 occurrences' in check.detail_list


class TestCitability:

    def test_author_from_json_ld(self):
        head = '<script type="application/ld+json">{"@type": "Article", "author": {"name": "Ada"}}</script>'
        check = check_author(Document.parse(html_page(head=head)))
        assert check.status == CheckStatus.SUCCESS
        assert "✓ Schema.org Person/author: Ada" in check.detail_list

    def test_missing_author(self):
        check = check_author(Document.parse(html_page("<p>Anonymous</p>")))
        assert check.status == CheckStatus.WARNING
        assert check.recommendation

    def test_publication_date_from_time_tag(self):
        doc = Document.parse(html_page('<time datetime="2026-01-02">2 Jan</time>'))
        check = check_publication_date(doc)
        assert check.status == CheckStatus.SUCCESS
        assert '✓ <time datetime="...">: 2026-01-02' in check.detail_list
