"""
SEO audit of one page.

Seven categories, run in order: meta, structure, technique, contenu,
structuredData, securite, liens. Auxiliary fetches (robots.txt,
sitemap.xml, redirect walk, outbound links) are best-effort; only the
primary page is required.
"""

import logging
from typing import List, Mapping, Optional

import httpx

from . import seo_checks as checks
from .config import Settings
from .fetcher import fetch_all, origin_of, probe_links, trace_redirects
from .markup import Document
from .models import AuditDomain, Category, Check, Report
from .platform import PlatformCredentials, missing_alt_cards, with_cards
from .session import audit_client, fetch_primary, validate_url

logger = logging.getLogger(__name__)


def analyze_meta(doc: Document) -> Category:
    return Category(
        name="Meta & content",
        checks=[
            checks.check_title(doc),
            checks.check_meta_description(doc),
            checks.check_canonical(doc),
            checks.check_open_graph(doc),
            checks.check_twitter_card(doc),
            checks.check_meta_keywords(doc),
        ],
    )


async def analyze_structure(
    doc: Document,
    url: str,
    client: httpx.AsyncClient,
    settings: Settings,
    credentials: Optional[PlatformCredentials] = None,
) -> Category:
    image_alt = checks.check_image_alt(doc)
    if credentials is not None and not image_alt.passed:
        cards = await missing_alt_cards(client, credentials, settings.timeout)
        image_alt = with_cards(image_alt, cards)

    return Category(
        name="HTML structure",
        checks=[
            checks.check_h1(doc),
            checks.check_heading_hierarchy(doc),
            image_alt,
            checks.check_text_ratio(doc),
            checks.check_link_mix(doc, url),
            *checks.check_image_optimisation(doc),
        ],
    )


async def analyze_technique(
    doc: Document,
    url: str,
    headers: Mapping[str, str],
    client: httpx.AsyncClient,
    settings: Settings,
) -> Category:
    origin = origin_of(url)
    robots, sitemap = await fetch_all(
        client, [f"{origin}/robots.txt", f"{origin}/sitemap.xml"], timeout=settings.timeout
    )
    chain = await trace_redirects(client, url, max_hops=settings.redirect_hops)

    results: List[Check] = [
        checks.check_https(url),
        checks.check_viewport(doc),
        checks.check_resource("robots.txt", robots, "Create a robots.txt file at the site root"),
        checks.check_resource("sitemap.xml", sitemap, "Create a sitemap.xml to ease indexing"),
        checks.check_page_size(doc),
        checks.check_compression(headers),
        checks.check_redirect_chain(chain),
    ]
    mixed = checks.check_mixed_content(doc, url)
    if mixed is not None:
        results.append(mixed)
    return Category(name="Technical", checks=results)


def analyze_contenu(doc: Document) -> Category:
    return Category(
        name="Content",
        checks=[
            checks.check_word_count(doc),
            checks.check_keywords(doc),
            checks.check_content_links(doc),
        ],
    )


def analyze_structured_data(doc: Document) -> Category:
    return Category(
        name="Structured data",
        checks=[checks.check_json_ld(doc), checks.check_microdata(doc)],
    )


def analyze_securite(headers: Mapping[str, str]) -> Category:
    return Category(name="Security (headers)", checks=checks.security_checks(headers))


async def analyze_liens(
    doc: Document, url: str, client: httpx.AsyncClient, settings: Settings
) -> Category:
    links = checks.page_links(doc, url)[:settings.max_links]
    probes = await probe_links(client, links, timeout=settings.link_timeout) if links else []
    return Category(name="Link check", checks=[checks.links_check(probes)])


async def analyze_seo(
    url: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
    credentials: Optional[PlatformCredentials] = None,
) -> Report:
    """
    Run the SEO audit for ``url``.

    Raises InputError for a malformed URL and PrimaryFetchError when the
    page itself cannot be retrieved.
    """
    url = validate_url(url)
    settings = settings or Settings()

    async with audit_client(client, settings) as http:
        page = await fetch_primary(http, url, settings)
        doc = Document.parse(page.text)

        categories = {
            "meta": analyze_meta(doc),
            "structure": await analyze_structure(doc, url, http, settings, credentials),
            "technique": await analyze_technique(doc, url, page.headers, http, settings),
            "contenu": analyze_contenu(doc),
            "structuredData": analyze_structured_data(doc),
            "securite": analyze_securite(page.headers),
            "liens": await analyze_liens(doc, url, http, settings),
        }

    report = Report(url=url, domain=AuditDomain.SEO, categories=categories)
    logger.info(f"SEO audit done for {url}: {report.score}/100")
    return report
