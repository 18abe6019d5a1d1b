"""
AI-readiness audit of one page.

Categories: crawlers (robots.txt verdict per AI bot), fichiers (llms.txt,
llms-full.txt, ai-plugin.json), contenu (structure and length as seen by a
non-rendering crawler) and citabilite (author, date, vocabulary).
"""

import logging
from typing import List, Mapping, Optional

import httpx

from . import content
from .config import Settings
from .fetcher import FetchResult, fetch, fetch_all, origin_of
from .markup import Document
from .models import AuditDomain, Category, Check, CheckStatus, Report
from .platform import detect_store
from .robots import crawler_checks
from .session import audit_client, fetch_primary, validate_url

logger = logging.getLogger(__name__)

PREVIEW_LINES = 15
PREVIEW_WIDTH = 100

PLUGIN_PATHS = ("/.well-known/ai-plugin.json", "/ai-plugin.json")


def preview(text: str) -> List[str]:
    """First non-empty lines of a text file, each clipped for display."""
    lines = [line for line in text.splitlines() if line.strip()][:PREVIEW_LINES]
    return [line[:PREVIEW_WIDTH] + "..." if len(line) > PREVIEW_WIDTH else line for line in lines]


async def analyze_crawlers(url: str, client: httpx.AsyncClient, settings: Settings) -> Category:
    result = await fetch(client, f"{origin_of(url)}/robots.txt", timeout=settings.timeout)
    if not result.ok:
        logger.info(f"No robots.txt for {url}: {result.reason}")
    body = result.text if result.ok else None
    return Category(name="AI crawler access", checks=crawler_checks(body))


def _text_file_check(name: str, result: FetchResult, missing_status: CheckStatus, advice: str) -> Check:
    found = result.ok
    if found:
        detail = f"Found ({len(result.text)} chars)"
    elif result.status_code is not None:
        detail = "Not found"
    else:
        detail = "Inaccessible"
    return Check(
        name=name,
        status=CheckStatus.SUCCESS if found else missing_status,
        value="Present" if found else "Missing",
        detail=detail,
        recommendation=advice,
        detail_list=preview(result.text) if found else None,
    )


async def analyze_fichiers(url: str, client: httpx.AsyncClient, settings: Settings) -> Category:
    origin = origin_of(url)
    llms, llms_full, plugin = await fetch_all(
        client,
        [f"{origin}/llms.txt", f"{origin}/llms-full.txt", f"{origin}{PLUGIN_PATHS[0]}"],
        timeout=settings.timeout,
    )

    plugin_path = PLUGIN_PATHS[0]
    if not plugin.ok:
        # Some hosted platforms refuse to serve /.well-known
        plugin_path = PLUGIN_PATHS[1]
        plugin = await fetch(client, f"{origin}{plugin_path}", timeout=settings.timeout)

    return Category(
        name="AI-specific files",
        checks=[
            _text_file_check(
                "llms.txt", llms, CheckStatus.ERROR,
                "Create an llms.txt file at the root to guide LLMs through your content",
            ),
            _text_file_check(
                "llms-full.txt", llms_full, CheckStatus.WARNING,
                "Create llms-full.txt to give LLMs the detailed content",
            ),
            Check(
                name="ai-plugin.json",
                status=CheckStatus.SUCCESS if plugin.ok else CheckStatus.WARNING,
                value="Present" if plugin.ok else "Missing",
                detail=(
                    f"Found at {plugin_path}" if plugin.ok
                    else f"Not found (neither {PLUGIN_PATHS[0]} nor {PLUGIN_PATHS[1]})"
                ),
                recommendation=(
                    "Create ai-plugin.json to declare the site as an AI plugin "
                    f"(serve it from {PLUGIN_PATHS[1]} where /.well-known is blocked)"
                ),
            ),
        ],
    )


def analyze_contenu(doc: Document, final_url: str, headers: Mapping[str, str]) -> Category:
    return Category(
        name="Content quality for AI",
        checks=[
            content.check_semantic_tags(doc),
            content.check_script_dependency(doc, final_url),
            content.check_heading_structure(doc),
            content.check_faq_schema(doc),
            content.check_freshness(headers),
            content.check_content_length(doc),
        ],
    )


def analyze_citabilite(doc: Document) -> Category:
    return Category(
        name="Citability",
        checks=[
            content.check_author(doc),
            content.check_publication_date(doc),
            content.check_vocabulary(doc),
        ],
    )


async def analyze_ai(
    url: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
) -> Report:
    """Run the AI-readiness audit for ``url``."""
    url = validate_url(url)
    settings = settings or Settings()

    async with audit_client(client, settings) as http:
        page = await fetch_primary(http, url, settings)
        doc = Document.parse(page.text)
        store = detect_store(doc)

        categories = {
            "crawlers": await analyze_crawlers(url, http, settings),
            "fichiers": await analyze_fichiers(url, http, settings),
            "contenu": analyze_contenu(doc, page.url, page.headers),
            "citabilite": analyze_citabilite(doc),
        }

    report = Report(url=url, domain=AuditDomain.AI, categories=categories, platform_store=store)
    logger.info(f"AI audit done for {url}: {report.score}/100")
    return report
