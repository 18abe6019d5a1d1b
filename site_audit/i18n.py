"""
Multilingual (i18n) audit of one page.

Categories: configuration (declarations on the page itself), langues
(reachability of the declared versions), couverture (sitemap matrix and
translation sampling, see coverage.py) and qualite (language of the page's
own texts against its declared language).
"""

import logging
import re
from typing import List, Optional

import httpx

from .config import Settings
from .coverage import analyze_coverage
from .fetcher import fetch_all
from .language import LanguageIdentifier, display_name, identify_language
from .locales import X_DEFAULT, base_language, verifiable
from .markup import Document
from .models import AuditDomain, Category, Check, CheckStatus, Report
from .session import audit_client, fetch_primary, validate_url

logger = logging.getLogger(__name__)

MIN_BODY_TEXT = 50
MIN_ALT_TEXT = 10

_SUBDOMAIN_RE = re.compile(r"^https?://[a-z]{2}\.")
_SUBFOLDER_RE = re.compile(r"/[a-z]{2}(/|$)")
_PARAMETER_RE = re.compile(r"[?&]lang=")


def declarations(doc: Document) -> List[tuple]:
    """Every (hreflang, href) pair as written, x-default included."""
    return [
        ((link.get("hreflang") or "").strip(), (link.get("href") or "").strip())
        for link in doc.select('link[rel="alternate"][hreflang]')
    ]


def url_structure(href: str) -> Optional[str]:
    if _SUBDOMAIN_RE.search(href):
        return "Subdomain (fr.site.com)"
    if _SUBFOLDER_RE.search(href):
        return "Subfolder (/fr/)"
    if _PARAMETER_RE.search(href):
        return "Parameter (?lang=fr)"
    return None


# ─── Configuration ────────────────────────────────────────────────────


def analyze_configuration(doc: Document) -> Category:
    html_lang = doc.attr("html", "lang")
    declared = declarations(doc)
    count = len(declared)
    has_x_default = any(lang.lower() == X_DEFAULT for lang, _ in declared)
    content_lang = doc.attr('meta[http-equiv="content-language"]', "content")
    structure = url_structure(declared[0][1]) if declared else None

    if count > 1:
        hreflang_status = CheckStatus.SUCCESS
    elif count == 1:
        hreflang_status = CheckStatus.WARNING
    else:
        hreflang_status = CheckStatus.ERROR

    if not count:
        x_default_status, x_default_detail = CheckStatus.WARNING, "No hreflang, x-default not applicable"
    elif has_x_default:
        x_default_status, x_default_detail = CheckStatus.SUCCESS, "x-default is declared"
    else:
        x_default_status, x_default_detail = CheckStatus.ERROR, "x-default missing from hreflang"

    return Category(
        name="i18n technical configuration",
        checks=[
            Check(
                name="lang attribute on <html>",
                status=CheckStatus.SUCCESS if html_lang else CheckStatus.ERROR,
                value=html_lang or "Missing",
                detail=f"Declared language: {html_lang}" if html_lang else "No lang attribute on the html tag",
                recommendation='Add lang="en" (or the right language) on the <html> tag',
            ),
            Check(
                name="hreflang tags",
                status=hreflang_status,
                value=f"{count} language(s)",
                detail=(
                    f"Languages: {', '.join(lang for lang, _ in declared)}" if declared
                    else "No hreflang tag found"
                ),
                recommendation=(
                    'Add <link rel="alternate" hreflang="xx"> tags for every language version'
                    if not count else "Declare every other language version of this page"
                ),
            ),
            Check(
                name="Default language (x-default)",
                status=x_default_status,
                value="Present" if has_x_default else "Missing",
                detail=x_default_detail,
                recommendation=(
                    'Add hreflang="x-default" for the default version of the site' if count
                    else "Declare language versions first, then an x-default"
                ),
            ),
            Check(
                name="Meta content-language",
                status=CheckStatus.SUCCESS if content_lang else CheckStatus.WARNING,
                value=content_lang or "Missing",
                detail=f"Content-Language: {content_lang}" if content_lang else "No meta content-language",
                recommendation=(
                    'Add <meta http-equiv="content-language" content="en"> (optional when lang is set)'
                ),
            ),
            Check(
                name="Multilingual URL structure",
                status=CheckStatus.SUCCESS if count else CheckStatus.WARNING,
                value=structure or "Not detected",
                detail=f"Detected structure: {structure or 'Not detected'}",
                recommendation="Use subfolders (/fr/, /en/) for a clear multilingual structure",
            ),
        ],
    )


# ─── Language versions ────────────────────────────────────────────────


async def analyze_langues(doc: Document, client: httpx.AsyncClient, settings: Settings) -> Category:
    declared = declarations(doc)
    if not declared:
        return Category(
            name="Language versions",
            checks=[
                Check(
                    name="Language versions",
                    status=CheckStatus.ERROR,
                    value="None found",
                    detail="No alternate version declared via hreflang",
                    recommendation="Add hreflang tags to declare the language versions",
                )
            ],
        )

    alternates = [(lang, href) for lang, href in declared if lang.lower() != X_DEFAULT]
    alternates = alternates[:settings.max_alternates]
    results = await fetch_all(client, [href for _, href in alternates], timeout=settings.timeout)

    checks: List[Check] = []
    for (lang, href), result in zip(alternates, results):
        if result.ok:
            checks.append(Check(
                name=f"Version {lang}",
                status=CheckStatus.SUCCESS,
                value="Accessible",
                detail=f"{href} — HTTP {result.status_code}",
            ))
        elif result.status_code is not None:
            checks.append(Check(
                name=f"Version {lang}",
                status=CheckStatus.ERROR,
                value=f"HTTP {result.status_code}",
                detail=f"{href} — Error {result.status_code}",
                recommendation=f"The {lang} page returns an error. Check the URL.",
            ))
        else:
            checks.append(Check(
                name=f"Version {lang}",
                status=CheckStatus.ERROR,
                value="Inaccessible",
                detail=f"{href} — Unreachable ({result.reason})",
                recommendation=f"Check that the URL of the {lang} version is correct",
            ))
    return Category(name="Language versions", checks=checks)


# ─── Translation quality ──────────────────────────────────────────────


def analyze_qualite(doc: Document, identify: LanguageIdentifier) -> Category:
    raw_lang = doc.attr("html", "lang")
    html_lang = base_language(raw_lang) if raw_lang else None
    body_text = doc.text()
    checks: List[Check] = []

    if len(body_text) > MIN_BODY_TEXT:
        detected = identify(body_text)
        matches = html_lang is not None and detected == html_lang
        detected_name = display_name(detected) if detected else "undetermined"
        checks.append(Check(
            name="Declared vs content language",
            status=CheckStatus.SUCCESS if matches else CheckStatus.WARNING,
            value="Consistent" if matches else "Possible mismatch",
            detail=f"Declared: {html_lang or 'not set'} | Detected: {detected_name}",
            recommendation=(
                f"The detected language ({detected_name}) does not match the declared language ({html_lang})"
                if html_lang else "Declare the page language with the lang attribute"
            ),
        ))

    alt_issues: List[str] = []
    if html_lang and verifiable(html_lang):
        for img in doc.select("img[alt]"):
            alt = (img.get("alt") or "").strip()
            if len(alt) <= MIN_ALT_TEXT:
                continue
            detected = identify(alt)
            if detected is not None and detected != html_lang:
                alt_issues.append(f'"{alt}" ({display_name(detected)})')
    checks.append(Check(
        name="Alt attribute translation",
        status=CheckStatus.WARNING if alt_issues else CheckStatus.SUCCESS,
        value=f"{len(alt_issues)} issue(s)" if alt_issues else "OK",
        detail=(
            f"{len(alt_issues)} alt attribute(s) possibly untranslated" if alt_issues
            else "Every alt appears to be in the right language"
        ),
        recommendation="Check that image alt attributes are translated into the page language",
        detail_list=alt_issues,
    ))

    has_lorem = "lorem ipsum" in body_text.lower()
    checks.append(Check(
        name="Placeholder text (Lorem Ipsum)",
        status=CheckStatus.ERROR if has_lorem else CheckStatus.SUCCESS,
        value="Detected" if has_lorem else "None",
        detail="Lorem Ipsum text found on the page" if has_lorem else "No placeholder text detected",
        recommendation="Replace every Lorem Ipsum text with real content",
    ))

    meta_desc = doc.attr('meta[name="description"]', "content")
    if meta_desc and html_lang:
        detected = identify(meta_desc)
        matches = not verifiable(html_lang) or detected is None or detected == html_lang
        checks.append(Check(
            name="Meta description translated",
            status=CheckStatus.SUCCESS if matches else CheckStatus.WARNING,
            value="OK" if matches else "Possible issue",
            detail=(
                "The meta description appears to be in the right language" if matches
                else f"The meta description may not be translated (detected: {display_name(detected)})"
            ),
            recommendation="Check that the meta description is translated into the page language",
        ))

    return Category(name="Translation quality", checks=checks)


async def analyze_i18n(
    url: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
    identify: LanguageIdentifier = identify_language,
) -> Report:
    """Run the multilingual audit for ``url``."""
    url = validate_url(url)
    settings = settings or Settings()

    async with audit_client(client, settings) as http:
        page = await fetch_primary(http, url, settings)
        doc = Document.parse(page.text)

        categories = {
            "configuration": analyze_configuration(doc),
            "langues": await analyze_langues(doc, http, settings),
            "couverture": await analyze_coverage(doc, url, http, identify, settings),
            "qualite": analyze_qualite(doc, identify),
        }

    report = Report(url=url, domain=AuditDomain.I18N, categories=categories)
    logger.info(f"i18n audit done for {url}: {report.score}/100")
    return report
