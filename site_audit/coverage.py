"""
Translation coverage for multilingual sites.

Cross-references the audited page's alternate-language declarations, its
sitemap index and a bounded sample of localized product pages:

    1. declarations  - fewer than two base languages short-circuits
    2. grouping      - regional variants collapse onto their base language
    3. this page     - every other language version is fetched and its
                       title / description / H1 / body checked by language id
    4. sitemaps      - content type x base language presence matrix
    5. deep sample   - N product pages x M languages, fetched concurrently

Every fetch batch is issued concurrently and folded only once it resolves.
Failed members become items or error Checks, never exceptions.
"""

import logging
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

import httpx

from .config import Settings
from .fetcher import fetch, fetch_all, origin_of
from .language import LanguageIdentifier, identify_language
from .locales import (
    SITEMAP_TYPES,
    LocaleEntry,
    base_language,
    build_coverage_matrix,
    default_product_sitemap,
    detect_current_language,
    extract_fields,
    extract_locales,
    find_mismatches,
    group_locales,
    product_paths,
    sub_sitemaps,
    verifiable,
)
from .markup import Document
from .models import Category, Check, CheckStatus, DetailCard, DetailCardItem

logger = logging.getLogger(__name__)

CATEGORY_NAME = "Translation coverage"
TRANSLATION_FIX = "Open the translation tool, select the language, then correct the listed fields"


def _not_analyzable(language_count: int) -> Category:
    return Category(
        name=CATEGORY_NAME,
        checks=[
            Check(
                name=CATEGORY_NAME,
                status=CheckStatus.ERROR if language_count == 0 else CheckStatus.WARNING,
                value="Not analyzable",
                detail=(
                    "No alternate language detected via hreflang" if language_count == 0
                    else "Only one language detected, nothing to compare"
                ),
                recommendation="Configure several languages to enable this analysis",
            )
        ],
    )


def _languages_check(groups: Dict[str, List[str]], current: Optional[str]) -> Check:
    base_langs = list(groups)
    variants = [v for members in groups.values() for v in members]
    regional = [v for v in variants if "-" in v]
    has_regional = len(variants) > len(base_langs)

    detail = f"Languages: {', '.join(base_langs)}"
    if has_regional:
        detail += f" | Regional variants folded into their base language: {', '.join(regional)}"
    if current:
        detail += f" | Current language: {current}"

    return Check(
        name="Languages detected",
        status=CheckStatus.SUCCESS,
        value=(
            f"{len(base_langs)} languages ({len(variants)} with variants)" if has_regional
            else f"{len(base_langs)} languages"
        ),
        detail=detail,
    )


# ─── Step 3: this page's language versions ────────────────────────────


def _page_alternates(entries: List[LocaleEntry]) -> List[LocaleEntry]:
    """First declared alternate per base language."""
    seen = set()
    alternates = []
    for entry in entries:
        if entry.href and entry.base not in seen:
            seen.add(entry.base)
            alternates.append(entry)
    return alternates


async def _check_this_page(
    doc: Document,
    url: str,
    entries: List[LocaleEntry],
    current_base: str,
    client: httpx.AsyncClient,
    identify: LanguageIdentifier,
    settings: Settings,
) -> List[Check]:
    to_check = [a for a in _page_alternates(entries) if a.base != current_base]
    results = await fetch_all(client, [a.href for a in to_check], timeout=settings.timeout)

    ok_langs: List[str] = []
    issues: List[Tuple[str, DetailCardItem]] = []
    for alternate, result in zip(to_check, results):
        lang = alternate.base
        if not result.ok:
            issues.append((lang, DetailCardItem(
                element="Page inaccessible",
                text=f"Error: {result.reason}",
                fix=f"Check that {alternate.href} is reachable",
            )))
            continue
        if not verifiable(lang):
            ok_langs.append(lang)
            continue
        mismatches = find_mismatches(extract_fields(Document.parse(result.text), lang), lang, identify)
        if mismatches:
            issues.extend((lang, item) for item in mismatches)
        else:
            ok_langs.append(lang)

    checks: List[Check] = []
    if ok_langs:
        checks.append(Check(
            name="Translations of this page",
            status=CheckStatus.WARNING if issues else CheckStatus.SUCCESS,
            value=f"{len(ok_langs)}/{len(to_check)} languages OK",
            detail=f"Correctly translated versions: {', '.join(ok_langs)}",
            recommendation="Some language versions of this page have issues, see below",
        ))

    if issues:
        title = doc.text("h1") or "This page"
        path = urlparse(url).path
        cards: Dict[str, DetailCard] = {}
        for lang, item in issues:
            card = cards.setdefault(lang, DetailCard(title=title, path=path, lang=lang))
            card.items.append(item)
        checks.append(Check(
            name="Translation issues (this page)",
            status=CheckStatus.ERROR,
            value=f"{len(issues)} issue(s)",
            detail=f"{len(issues)} untranslated texts found on the language versions of this page",
            recommendation=TRANSLATION_FIX,
            detail_cards=list(cards.values()),
        ))

    if not ok_langs and not issues:
        checks.append(Check(
            name="Translations of this page",
            status=CheckStatus.WARNING,
            value="Not verifiable",
            detail="Translations could not be verified (content too short or languages unsupported)",
        ))
    return checks


# ─── Step 4: sitemap matrix ───────────────────────────────────────────


def _sitemap_checks(matrix: Dict[str, set], base_langs: List[str]) -> List[Check]:
    checks = []
    for content_type, label in SITEMAP_TYPES.items():
        present = matrix.get(content_type, set())
        covered = [l for l in base_langs if l in present]
        missing = [l for l in base_langs if l not in present]
        checks.append(Check(
            name=f"{label} sitemap",
            status=CheckStatus.ERROR if missing else CheckStatus.SUCCESS,
            value=f"{len(covered)}/{len(base_langs)} languages",
            detail=(
                f"Sitemaps missing for: {', '.join(missing)}" if missing
                else f"Sitemap present for every language: {', '.join(covered)}"
            ),
            recommendation=f"Enable the missing languages for {label.lower()}",
        ))
    return checks


def _global_coverage_check(
    matrix: Dict[str, set], base_langs: List[str], product_count: int
) -> Check:
    covered_types = [t for t in SITEMAP_TYPES if set(base_langs) <= matrix.get(t, set())]
    if len(covered_types) == len(SITEMAP_TYPES):
        detail = f"Every page is available in the {len(base_langs)} languages ({', '.join(base_langs)})"
        if product_count:
            detail += f" — {product_count} products detected"
        return Check(name="Global coverage", status=CheckStatus.SUCCESS, value="100%", detail=detail)

    percent = round(len(covered_types) / len(SITEMAP_TYPES) * 100)
    return Check(
        name="Global coverage",
        status=CheckStatus.WARNING if percent >= 75 else CheckStatus.ERROR,
        value=f"{percent}%",
        detail=f"{len(covered_types)}/{len(SITEMAP_TYPES)} content types fully covered",
        recommendation="Some content types have no sitemap for every language",
    )


# ─── Step 5: deep sample ──────────────────────────────────────────────


async def _deep_sample(
    origin: str,
    products: List[Tuple[str, str]],
    langs: List[str],
    client: httpx.AsyncClient,
    identify: LanguageIdentifier,
    settings: Settings,
) -> Check:
    tasks = [(path, title, lang) for path, title in products for lang in langs]
    results = await fetch_all(
        client, [f"{origin}/{lang}{path}" for path, _, lang in tasks], timeout=settings.timeout
    )

    cards: Dict[Tuple[str, str], DetailCard] = {}
    mismatch_count = 0
    for (path, title, lang), result in zip(tasks, results):
        if not result.ok or not verifiable(lang):
            continue
        mismatches = find_mismatches(extract_fields(Document.parse(result.text), lang), lang, identify)
        if not mismatches:
            continue
        mismatch_count += len(mismatches)
        card = cards.setdefault((path, lang), DetailCard(title=title, path=path, lang=lang))
        card.items.extend(mismatches)

    scope = f"{len(products)} products × {len(langs)} languages"
    if mismatch_count:
        return Check(
            name="Untranslated content detected (sample)",
            status=CheckStatus.ERROR,
            value=f"{mismatch_count} text(s)",
            detail=f"{mismatch_count} untranslated texts found on {scope} checked ({', '.join(langs)})",
            recommendation=TRANSLATION_FIX,
            detail_cards=list(cards.values()),
        )
    return Check(
        name="Translation quality (sample)",
        status=CheckStatus.SUCCESS,
        value="OK",
        detail=f"{scope} checked — content appears correctly translated",
    )


async def analyze_coverage(
    doc: Document,
    url: str,
    client: httpx.AsyncClient,
    identify: LanguageIdentifier = identify_language,
    settings: Optional[Settings] = None,
) -> Category:
    """Translation coverage of the site the audited page belongs to."""
    settings = settings or Settings()
    entries, x_default = extract_locales(doc)
    groups = group_locales(e.lang for e in entries)
    base_langs = list(groups)

    if len(base_langs) < 2:
        return _not_analyzable(len(base_langs))

    current = detect_current_language(doc.attr("html", "lang"), [e.lang for e in entries], x_default)
    current_base = base_language(current) if current else None
    checks = [_languages_check(groups, current)]

    if current_base and len(_page_alternates(entries)) > 1:
        checks.extend(await _check_this_page(
            doc, url, entries, current_base, client, identify, settings
        ))

    origin = origin_of(url)
    index = await fetch(client, f"{origin}/sitemap.xml", timeout=settings.timeout)
    if not index.ok:
        logger.warning(f"Sitemap index unavailable for {origin}: {index.reason}")
        checks.append(Check(
            name="Sitemap analysis",
            status=CheckStatus.ERROR,
            value="Inaccessible",
            detail=f"Could not read the sitemap: {index.reason}",
            recommendation="The sitemap is required to measure translation coverage",
        ))
        return Category(name=CATEGORY_NAME, checks=checks)

    sitemaps = sub_sitemaps(index.text)
    matrix = build_coverage_matrix(sitemaps, current_base)
    checks.extend(_sitemap_checks(matrix, base_langs))

    products: List[Tuple[str, str]] = []
    product_sitemap = default_product_sitemap(sitemaps)
    if product_sitemap:
        result = await fetch(client, product_sitemap, timeout=settings.timeout)
        if result.ok:
            products = product_paths(result.text)
        else:
            logger.info(f"Product sitemap unavailable: {result.reason}")

    checks.append(_global_coverage_check(matrix, base_langs, len(products)))

    sample = products[:settings.sample_size]
    sample_langs = [l for l in base_langs if l != current_base][:settings.sample_languages]
    if sample and sample_langs:
        checks.append(await _deep_sample(origin, sample, sample_langs, client, identify, settings))

    return Category(name=CATEGORY_NAME, checks=checks)
