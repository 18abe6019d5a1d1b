"""
Locale declarations, base-language grouping and sitemap classification.

Pure helpers behind the translation-coverage analysis. Regional variants
published by multi-market storefronts (``fr-de``, ``fr-ca``) share one
translation, so everything here works on base languages:

    >>> group_locales(["fr-CA", "fr-DE", "EN"])
    {'en': ['en'], 'fr': ['fr-ca', 'fr-de']}
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple
from urllib.parse import urlparse

from .constants import DESCRIPTION_SELECTOR
from .language import LanguageIdentifier, display_name, supported
from .markup import Document, XmlDocument
from .models import DetailCardItem

logger = logging.getLogger(__name__)

X_DEFAULT = "x-default"
EXCERPT_LENGTH = 120

_PATH_LOCALE_RE = re.compile(r"^/([a-z]{2}(?:-[a-z]{2,})?)(/|$)", re.IGNORECASE)
_SITEMAP_LOCALE_RE = re.compile(r"^/([a-z]{2}(?:-[a-z]{2,})?)/sitemap_", re.IGNORECASE)
_LOCALE_PREFIX_RE = re.compile(r"^/[a-z]{2}(-[a-z]{2,})?/", re.IGNORECASE)

# content type -> display label, in report order
SITEMAP_TYPES: Dict[str, str] = {
    "products": "Products",
    "pages": "Pages",
    "collections": "Collections",
    "blogs": "Blog",
}


@dataclass(frozen=True)
class LocaleEntry:
    lang: str
    href: str

    @property
    def base(self) -> str:
        return base_language(self.lang)


def base_language(code: str) -> str:
    return re.split(r"[-_]", code.strip().lower(), maxsplit=1)[0]


def extract_locales(doc: Document) -> Tuple[List[LocaleEntry], Optional[str]]:
    """Alternate-language declarations, and the x-default href kept apart."""
    entries: List[LocaleEntry] = []
    x_default = None
    for link in doc.select('link[rel="alternate"][hreflang]'):
        lang = (link.get("hreflang") or "").strip().lower()
        href = (link.get("href") or "").strip()
        if not lang:
            continue
        if lang == X_DEFAULT:
            x_default = x_default or href or None
            continue
        entries.append(LocaleEntry(lang=lang, href=href))
    return entries, x_default


def group_locales(codes: Iterable[str]) -> Dict[str, List[str]]:
    """Sorted base language -> sorted distinct variants (case-insensitive)."""
    variants = sorted({c.strip().lower() for c in codes if c and c.strip()})
    grouped: Dict[str, List[str]] = {}
    for variant in variants:
        grouped.setdefault(base_language(variant), []).append(variant)
    return dict(sorted(grouped.items()))


def url_path(url: str) -> Optional[str]:
    """Path of a URL, or None when the URL cannot be parsed."""
    try:
        return urlparse(url).path
    except ValueError:
        logger.debug(f"Skipping unparseable URL {url!r}")
        return None


def path_locale(url: str) -> Optional[str]:
    """Leading locale segment of a URL path (``/fr-ca/...`` -> ``fr-ca``)."""
    path = url_path(url)
    if path is None:
        return None
    match = _PATH_LOCALE_RE.match(path)
    return match.group(1).lower() if match else None


def detect_current_language(
    html_lang: Optional[str], langs: Iterable[str], x_default_href: Optional[str] = None
) -> Optional[str]:
    """
    Locale the audited page is written in.

    Matches the <html lang> value against the declared locales first
    (exact, or either being a prefix of the other), then falls back to the
    locale segment of the x-default URL.
    """
    declared = sorted({l.lower() for l in langs})
    html_lang = (html_lang or "").strip().lower()
    if html_lang:
        for lang in declared:
            if lang == html_lang or lang.startswith(html_lang) or html_lang.startswith(lang):
                return lang
    if x_default_href:
        return path_locale(x_default_href)
    return None


# ─── Sitemaps ─────────────────────────────────────────────────────────


def classify_sitemap(url: str, fallback_lang: Optional[str]) -> Optional[Tuple[str, str]]:
    """(content type, base language) of a sub-sitemap URL, or None if untyped."""
    path = url_path(url)
    if path is None:
        return None
    content_type = next((t for t in SITEMAP_TYPES if f"sitemap_{t}" in path), None)
    if content_type is None:
        return None
    match = _SITEMAP_LOCALE_RE.match(path)
    lang = base_language(match.group(1)) if match else (fallback_lang or "default")
    return content_type, lang


def build_coverage_matrix(
    sitemap_urls: Iterable[str], fallback_lang: Optional[str]
) -> Dict[str, Set[str]]:
    """Content type -> base languages with a sitemap. Every type is present."""
    matrix: Dict[str, Set[str]] = {t: set() for t in SITEMAP_TYPES}
    for url in sitemap_urls:
        classified = classify_sitemap(url, fallback_lang)
        if classified is not None:
            content_type, lang = classified
            matrix[content_type].add(lang)
    return matrix


def sub_sitemaps(index_xml: str) -> List[str]:
    """<loc> of every <sitemap> entry in a sitemap index."""
    index = XmlDocument.parse(index_xml)
    locs = (XmlDocument.child_value(entry, "loc") for entry in index.entries("sitemap"))
    return [loc for loc in locs if loc]


def default_product_sitemap(sitemap_urls: Iterable[str]) -> Optional[str]:
    """The product sitemap without a locale prefix."""
    for url in sitemap_urls:
        path = url_path(url)
        if path is None:
            continue
        if "sitemap_products" in path and not _LOCALE_PREFIX_RE.match(path):
            return url
    return None


def product_paths(sitemap_xml: str) -> List[Tuple[str, str]]:
    """(path, title) of every /products/ URL; title from image:title or the slug."""
    sitemap = XmlDocument.parse(sitemap_xml)
    products: List[Tuple[str, str]] = []
    for entry in sitemap.entries("url"):
        loc = XmlDocument.child_value(entry, "loc")
        if not loc:
            continue
        path = url_path(loc)
        if path is None or "/products/" not in path:
            continue
        title = XmlDocument.descendant_value(entry, "title")
        if not title:
            slug = [part for part in path.split("/") if part][-1]
            title = slug.replace("-", " ").title()
        products.append((path, title))
    return products


# ─── Translation fields ───────────────────────────────────────────────


@dataclass(frozen=True)
class TextField:
    name: str
    text: str
    fix: str


# (field label, minimum length, translated field name)
FIELD_RULES = [
    ("SEO title", 15, "SEO title"),
    ("Meta description", 20, "Meta description"),
    ("Main heading (H1)", 10, "Title"),
    ("Product description", 40, "Description"),
]


def _fix_hint(lang: str, field: str) -> str:
    return f'Translations > language "{lang}" > this item > field "{field}"'


def extract_fields(doc: Document, lang: str) -> List[TextField]:
    """Candidate text fields long enough to identify reliably."""
    texts = [
        doc.text("title"),
        doc.attr('meta[name="description"]', "content") or "",
        doc.text("h1"),
        doc.text(DESCRIPTION_SELECTOR),
    ]
    return [
        TextField(name=label, text=text, fix=_fix_hint(lang, field))
        for (label, minimum, field), text in zip(FIELD_RULES, texts)
        if len(text) > minimum
    ]


def excerpt(text: str) -> str:
    return text[:EXCERPT_LENGTH] + "..." if len(text) > EXCERPT_LENGTH else text


def find_mismatches(
    fields: Iterable[TextField], expected: str, identify: LanguageIdentifier
) -> List[DetailCardItem]:
    """
    Fields confidently identified as another language than ``expected``.

    Undetermined verdicts never count as mismatches.
    """
    items: List[DetailCardItem] = []
    for field in fields:
        detected = identify(field.text)
        if detected is None or base_language(detected) == expected:
            continue
        items.append(
            DetailCardItem(
                element=field.name,
                text=excerpt(field.text),
                detected_lang=display_name(detected),
                fix=field.fix,
            )
        )
    return items


def verifiable(lang: str) -> bool:
    """Whether a base language can be checked by language identification."""
    return supported(lang) is not None
