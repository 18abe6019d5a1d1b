"""
Per-page SEO checks.

Operates on a parsed Document plus the primary response headers. Every
function returns one Check (or a few, for the image group); none of them
touches the network. Fetch-derived checks (robots.txt, sitemap.xml,
redirect chain, broken links) are built here from results the SEO
orchestrator has already gathered.
"""

import re
from collections import Counter
from typing import List, Mapping, Optional, Sequence
from urllib.parse import urljoin, urlparse

from .constants import KEYWORD_STOP_WORDS
from .content import MIN_WORDS, words
from .fetcher import FetchResult, LinkProbe
from .markup import Document
from .models import Check, CheckStatus

HSTS_MIN_AGE = 31536000
MIN_SEO_WORDS = 300

_MODERN_FORMAT_SRC_RE = re.compile(r"\.(webp|avif)(\?|$)", re.IGNORECASE)
_MODERN_FORMAT_SRCSET_RE = re.compile(r"\.(webp|avif)", re.IGNORECASE)
_HSTS_MAX_AGE_RE = re.compile(r"max-age=(\d+)")
_KEYWORD_CLEAN_RE = re.compile(r"[^a-zàâäéèêëïîôùûüç]")
_SKIPPED_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")


# ─── Meta ─────────────────────────────────────────────────────────────


def check_title(doc: Document) -> Check:
    """Title presence and length (target: 30-65 chars)."""
    title = doc.text("title")
    if not title:
        return Check(
            name="Page title",
            status=CheckStatus.ERROR,
            value="Missing",
            detail="No title found",
            recommendation="Add a descriptive <title> tag",
        )

    length = len(title)
    if length > 65:
        status, note = CheckStatus.WARNING, "Shorten the title to 60 characters at most"
    elif length < 30:
        status, note = CheckStatus.WARNING, "The title is too short, aim for 50-60 characters"
    else:
        status, note = CheckStatus.SUCCESS, None

    return Check(
        name="Page title",
        status=status,
        value=title,
        detail=f"{length} characters (recommended: 50-60)",
        recommendation=note,
    )


def check_meta_description(doc: Document) -> Check:
    """Meta description presence and length (target: 120-165 chars)."""
    description = doc.attr('meta[name="description"]', "content")
    if not description:
        return Check(
            name="Meta description",
            status=CheckStatus.ERROR,
            value="Missing",
            detail="No meta description found",
            recommendation="Add a meta description between 150 and 160 characters",
        )

    length = len(description)
    if length > 165:
        status, note = CheckStatus.WARNING, "The description is too long, keep it under 160 characters"
    elif length < 120:
        status, note = CheckStatus.WARNING, "The description is too short, aim for 150-160 characters"
    else:
        status, note = CheckStatus.SUCCESS, None

    return Check(
        name="Meta description",
        status=status,
        value=f"{length} chars",
        detail=f"{length} characters (recommended: 150-160)",
        recommendation=note,
    )


def check_canonical(doc: Document) -> Check:
    canonical = doc.attr('link[rel="canonical"]', "href")
    return Check(
        name="Canonical URL",
        status=CheckStatus.SUCCESS if canonical else CheckStatus.WARNING,
        value=canonical or "Missing",
        detail=f"Canonical: {canonical}" if canonical else "No canonical tag",
        recommendation='Add <link rel="canonical"> to avoid duplicate content',
    )


def check_open_graph(doc: Document) -> Check:
    """The three essential Open Graph tags."""
    tags = ("og:title", "og:description", "og:image")
    present = {tag: bool(doc.attr(f'meta[property="{tag}"]', "content")) for tag in tags}
    count = sum(present.values())

    if count == len(tags):
        status = CheckStatus.SUCCESS
    elif count > 0:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Open Graph",
        status=status,
        value=f"{count}/{len(tags)} tags",
        detail=" | ".join(f"{tag}: {'OK' if ok else 'Missing'}" for tag, ok in present.items()),
        recommendation="Complete the Open Graph tags (og:title, og:description, og:image)",
    )


def check_twitter_card(doc: Document) -> Check:
    card = doc.attr('meta[name="twitter:card"]', "content")
    title = doc.attr('meta[name="twitter:title"]', "content")

    if card and title:
        status = CheckStatus.SUCCESS
    elif card or title:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Twitter Card",
        status=status,
        value=f"Type: {card}" if card else "Missing",
        detail=f"twitter:card: {card or 'Missing'} | twitter:title: {'OK' if title else 'Missing'}",
        recommendation=(
            "Add Twitter Card tags for better sharing on X/Twitter" if not card
            else "Add a twitter:title tag"
        ),
    )


def check_meta_keywords(doc: Document) -> Check:
    keywords = doc.attr('meta[name="keywords"]', "content")
    return Check(
        name="Meta keywords",
        status=CheckStatus.SUCCESS if keywords else CheckStatus.WARNING,
        value=f"{len(keywords.split(','))} keywords" if keywords else "Missing",
        detail=keywords or "No meta keywords (low SEO impact but still useful)",
        recommendation="Meta keywords carry little weight but can be added",
    )


# ─── Structure ────────────────────────────────────────────────────────


def check_h1(doc: Document) -> Check:
    h1s = doc.select("h1")
    count = len(h1s)
    if count == 1:
        status, detail, note = CheckStatus.SUCCESS, f'H1: "{doc.text("h1")}"', None
    elif count == 0:
        status, detail = CheckStatus.ERROR, "No H1 tag"
        note = "Add a single H1 describing the main content"
    else:
        status, detail = CheckStatus.WARNING, "Several H1 tags detected"
        note = "Keep a single H1 per page"

    return Check(
        name="H1 tag",
        status=status,
        value=f"{count} H1 found",
        detail=detail,
        recommendation=note,
    )


def heading_levels(doc: Document) -> List[int]:
    """Heading levels in document order."""
    return [int(el.tag[1]) for el in doc.select("h1, h2, h3, h4, h5, h6")]


def check_heading_hierarchy(doc: Document) -> Check:
    levels = heading_levels(doc)
    has_skip = any(b > a + 1 for a, b in zip(levels, levels[1:]))

    if not levels:
        status = CheckStatus.ERROR
    elif has_skip:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.SUCCESS

    return Check(
        name="Heading hierarchy",
        status=status,
        value=f"{len(levels)} headings found",
        detail=f"Levels: {' → '.join(map(str, levels))}" if levels else "No heading found",
        recommendation=(
            "Avoid skipping heading levels (e.g. H2 → H4 without H3)" if has_skip
            else "Add headings (H1, H2, H3) to structure the page"
        ),
    )


def _missing_alt_label(img) -> str:
    """Readable label for an image without alt: src, size and parent hint."""
    src = img.get("src") or img.get("data-src") or ""
    label = "..." + src[-100:] if len(src) > 120 else src
    width, height = img.get("width") or "", img.get("height") or ""
    if width or height:
        label += f" ({width}x{height})"
    parent = img.getparent()
    if parent is not None:
        parent_class = (parent.get("class") or "").split()
        if parent_class:
            label += f" [{parent.tag}.{parent_class[0]}]"
    return label


def check_image_alt(doc: Document) -> Check:
    """Share of images with a non-empty alt (1 success, >=0.5 warning)."""
    images = doc.select("img")
    missing = [img for img in images if not (img.get("alt") or "").strip()]
    with_alt = len(images) - len(missing)
    ratio = with_alt / len(images) if images else 1.0

    if not images or ratio == 1:
        status = CheckStatus.SUCCESS
    elif ratio >= 0.5:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Image alt attributes",
        status=status,
        value=f"{with_alt}/{len(images)} images with alt",
        detail=(
            f"{round(ratio * 100)}% of images have an alt attribute — {len(missing)} image(s) without alt"
            if images else "No images on the page"
        ),
        recommendation="Add descriptive alt attributes to every image for SEO and accessibility",
        detail_list=[_missing_alt_label(img) for img in missing],
    )


def check_text_ratio(doc: Document) -> Check:
    text_length = len(doc.text())
    html_length = doc.html_length
    ratio = text_length / html_length * 100 if html_length else 0.0

    if ratio > 25:
        status = CheckStatus.SUCCESS
    elif ratio > 10:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Text/HTML ratio",
        status=status,
        value=f"{ratio:.1f}%",
        detail=f"{text_length} chars of text / {html_length} chars of HTML",
        recommendation="The text/HTML ratio is low. Add more textual content.",
    )


def page_links(doc: Document, page_url: str) -> List[str]:
    """Distinct absolute URLs of navigable anchors, in document order."""
    links: List[str] = []
    for a in doc.select("a[href]"):
        href = (a.get("href") or "").strip()
        if not href or href.startswith(_SKIPPED_HREF_PREFIXES):
            continue
        try:
            absolute = urljoin(page_url, href)
        except ValueError:
            continue
        if absolute not in links:
            links.append(absolute)
    return links


def check_link_mix(doc: Document, page_url: str) -> Check:
    """Internal vs external anchors, by host of the audited page."""
    page_host = urlparse(page_url).netloc.lower()
    internal = external = 0
    for a in doc.select("a[href]"):
        href = (a.get("href") or "").strip()
        if not href or href.startswith(("#", "javascript:")):
            continue
        try:
            host = urlparse(urljoin(page_url, href)).netloc.lower()
        except ValueError:
            continue
        if host and host != page_host:
            external += 1
        else:
            internal += 1

    return Check(
        name="Internal and external links",
        status=CheckStatus.SUCCESS if internal else CheckStatus.WARNING,
        value=f"{internal} internal / {external} external",
        detail=f"Internal links: {internal} | External links: {external}",
        recommendation="Add internal links to strengthen the site structure",
    )


def _ratio_status(count: int, total: int, success_at: float) -> CheckStatus:
    if count >= total * success_at:
        return CheckStatus.SUCCESS
    if count > 0:
        return CheckStatus.WARNING
    return CheckStatus.ERROR


def check_image_optimisation(doc: Document) -> List[Check]:
    """Modern formats, lazy loading and explicit dimensions; empty when no image has a src."""
    images = [img for img in doc.select("img[src]") if img.get("src")]
    total = len(images)
    if not total:
        return []

    modern = sum(
        1 for img in images
        if _MODERN_FORMAT_SRC_RE.search(img.get("src", ""))
        or _MODERN_FORMAT_SRCSET_RE.search(img.get("srcset", ""))
    )
    lazy = sum(1 for img in images if img.get("loading") == "lazy")
    sized = sum(1 for img in images if img.get("width") and img.get("height"))

    return [
        Check(
            name="Modern image formats",
            status=_ratio_status(modern, total, 1.0),
            value=f"{modern}/{total}",
            detail=f"{modern} image(s) in WebP/AVIF out of {total}",
            recommendation="Convert images to WebP or AVIF to cut their weight by 30-50%",
        ),
        Check(
            name="Image lazy loading",
            status=_ratio_status(lazy, total, 0.5),
            value=f"{lazy}/{total}",
            detail=f'{lazy} image(s) with loading="lazy" out of {total}',
            recommendation='Add loading="lazy" to off-screen images to speed up rendering',
        ),
        Check(
            name="Image dimensions",
            status=_ratio_status(sized, total, 1.0),
            value=f"{sized}/{total}",
            detail=f"{sized} image(s) with explicit width/height out of {total}",
            recommendation="Set width and height on images to avoid layout shifts (CLS)",
        ),
    ]


# ─── Technique ────────────────────────────────────────────────────────


def check_https(page_url: str) -> Check:
    scheme = urlparse(page_url).scheme
    secure = scheme == "https"
    return Check(
        name="HTTPS",
        status=CheckStatus.SUCCESS if secure else CheckStatus.ERROR,
        value="Active" if secure else "Not secure",
        detail=f"Protocol: {scheme}:",
        recommendation="Move to HTTPS for security and SEO",
    )


def check_viewport(doc: Document) -> Check:
    viewport = doc.attr('meta[name="viewport"]', "content")
    return Check(
        name="Viewport tag",
        status=CheckStatus.SUCCESS if viewport else CheckStatus.ERROR,
        value="Present" if viewport else "Missing",
        detail=viewport or "No viewport tag",
        recommendation='Add <meta name="viewport" content="width=device-width, initial-scale=1">',
    )


def check_resource(name: str, result: FetchResult, advice: str) -> Check:
    """Presence of an auxiliary file such as robots.txt or sitemap.xml."""
    if result.ok:
        detail = f"Found ({len(result.text)} chars)" if result.text else "Found"
    else:
        detail = result.reason
    return Check(
        name=name,
        status=CheckStatus.SUCCESS if result.ok else CheckStatus.ERROR,
        value="Present" if result.ok else "Missing",
        detail=detail,
        recommendation=advice,
    )


def check_page_size(doc: Document) -> Check:
    size = len(doc.raw.encode("utf-8"))
    size_kb = f"{size / 1024:.1f}"

    if size < 100000:
        status = CheckStatus.SUCCESS
    elif size < 500000:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Page size",
        status=status,
        value=f"{size_kb} KB",
        detail=f"HTML size: {size_kb} KB",
        recommendation="The page is heavy. Trim the HTML and inline resources.",
    )


def check_compression(headers: Mapping[str, str]) -> Check:
    encoding = headers.get("content-encoding")
    return Check(
        name="Compression",
        status=CheckStatus.SUCCESS if encoding else CheckStatus.WARNING,
        value=encoding or "Not detected",
        detail=f"Compression: {encoding}" if encoding else "No compression detected",
        recommendation="Enable gzip or brotli compression on the server",
    )


def check_redirect_chain(chain: Sequence[str]) -> Check:
    hops = len(chain)
    if hops == 0:
        status = CheckStatus.SUCCESS
    elif hops == 1:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Redirect chain",
        status=status,
        value=f"{hops} hop(s)" if hops else "None",
        detail=f"{hops} redirect(s) detected" if hops else "The URL answers directly without redirects",
        recommendation=(
            f"Shorten the redirect chain ({hops} hops). Each redirect slows loading "
            "and dilutes link equity."
            if hops > 1 else "Link to the final URL directly to avoid the redirect"
        ),
        detail_list=list(chain),
    )


def check_mixed_content(doc: Document, page_url: str) -> Optional[Check]:
    """HTTP resources on an HTTPS page; None when the page is not HTTPS."""
    if urlparse(page_url).scheme != "https":
        return None

    mixed: List[str] = []
    for el in doc.select("[src], link[href], [action]"):
        value = el.get("src") or el.get("href") or el.get("action") or ""
        if value.startswith("http://") and "localhost" not in value and value not in mixed:
            mixed.append(value)

    return Check(
        name="Mixed content (HTTP/HTTPS)",
        status=CheckStatus.ERROR if mixed else CheckStatus.SUCCESS,
        value=f"{len(mixed)} resource(s)" if mixed else "None",
        detail=(
            f"{len(mixed)} resource(s) loaded over insecure HTTP" if mixed
            else "Every resource is loaded over HTTPS"
        ),
        recommendation="Replace every http:// URL with https:// to avoid security warnings",
        detail_list=mixed,
    )


# ─── Content ──────────────────────────────────────────────────────────


def check_word_count(doc: Document) -> Check:
    """Body words longer than one char: >=300 success, >=200 warning."""
    count = len(words(doc.text()))
    if count >= MIN_SEO_WORDS:
        status = CheckStatus.SUCCESS
    elif count >= MIN_WORDS:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Word count",
        status=status,
        value=f"{count} words",
        detail=f"Content: {count} words (recommended: >{MIN_SEO_WORDS})",
        recommendation=f"Add more text content (at least {MIN_SEO_WORDS} words recommended)",
    )


def top_keywords(doc: Document, limit: int = 10) -> List[str]:
    counter: Counter = Counter()
    for word in words(doc.text()):
        cleaned = _KEYWORD_CLEAN_RE.sub("", word.lower())
        if len(cleaned) > 2 and cleaned not in KEYWORD_STOP_WORDS:
            counter[cleaned] += 1
    return [f"{word} ({count})" for word, count in counter.most_common(limit)]


def check_keywords(doc: Document) -> Check:
    keywords = top_keywords(doc)
    return Check(
        name="Main keywords",
        status=CheckStatus.SUCCESS if keywords else CheckStatus.WARNING,
        value="Top 10 words",
        detail=", ".join(keywords) or "Not enough content",
        recommendation="Add text content so the page has identifiable keywords",
    )


def check_content_links(doc: Document) -> Check:
    count = doc.count("article a, main a, .content a, #content a") or doc.count("body a")
    if count > 3:
        status = CheckStatus.SUCCESS
    elif count > 0:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Links in content",
        status=status,
        value=f"{count} links",
        detail=f"{count} links found in the content",
        recommendation="Add internal links inside the content to strengthen the site structure",
    )


# ─── Structured data ──────────────────────────────────────────────────


def _schema_label(block) -> str:
    if not isinstance(block, dict):
        return "Unknown"
    schema_type = block.get("@type")
    if schema_type:
        return ", ".join(schema_type) if isinstance(schema_type, list) else str(schema_type)
    graph = block.get("@graph")
    if isinstance(graph, list):
        return ", ".join(str(g.get("@type")) for g in graph if isinstance(g, dict))
    return "Unknown"


def check_json_ld(doc: Document) -> Check:
    """JSON-LD presence; malformed blocks still count but are labelled."""
    scripts = doc.count('script[type="application/ld+json"]')
    blocks = doc.json_ld()
    labels = [_schema_label(block) for block in blocks]
    labels.extend(["Invalid JSON"] * (scripts - len(blocks)))

    return Check(
        name="JSON-LD / Schema.org",
        status=CheckStatus.SUCCESS if scripts else CheckStatus.ERROR,
        value=f"{scripts} schema(s)" if scripts else "Missing",
        detail=f"Types: {', '.join(labels)}" if labels else "No JSON-LD structured data",
        recommendation="Add JSON-LD structured data (Product, Organization, BreadcrumbList...)",
    )


def check_microdata(doc: Document) -> Check:
    count = doc.count("[itemscope]")
    return Check(
        name="Microdata",
        status=CheckStatus.SUCCESS if count else CheckStatus.WARNING,
        value=f"{count} element(s)" if count else "Missing",
        detail=f"{count} elements with itemscope" if count else "No microdata (JSON-LD is preferred)",
    )


# ─── Security headers ─────────────────────────────────────────────────


def check_hsts(headers: Mapping[str, str]) -> Check:
    hsts = headers.get("strict-transport-security")
    match = _HSTS_MAX_AGE_RE.search(hsts or "")
    strong = bool(match) and int(match.group(1)) >= HSTS_MIN_AGE

    if strong:
        status, value = CheckStatus.SUCCESS, "Active"
    elif hsts:
        status, value = CheckStatus.WARNING, "Weak"
    else:
        status, value = CheckStatus.ERROR, "Missing"

    return Check(
        name="Strict-Transport-Security (HSTS)",
        status=status,
        value=value,
        detail=hsts or "HSTS header missing",
        recommendation="Add Strict-Transport-Security: max-age=31536000; includeSubDomains; preload",
    )


def check_csp(headers: Mapping[str, str]) -> Check:
    csp = headers.get("content-security-policy")
    unsafe = bool(csp) and ("unsafe-inline" in csp or "unsafe-eval" in csp)

    if not csp:
        status, value = CheckStatus.ERROR, "Missing"
        detail = "No CSP: exposed to XSS injection"
        note = "Add a Content-Security-Policy to guard against code injection"
    elif unsafe:
        status, value = CheckStatus.WARNING, "Partial"
        detail = "CSP defined (contains unsafe-inline or unsafe-eval)"
        note = "Remove unsafe-inline and unsafe-eval from the CSP"
    else:
        status, value, detail, note = CheckStatus.SUCCESS, "Active", "CSP defined", None

    return Check(
        name="Content-Security-Policy (CSP)",
        status=status,
        value=value,
        detail=detail,
        recommendation=note,
    )


def check_content_type_options(headers: Mapping[str, str]) -> Check:
    value = headers.get("x-content-type-options")
    ok = (value or "").strip().lower() == "nosniff"
    return Check(
        name="X-Content-Type-Options",
        status=CheckStatus.SUCCESS if ok else CheckStatus.ERROR,
        value=value or "Missing",
        detail="MIME sniffing protection active" if ok else "No MIME sniffing protection",
        recommendation="Add X-Content-Type-Options: nosniff",
    )


def check_frame_options(headers: Mapping[str, str]) -> Check:
    value = headers.get("x-frame-options")
    ok = (value or "").strip().upper() in ("DENY", "SAMEORIGIN")
    return Check(
        name="X-Frame-Options",
        status=CheckStatus.SUCCESS if ok else CheckStatus.ERROR,
        value=value or "Missing",
        detail=f"Clickjacking protection active ({value})" if ok else "No clickjacking protection",
        recommendation="Add X-Frame-Options: SAMEORIGIN",
    )


def check_referrer_policy(headers: Mapping[str, str]) -> Check:
    value = headers.get("referrer-policy")
    return Check(
        name="Referrer-Policy",
        status=CheckStatus.SUCCESS if value else CheckStatus.WARNING,
        value=value or "Missing",
        detail=f"Referrer policy: {value}" if value else "No referrer policy defined",
        recommendation="Add Referrer-Policy: strict-origin-when-cross-origin",
    )


def check_permissions_policy(headers: Mapping[str, str]) -> Check:
    value = headers.get("permissions-policy")
    return Check(
        name="Permissions-Policy",
        status=CheckStatus.SUCCESS if value else CheckStatus.WARNING,
        value="Defined" if value else "Missing",
        detail="Permissions-Policy defined" if value else "No restriction on browser features",
        recommendation="Add a Permissions-Policy to control camera, microphone and geolocation access",
    )


def check_powered_by(headers: Mapping[str, str]) -> Check:
    value = headers.get("x-powered-by")
    return Check(
        name="Server information leak",
        status=CheckStatus.WARNING if value else CheckStatus.SUCCESS,
        value=value or "None",
        detail=f"X-Powered-By: {value} reveals the stack" if value else "No X-Powered-By header exposed",
        recommendation="Remove the X-Powered-By header to hide the stack",
    )


SECURITY_CHECKS = [
    check_hsts,
    check_csp,
    check_content_type_options,
    check_frame_options,
    check_referrer_policy,
    check_permissions_policy,
    check_powered_by,
]


def security_checks(headers: Mapping[str, str]) -> List[Check]:
    return [check(headers) for check in SECURITY_CHECKS]


# ─── Links ────────────────────────────────────────────────────────────


def links_check(probes: Sequence[LinkProbe]) -> Check:
    """0 broken success, <=2 warning, more error; no links is a warning."""
    if not probes:
        return Check(
            name="Broken links",
            status=CheckStatus.WARNING,
            value="No links",
            detail="No link to check on the page",
        )

    broken = [probe.describe() for probe in probes if probe.broken]
    if not broken:
        status = CheckStatus.SUCCESS
    elif len(broken) <= 2:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Broken links",
        status=status,
        value=f"{len(broken)} broken" if broken else "None",
        detail=(
            f"{len(broken)} link(s) failing out of {len(probes)} checked" if broken
            else f"{len(probes)}/{len(probes)} links checked, all working"
        ),
        recommendation="Fix or remove broken links for users and SEO",
        detail_list=broken,
    )
