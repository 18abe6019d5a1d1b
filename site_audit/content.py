"""
Content-quality checks (SEO and AI domains).

Independent heuristics over a parsed Document and, for freshness, the
response headers. Each check returns one Check; none of them fetches.
"""

import re
from collections import Counter
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, List, Mapping, Optional, Tuple

from .constants import (
    AUTHOR_SIGNALS,
    CDN_FINGERPRINTS,
    DATE_SIGNALS,
    DYNAMIC_SECTION_SELECTOR,
    LAZY_IMAGE_SELECTOR,
    PRIORITY_HEADINGS,
    PRODUCT_DESCRIPTION_SELECTOR,
    SEMANTIC_TAGS,
    SPA_ROOT_SELECTOR,
    STOP_WORDS,
    TagPriority,
)
from .markup import Document, element_text
from .models import Check, CheckStatus
from .rules import Criterion, evaluate, grade

FRESHNESS_DAYS = 90
MIN_WORDS = 200
OPTIMAL_WORDS = (500, 3000)

_WORD_CLEAN_RE = re.compile(r"[^\w-]|[\d_]")


def words(text: str, min_length: int = 2) -> List[str]:
    return [w for w in text.split(" ") if len(w) >= min_length]


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


# ─── Semantic HTML ────────────────────────────────────────────────────


SEMANTIC_CRITERIA = [
    Criterion(
        id=t.tag,
        label=f"<{t.tag}>",
        predicate=lambda f, tag=t.tag: f["counts"][tag] > 0,
        message=lambda f, t=t: (
            f"{t.role} — ×{f['counts'][t.tag]}"
            if f["counts"][t.tag]
            else f"{t.role} — MISSING ({t.priority.value})"
        ),
    )
    for t in SEMANTIC_TAGS
]


def check_semantic_tags(doc: Document) -> Check:
    """Coverage of structural HTML5 tags; >=5/7 success, >=3 warning."""
    counts = {t.tag: doc.count(t.tag) for t in SEMANTIC_TAGS}
    outcome = evaluate(SEMANTIC_CRITERIA, {"counts": counts})

    found = [t for t in SEMANTIC_TAGS if counts[t.tag] > 0]
    missing = [t for t in SEMANTIC_TAGS if counts[t.tag] == 0]
    div_count = doc.count("div")
    semantic_count = sum(counts.values())
    ratio = round(semantic_count / (semantic_count + div_count) * 100) if div_count else 0

    detail = (
        f"{len(found)}/{len(SEMANTIC_TAGS)} semantic tags — semantic/div ratio: {ratio}% "
        f"({semantic_count} semantic vs {div_count} div)"
    )
    if found:
        detail += "\n✓ Present: " + ", ".join(f"<{t.tag}> ×{counts[t.tag]}" for t in found)
    if missing:
        detail += "\n✗ Missing: " + ", ".join(f"<{t.tag}>" for t in missing)

    recommendation = None
    if missing:
        lines = [
            f"{len(missing)} semantic tag(s) missing — AI crawlers rely on them "
            "to understand the page structure"
        ]
        for priority in (TagPriority.CRITICAL, TagPriority.IMPORTANT):
            group = [t for t in missing if t.priority == priority]
            if group:
                lines.append(f"\n{PRIORITY_HEADINGS[priority]}")
                lines.extend(f"  • <{t.tag}> ({t.role}): {t.advice}" for t in group)
        minor = [t for t in missing if t.priority in (TagPriority.MEDIUM, TagPriority.LOW)]
        if minor:
            lines.append(f"\n{PRIORITY_HEADINGS[TagPriority.MEDIUM]}")
            lines.extend(f"  • <{t.tag}> ({t.role}): {t.advice}" for t in minor)
        if div_count > 20 and ratio < 15:
            lines.append(
                f"\nVery low semantic ratio ({ratio}%): {div_count} <div> for only "
                f"{semantic_count} semantic tags."
            )
        recommendation = "\n".join(lines)

    return Check(
        name="Semantic HTML",
        status=grade(outcome.score, success_at=5, warning_at=3),
        value=f"{len(found)}/{len(SEMANTIC_TAGS)} tags",
        detail=detail,
        recommendation=recommendation,
        detail_list=[r.line() for r in outcome.results],
    )


# ─── Script dependency ────────────────────────────────────────────────


def check_script_dependency(doc: Document, final_url: str = "") -> Check:
    """Static text available without JavaScript: >500 chars success, >200 warning."""
    body_text = doc.text()
    length = len(body_text)
    has_content = length > 200

    script_count = doc.count("script")
    external = [el.get("src", "") for el in doc.select("script[src]")]
    inline_count = script_count - len(external)
    lazy_images = doc.count(LAZY_IMAGE_SELECTOR)
    total_images = doc.count("img")
    spa_roots = doc.count(SPA_ROOT_SELECTOR)
    dynamic_sections = doc.count(DYNAMIC_SECTION_SELECTOR)
    noscript = doc.count("noscript")

    signals = []
    if lazy_images:
        signals.append(f"{lazy_images}/{total_images} lazy-loaded images")
    if spa_roots:
        signals.append("JS framework root detected (React/Vue/Angular)")
    if dynamic_sections:
        signals.append(f"{dynamic_sections} dynamic platform sections")

    if has_content:
        detail = (
            f"{length} characters available without JS — {script_count} scripts "
            f"({inline_count} inline, {len(external)} external)"
        )
    else:
        detail = f"Main content depends on JavaScript — {script_count} scripts detected"
    if signals:
        detail += "\nSignals: " + " | ".join(signals)

    recommendation = None
    if not has_content:
        lines = [
            "AI crawlers (GPTBot, ClaudeBot, Bytespider) do not render JavaScript: "
            "this content is invisible to them.",
        ]
        if spa_roots:
            lines.append("→ A single-page-app root was found: render the main content server-side")
        lines.append("→ Third-party widgets that inject reviews or FAQs in JS stay invisible to AI")
        if final_url:
            lines.append(f"→ Test with: curl {final_url} — AI crawlers only see what curl returns")
        recommendation = "\n".join(lines)
    elif length <= 500:
        recommendation = (
            f"Little static HTML text ({length} chars): AI crawlers will only index that.\n"
            "→ Keep product descriptions and key copy in the HTML, not loaded by JS\n"
            "→ Watch for JS-only tabs, accordions and review widgets"
        )

    detail_list = [
        f"Static HTML content: {length} characters",
        f"Scripts: {script_count} ({inline_count} inline, {len(external)} external)",
    ]
    if lazy_images:
        detail_list.append(f"Lazy-loaded images: {lazy_images}/{total_images}")
    if spa_roots:
        detail_list.append("JS framework (SPA) detected — content may be invisible to AI")
    if dynamic_sections:
        detail_list.append(f"{dynamic_sections} dynamic platform sections")
    if noscript:
        detail_list.append(f"{noscript} <noscript> tag(s) found")
    detail_list.extend(f"  → {_tail(src)}" for src in external[:8])

    if length > 500:
        status = CheckStatus.SUCCESS
    elif has_content:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Content without JavaScript",
        status=status,
        value=f"{length} chars" if has_content else "Depends on JS",
        detail=detail,
        recommendation=recommendation,
        detail_list=detail_list,
    )


def _tail(src: str) -> str:
    return "..." + src[-70:] if len(src) > 80 else src


# ─── Heading & content structure ──────────────────────────────────────


HEADING_CRITERIA = [
    Criterion(
        "unique_h1", "Unique H1",
        lambda f: f["h1"] == 1,
        message=lambda f: (
            f"{f['h1']} H1 found (only 1 recommended)" if f["h1"] > 1
            else f'"{f["h1_texts"][0][:60]}"' if f["h1_texts"]
            else "No H1"
        ),
    ),
    Criterion(
        "h2_subheadings", "H2 subheadings",
        lambda f: f["h2"] >= 2,
        message=lambda f: (
            f"{f['h2']} H2: " + ", ".join(f'"{t[:40]}"' for t in f["h2_texts"][:3])
            + ("..." if f["h2"] > 3 else "")
            if f["h2"] else "No H2 — AI crawlers split content by H2"
        ),
    ),
    Criterion(
        "hierarchy", "H1→H2→H3 hierarchy",
        lambda f: f["h1"] == 1 and f["h2"] > 0,
        message=lambda f: f"H1:{f['h1']} → H2:{f['h2']} → H3:{f['h3']}",
    ),
    Criterion(
        "paragraphs", "Paragraphs (>5)",
        lambda f: f["paragraphs"] > 5,
        message=lambda f: f"{f['paragraphs']} paragraphs, average length {f['avg_p']} chars",
    ),
    Criterion(
        "balanced_paragraphs", "Balanced paragraphs",
        lambda f: f["short_p"] < f["paragraphs"] * 0.3 and f["long_p"] < f["paragraphs"] * 0.2,
        message=lambda f: f"{f['short_p']} too short (<30 chars) | {f['long_p']} too long (>500 chars)",
    ),
    Criterion(
        "lists", "Lists",
        lambda f: f["lists"] > 0,
        message=lambda f: f"{f['lists']} list(s)" if f["lists"] else "No list — useful for steps and features",
    ),
    Criterion(
        "image_alt", "Images with alt",
        lambda f: f["images"] > 0 and f["images_with_alt"] == f["images"],
        message=lambda f: (
            f"{f['images_with_alt']}/{f['images']} images with alt" if f["images"] else "No images"
        ),
    ),
]


def heading_facts(doc: Document) -> Dict[str, object]:
    p_texts = doc.texts("p")
    images = doc.select("img")
    return {
        "h1": doc.count("h1"),
        "h1_texts": doc.texts("h1"),
        "h2": doc.count("h2"),
        "h2_texts": doc.texts("h2"),
        "h3": doc.count("h3"),
        "paragraphs": doc.count("p"),
        "avg_p": round(sum(len(t) for t in p_texts) / len(p_texts)) if p_texts else 0,
        "short_p": sum(1 for t in p_texts if len(t) < 30),
        "long_p": sum(1 for t in p_texts if len(t) > 500),
        "lists": doc.count("ul, ol"),
        "images": len(images),
        "images_with_alt": sum(1 for img in images if (img.get("alt") or "").strip()),
    }


def check_heading_structure(doc: Document) -> Check:
    """Seven structure criteria; >=5 success, >=3 warning."""
    facts = heading_facts(doc)
    outcome = evaluate(HEADING_CRITERIA, facts)
    passed = len(outcome.passed)
    total = len(outcome.results)

    recommendation = None
    if outcome.failed:
        lines = [f"{len(outcome.failed)} point(s) to improve for AI readability:"]
        lines.extend(f"\n  ✗ {r.criterion.label}: {r.detail}" for r in outcome.failed)
        if facts["h1"] > 1:
            lines.append(
                "\nSeveral H1 found — crawlers cannot tell which one is the main title. "
                "Keep a single H1 per page."
            )
        if facts["h2"] < 2:
            lines.append("\nAdd H2 subheadings: LLMs extract content section by section.")
        if facts["avg_p"] > 400:
            lines.append(
                f"\nParagraphs are long (avg. {facts['avg_p']} chars): split them into shorter blocks."
            )
        if facts["lists"] == 0:
            lines.append("\nAdd bullet lists for features, steps and benefits.")
        recommendation = "\n".join(lines)

    return Check(
        name="Clear content structure",
        status=grade(outcome.score, success_at=5, warning_at=3),
        value=f"{passed}/{total} criteria",
        detail=f"{passed}/{total} criteria met",
        recommendation=recommendation,
        detail_list=[r.line() for r in outcome.results],
    )


# ─── FAQ schema ───────────────────────────────────────────────────────


def _types(node: Mapping) -> List[str]:
    value = node.get("@type")
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)] if value else []


def check_faq_schema(doc: Document) -> Check:
    """FAQPage JSON-LD at top level or inside @graph."""
    schema_types: List[str] = []
    questions: List[str] = []
    has_faq = False

    for node in doc.json_ld_nodes():
        types = _types(node)
        schema_types.extend(types)
        if "FAQPage" not in types:
            continue
        has_faq = True
        entities = node.get("mainEntity") or []
        if isinstance(entities, dict):
            entities = [entities]
        for entity in entities[:10]:
            if isinstance(entity, dict):
                questions.append(f"Q: {entity.get('name', '')}")

    detail_list = []
    if schema_types:
        detail_list.append("JSON-LD schemas found: " + ", ".join(dict.fromkeys(schema_types)))
    else:
        detail_list.append("✗ No JSON-LD schema on the page")
    if has_faq and questions:
        detail_list.append(f"✓ FAQPage with {len(questions)} question(s):")
        detail_list.extend(questions)
    elif not has_faq:
        detail_list.append("✗ No FAQPage schema — AI answer engines extract FAQs first")

    return Check(
        name="Structured FAQ",
        status=CheckStatus.SUCCESS if has_faq else CheckStatus.WARNING,
        value="Present" if has_faq else "Absent",
        detail=(
            f"FAQPage schema detected ({len(questions)} questions)" if has_faq
            else "No structured FAQ (strongly recommended for AI)"
        ),
        recommendation="Add a FAQ with FAQPage schema — AI assistants quote FAQs often",
        detail_list=detail_list,
    )


# ─── Freshness ────────────────────────────────────────────────────────


def detect_cdn(headers: Mapping[str, str]) -> Optional[str]:
    for header, needle, name in CDN_FINGERPRINTS:
        value = headers.get(header, "")
        if value and (not needle or needle in value.lower()):
            return name
    return None


def _parse_http_date(value: str) -> Optional[datetime]:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def check_freshness(headers: Mapping[str, str], now: Optional[datetime] = None) -> Check:
    """Last-Modified within 90 days is success; stale or absent is a warning."""
    now = now or datetime.now(timezone.utc)
    last_modified = headers.get("last-modified")
    modified = _parse_http_date(last_modified) if last_modified else None
    cdn = detect_cdn(headers)

    recommendation = None
    if modified is not None:
        days_ago = (now - modified).days
        fresh = modified > now - timedelta(days=FRESHNESS_DAYS)
        detail = f"Last modified: {last_modified} ({days_ago} day{'s' if days_ago > 1 else ''} ago)"
        if not fresh:
            recommendation = (
                f"Content not updated for {days_ago} days. AI crawlers favour fresh content: "
                "update product descriptions and pages regularly."
            )
        status = CheckStatus.SUCCESS if fresh else CheckStatus.WARNING
        value = modified.strftime("%Y-%m-%d")
    else:
        status, value = CheckStatus.WARNING, "Absent" if not last_modified else "Unreadable"
        detail = "Last-Modified header " + ("absent" if not last_modified else f"unreadable ({last_modified})")
        if cdn:
            detail += f" — CDN detected: {cdn}"
        detail += ". AI crawlers use this header to prioritise recent content."
        if cdn:
            recommendation = (
                f"Your site goes through {cdn}, which may strip Last-Modified.\n"
                "→ Check the CDN configuration forwards origin headers"
            )
        else:
            recommendation = (
                "Possible causes:\n"
                "→ A cache/optimisation layer removes the header\n"
                "→ An intermediate proxy filters headers\n"
                "→ Dynamic page without a fixed modification date"
            )

    detail_list = [
        f"Last-Modified: {last_modified or 'absent'}",
        f"Cache-Control: {headers.get('cache-control') or '(not set)'}",
    ]
    if headers.get("age"):
        detail_list.append(f"Age: {headers['age']}s (time in cache)")
    if cdn:
        detail_list.append(f"CDN detected: {cdn}")
    for header, label in (("server", "Server"), ("etag", "ETag"), ("expires", "Expires")):
        if headers.get(header):
            detail_list.append(f"{label}: {headers[header]}")

    return Check(
        name="Content freshness (Last-Modified)",
        status=status,
        value=value,
        detail=detail,
        recommendation=recommendation,
        detail_list=detail_list,
    )


# ─── Content length ───────────────────────────────────────────────────


def _zone_words(doc: Document, css: str) -> int:
    return len(words(doc.text(css)))


def check_content_length(doc: Document) -> Check:
    """Word count zone: <200 error, [500, 3000] success, otherwise warning."""
    word_count = len(words(doc.text()))
    main_words = _zone_words(doc, "main")
    header_words = _zone_words(doc, "header")
    footer_words = _zone_words(doc, "footer")
    useful_words = main_words or (word_count - header_words - footer_words)
    noise_ratio = round((header_words + footer_words) / word_count * 100) if word_count else 0
    low, high = OPTIMAL_WORDS

    detail = f"{word_count} words in total"
    if main_words or header_words:
        detail += (
            f" — useful content: ~{useful_words} words | navigation/footer: "
            f"~{header_words + footer_words} words ({noise_ratio}% noise)"
        )
    if low <= word_count <= high:
        detail += f"\n✓ Optimal range for AI ({low}-{high} words)"

    recommendation = None
    if word_count < low:
        recommendation = (
            f"{word_count} words — about {low - word_count} words short of the {low}-word "
            "indexing threshold.\n"
            "  • Product descriptions: materials, dimensions, care, audience\n"
            "  • About section: history, expertise, values\n"
            "  • Visible FAQ: 3-5 questions with detailed answers"
        )
    elif word_count > high:
        recommendation = (
            f"{word_count} words — long content risks truncation by LLMs.\n"
            "  • Structure with clear H2s\n"
            f"  • Put the essentials in the first {low} words\n"
            "  • Consider splitting into several focused pages"
        )
    elif noise_ratio > 40:
        recommendation = (
            f"{noise_ratio}% of the text is navigation/footer.\n"
            "→ Use <main>, <header>, <footer> so crawlers separate content from noise"
        )

    detail_list = [f"Total: {word_count} words (ideal range: {low}-{high})"]
    if main_words:
        detail_list.append(f"<main> content: {main_words} words")
    if header_words:
        detail_list.append(f"<header> navigation: {header_words} words")
    if footer_words:
        detail_list.append(f"<footer>: {footer_words} words")
    if noise_ratio:
        detail_list.append(f"Noise ratio (nav+footer): {noise_ratio}%")
    product_desc = doc.text(PRODUCT_DESCRIPTION_SELECTOR)
    if product_desc:
        detail_list.append(
            f'Product description: "{_truncate(product_desc, 120)}" ({len(product_desc.split(" "))} words)'
        )
    meta_desc = doc.attr('meta[name="description"]', "content") or ""
    if meta_desc:
        detail_list.append(f'Meta description: "{_truncate(meta_desc, 120)}" ({len(meta_desc)} chars)')
    else:
        detail_list.append("Meta description: absent")

    if low <= word_count <= high:
        status = CheckStatus.SUCCESS
    elif word_count >= MIN_WORDS:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Optimal length for AI",
        status=status,
        value=f"{word_count} words",
        detail=detail,
        recommendation=recommendation,
        detail_list=detail_list,
    )


# ─── Vocabulary diversity ─────────────────────────────────────────────


def repeated_words(tokens: List[str], minimum: int = 4, limit: int = 10) -> List[Tuple[str, int]]:
    counter: Counter = Counter()
    for token in tokens:
        cleaned = _WORD_CLEAN_RE.sub("", token.lower())
        if len(cleaned) > 3 and cleaned not in STOP_WORDS:
            counter[cleaned] += 1
    return [(w, c) for w, c in counter.most_common() if c >= minimum][:limit]


def _average_length(texts: List[str]) -> int:
    return round(sum(len(t) for t in texts) / len(texts)) if texts else 0


def check_vocabulary(doc: Document) -> Check:
    """Unique/total ratio of words longer than 3 chars; >0.4 success, >0.25 warning."""
    tokens = [w for w in doc.text().split(" ") if len(w) > 3]
    unique = {w.lower() for w in tokens}
    ratio = len(unique) / len(tokens) if tokens else 0.0
    percent = round(ratio * 100)
    top = repeated_words(tokens)

    detail = f"{len(unique)} unique words out of {len(tokens)} (diversity {percent}%)"
    if top:
        detail += "\nMost repeated: " + ", ".join(f'"{w}" (×{c})' for w, c in top[:5])

    recommendation = None
    if ratio <= 0.4:
        tips = [f"Current score: {percent}% — target: >40%"]
        if top:
            tips.append("\nOver-used words to rephrase:")
            tips.extend(f'  • "{w}" appears {c} times — use synonyms' for w, c in top[:5])
        tips.append("\nPriority actions:")
        meta_desc = doc.attr('meta[name="description"]', "content") or ""
        if len(meta_desc) < 120:
            tips.append(f"  • Meta description ({len(meta_desc)} chars): enrich to 150-160 characters")
        product_texts = [element_text(el) for el in doc.select(
            '[class*="product"] p, [class*="product"] .description, .product-description, [class*="ProductDescription"]'
        )]
        if product_texts and _average_length(product_texts) < 200:
            tips.append(
                f"  • Product descriptions: {len(product_texts)} block(s), average "
                f"{_average_length(product_texts)} chars — enrich to 300+ chars"
            )
        main_texts = [element_text(el) for el in doc.select("main p, article p, .page-content p, [role=\"main\"] p")]
        if main_texts and _average_length(main_texts) < 100:
            tips.append("  • Main paragraphs are short — add context, benefits and technical details")
        tips.append("\nEach paragraph should stand on its own: AI crawlers extract them one by one.")
        recommendation = "\n".join(tips)

    if ratio > 0.4:
        status = CheckStatus.SUCCESS
    elif ratio > 0.25:
        status = CheckStatus.WARNING
    else:
        status = CheckStatus.ERROR

    return Check(
        name="Vocabulary richness",
        status=status,
        value=f"{percent}% diversity",
        detail=detail,
        recommendation=recommendation,
        detail_list=[f'"{w}" — {c} occurrences' for w, c in top],
    )


# ─── Citability signals ───────────────────────────────────────────────


def _signal_value(doc: Document, css: str, limit: int) -> Optional[str]:
    el = doc.first(css)
    if el is None:
        return None
    return el.get("content") or el.get("datetime") or element_text(el)[:limit] or "found"


def _json_ld_author(doc: Document) -> Optional[str]:
    for node in doc.json_ld_nodes():
        author = node.get("author")
        if not author:
            continue
        if isinstance(author, dict):
            return str(author.get("name") or "found")[:60]
        if isinstance(author, str):
            return author[:60]
        return "found"
    return None


def _signal_check(name: str, found: List[Tuple[str, Optional[str]]], advice: str, hint: List[str]) -> Check:
    hits = [label for label, value in found if value]
    detail_list = [
        f"✓ {label}: {value}" if value else f"✗ {label}: not found" for label, value in found
    ]
    if not hits:
        detail_list.extend(hint)
    return Check(
        name=name,
        status=CheckStatus.SUCCESS if hits else CheckStatus.WARNING,
        value="Present" if hits else "Absent",
        detail=f"Detected via: {', '.join(hits)}" if hits else "No signal found",
        recommendation=advice,
        detail_list=detail_list,
    )


def check_author(doc: Document) -> Check:
    found = [(label, _signal_value(doc, css, 60)) for css, label in AUTHOR_SIGNALS]
    found.append(("Schema.org Person/author", _json_ld_author(doc)))
    return _signal_check(
        "Author information (E-E-A-T)",
        found,
        "Add author information (meta author, schema Person) for E-E-A-T credibility",
        ["", "E-E-A-T (Experience, Expertise, Authority, Trust) is a key criterion"],
    )


def check_publication_date(doc: Document) -> Check:
    found = [(label, _signal_value(doc, css, 40)) for css, label in DATE_SIGNALS]
    return _signal_check(
        "Publication date",
        found,
        "Add a visible publication date and date metadata",
        ["", "Without a date, content may be treated as outdated"],
    )
