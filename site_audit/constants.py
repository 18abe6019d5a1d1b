"""
Fixed vocabularies shared by the content and SEO checks.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple


class TagPriority(str, Enum):
    CRITICAL = "critical"
    IMPORTANT = "important"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class SemanticTag:
    tag: str
    role: str
    priority: TagPriority
    advice: str


SEMANTIC_TAGS: List[SemanticTag] = [
    SemanticTag(
        "main", "Main content", TagPriority.CRITICAL,
        "Wrap the main content in <main>; AI crawlers use it to find what to index",
    ),
    SemanticTag(
        "header", "Page header", TagPriority.IMPORTANT,
        "Put logo and navigation inside <header> so crawlers can skip the repeated zone",
    ),
    SemanticTag(
        "footer", "Page footer", TagPriority.IMPORTANT,
        "Put legal links and contact details inside <footer>",
    ),
    SemanticTag(
        "nav", "Navigation", TagPriority.IMPORTANT,
        "Wrap menus in <nav> to separate navigation from content",
    ),
    SemanticTag(
        "article", "Self-contained content", TagPriority.MEDIUM,
        "Use <article> for products and blog posts: it marks independently quotable content",
    ),
    SemanticTag(
        "section", "Thematic section", TagPriority.MEDIUM,
        "Group content by topic in <section> elements, each with an H2",
    ),
    SemanticTag(
        "aside", "Secondary content", TagPriority.LOW,
        "Use <aside> for sidebars and recommendations",
    ),
]

# Stop words dropped before ranking repeated words (vocabulary check).
# Only words longer than three characters are counted there.
STOP_WORDS: FrozenSet[str] = frozenset({
    # fr
    "dans", "pour", "avec", "plus", "cette", "votre", "nous", "vous", "sont",
    "être", "avoir", "fait", "tout", "tous", "aussi", "mais", "comme", "même",
    "encore", "alors", "entre", "après", "sans",
    # en
    "from", "that", "this", "with", "your", "have", "will", "they", "their",
    "been", "were", "about", "which", "when", "what", "there", "each", "make",
    "like", "just", "over", "such", "some", "than", "them", "very", "only",
    "other", "into", "could",
})

# Stop words dropped before ranking top keywords (SEO content check).
KEYWORD_STOP_WORDS: FrozenSet[str] = frozenset({
    "le", "la", "les", "de", "du", "des", "un", "une", "et", "en", "au", "aux",
    "à", "ce", "ces", "que", "qui", "dans", "pour", "par", "sur", "est", "sont",
    "the", "a", "an", "and", "or", "in", "on", "at", "to", "for", "of", "is",
    "it", "this", "that", "with", "as", "was", "not", "but", "be", "has",
    "have", "had", "do", "does", "did", "will", "would", "could", "should",
    "may", "can",
})

# (response header, substring or "" for mere presence, CDN name)
CDN_FINGERPRINTS: List[Tuple[str, str, str]] = [
    ("cf-ray", "", "Cloudflare"),
    ("via", "cloudfront", "CloudFront"),
    ("server", "nginx", "Nginx (proxy)"),
]

SPA_ROOT_SELECTOR = '[id="app"], [id="root"], [data-react-root], [ng-app], [data-vue-app]'
DYNAMIC_SECTION_SELECTOR = "[data-section-type], [data-shopify]"
LAZY_IMAGE_SELECTOR = 'img[data-src], img[loading="lazy"]'

# Product/body description blocks on storefront themes.
DESCRIPTION_SELECTOR = '.product__description, .product-description, [class*="product"] .rte, .rte'
PRODUCT_DESCRIPTION_SELECTOR = '[class*="product"] .description, .product-description, [class*="ProductDescription"]'

AUTHOR_SIGNALS: List[Tuple[str, str]] = [
    ('meta[name="author"]', '<meta name="author">'),
    ('[rel="author"]', 'rel="author"'),
    ('[class*="author"]', 'class="*author*"'),
    ('[itemprop="author"]', 'itemprop="author"'),
]

DATE_SIGNALS: List[Tuple[str, str]] = [
    ('meta[property="article:published_time"]', "meta article:published_time"),
    ('meta[property="article:modified_time"]', "meta article:modified_time"),
    ("time[datetime]", '<time datetime="...">'),
    ('[itemprop="datePublished"]', 'itemprop="datePublished"'),
    ('[itemprop="dateModified"]', 'itemprop="dateModified"'),
    ('[class*="date"]', 'class="*date*"'),
]

PRIORITY_HEADINGS: Dict[TagPriority, str] = {
    TagPriority.CRITICAL: "Critical priority:",
    TagPriority.IMPORTANT: "Important priority:",
    TagPriority.MEDIUM: "Improvements:",
    TagPriority.LOW: "Improvements:",
}
