"""
Parsed-markup query surface used by every analyzer.

Document wraps an lxml HTML tree behind CSS selectors, attribute reads and
whitespace-normalised text. XmlDocument reads sitemaps without caring about
namespaces. Neither raises on bad input: unparseable markup behaves like an
empty document.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from lxml import etree
from lxml import html as lxml_html
from lxml.html import HtmlElement

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_INVISIBLE_TAGS = frozenset({"script", "style", "noscript", "template"})
# lxml refuses str input that carries an encoding declaration
_XML_DECLARATION_RE = re.compile(r"^\ufeff?\s*<\?xml[^>]*\?>", re.IGNORECASE)


def normalize_space(text: Optional[str]) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def _collect_text(el: HtmlElement, parts: List[str]) -> None:
    for child in el:
        if isinstance(child.tag, str) and child.tag.lower() not in _INVISIBLE_TAGS:
            if child.text:
                parts.append(child.text)
            _collect_text(child, parts)
        if child.tail:
            parts.append(child.tail)


def element_text(el: HtmlElement) -> str:
    """Visible text of an element (scripts and styles excluded), whitespace-normalised."""
    if not isinstance(el.tag, str) or el.tag.lower() in _INVISIBLE_TAGS:
        return ""
    parts: List[str] = [el.text] if el.text else []
    _collect_text(el, parts)
    return normalize_space(" ".join(parts))


class Document:
    """CSS-queryable view over one HTML page."""

    def __init__(self, raw: str, tree: Optional[HtmlElement]):
        self.raw = raw
        self.tree = tree

    @classmethod
    def parse(cls, raw_html: Optional[str]) -> "Document":
        raw_html = raw_html or ""
        if not raw_html.strip():
            return cls(raw_html, None)
        try:
            tree = lxml_html.document_fromstring(_XML_DECLARATION_RE.sub("", raw_html, count=1))
        except (etree.ParserError, ValueError) as e:
            logger.debug(f"Unparseable HTML ({len(raw_html)} bytes): {e}")
            tree = None
        return cls(raw_html, tree)

    @property
    def html_length(self) -> int:
        return len(self.raw)

    def select(self, css: str) -> List[HtmlElement]:
        if self.tree is None:
            return []
        return self.tree.cssselect(css)

    def first(self, css: str) -> Optional[HtmlElement]:
        found = self.select(css)
        return found[0] if found else None

    def count(self, css: str) -> int:
        return len(self.select(css))

    def attr(self, css: str, name: str) -> Optional[str]:
        """Attribute of the first match, stripped; None if absent."""
        el = self.first(css)
        if el is None:
            return None
        value = el.get(name)
        return value.strip() if value is not None else None

    def text(self, css: Optional[str] = None) -> str:
        """Text of the first match (whole body when css is None)."""
        if css is None:
            el = self.first("body")
            if el is None:
                el = self.tree
        else:
            el = self.first(css)
        return element_text(el) if el is not None else ""

    def texts(self, css: str) -> List[str]:
        """Non-empty text of every match."""
        return [t for t in (element_text(el) for el in self.select(css)) if t]

    def json_ld(self) -> List[Any]:
        """Parsed JSON-LD blocks. Malformed blocks are skipped."""
        blocks = []
        for script in self.select('script[type="application/ld+json"]'):
            try:
                blocks.append(json.loads(script.text or ""))
            except ValueError:
                logger.debug("Skipping malformed JSON-LD block")
        return blocks

    def json_ld_nodes(self) -> List[Dict[str, Any]]:
        """Every JSON-LD object: top-level, list members and @graph entries."""
        nodes: List[Dict[str, Any]] = []
        for block in self.json_ld():
            entries = block if isinstance(block, list) else [block]
            for entry in entries:
                if not isinstance(entry, dict):
                    continue
                nodes.append(entry)
                graph = entry.get("@graph")
                if isinstance(graph, list):
                    nodes.extend(g for g in graph if isinstance(g, dict))
        return nodes


class XmlDocument:
    """Namespace-agnostic reader for sitemap XML."""

    _PARSER = etree.XMLParser(recover=True, resolve_entities=False, no_network=True)

    def __init__(self, root: Optional[Any]):
        self.root = root

    @classmethod
    def parse(cls, raw_xml: Optional[str]) -> "XmlDocument":
        data = (raw_xml or "").strip().encode("utf-8")
        if not data:
            return cls(None)
        try:
            root = etree.fromstring(data, cls._PARSER)
        except etree.XMLSyntaxError as e:
            logger.debug(f"Unparseable XML: {e}")
            root = None
        return cls(root)

    def entries(self, local_name: str) -> List[Any]:
        if self.root is None:
            return []
        return self.root.xpath("//*[local-name()=$name]", name=local_name)

    def values(self, local_name: str) -> List[str]:
        return [v for v in (normalize_space(el.text) for el in self.entries(local_name)) if v]

    @staticmethod
    def child_value(el: Any, local_name: str) -> str:
        found = el.xpath("./*[local-name()=$name]", name=local_name)
        return normalize_space(found[0].text) if found else ""

    @staticmethod
    def descendant_value(el: Any, local_name: str) -> str:
        found = el.xpath(".//*[local-name()=$name]", name=local_name)
        return normalize_space(found[0].text) if found else ""
