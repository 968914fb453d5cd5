"""Fragment extractor — pulls morph-target fragments out of a rendered page.

The page is parsed once with lxml.  Candidate selectors are filtered to
those matching at least one node; selectors that match nothing (typos,
targets the page no longer renders) or fail to parse are dropped silently
rather than failing the whole render.  For each surviving selector the
inner HTML of its *first* match is extracted, in the caller's order.
"""

from __future__ import annotations

import html
import re
from collections.abc import Iterable
from dataclasses import dataclass

from lxml import etree
from lxml import html as lxml_html
from lxml.cssselect import CSSSelector, SelectorError

from whisker._types import Selector

# Raw-text elements: their text content is not entity-escaped.
_RAW_TEXT_TAGS: frozenset[str] = frozenset({"script", "style"})

# lxml refuses str input that carries an encoding declaration.
_XML_DECLARATION = re.compile(r"\A\s*<\?xml[^>]*\?>")


@dataclass(frozen=True, slots=True)
class Fragment:
    """Inner HTML of the first node matching ``selector``."""

    selector: Selector
    html: str


def inner_html(node: lxml_html.HtmlElement) -> str:
    """Serialize a node's children (text, elements and their tails)."""
    parts: list[str] = []
    if node.text:
        raw = node.tag in _RAW_TEXT_TAGS
        parts.append(node.text if raw else html.escape(node.text, quote=False))
    for child in node:
        parts.append(lxml_html.tostring(child, encoding="unicode", with_tail=True))
    return "".join(parts)


def _compile(selector: Selector) -> CSSSelector | None:
    try:
        return CSSSelector(selector, translator="html")
    except SelectorError:
        return None


def extract_fragments(selectors: Iterable[Selector], full_html: str) -> list[Fragment]:
    """Extract one fragment per selector that matches ``full_html``.

    Returns:
        Fragments in the order of ``selectors``; a subset of them, never
        more.  Empty when ``full_html`` is blank or holds no elements.

    """
    if not full_html.strip():
        return []

    try:
        document = lxml_html.document_fromstring(_XML_DECLARATION.sub("", full_html, count=1))
    except etree.ParserError:
        # Comment- or whitespace-only markup has no document to select from.
        return []

    fragments: list[Fragment] = []
    for selector in selectors:
        compiled = _compile(selector)
        if compiled is None:
            continue
        nodes = compiled(document)
        if nodes:
            fragments.append(Fragment(selector=selector, html=inner_html(nodes[0])))
    return fragments
