"""Structural clean-up passes that make Mermaid SVG importable by strict hosts.

``prepare_markup`` repairs raw text that an XML parser would misread. The
remaining passes edit the parsed document in place: ``pre_css_cleanup`` runs
before stylesheet inlining and ``post_css_cleanup`` after it.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from mermaidflow.svg.markup import (
    add_missing,
    ensure_namespace,
    remove_attrs,
    remove_style_props,
)

FALLBACK_COLOR = "#333333"
DEFAULT_TEXT_FILL = "#333333"

UNSUPPORTED_ELEMENTS = ("foreignObject", "script", "title")

# Node groups: id="flowchart-<nodeId>-<n>", optionally prefixed by the render id.
NODE_GROUP_ID_RE = re.compile(r"(?:^|-)flowchart-(\w+)-\d+$")

_TAG_RE = re.compile(r"<[A-Za-z][^<>]*>")
# font-family="\"trebuchet ms\", verdana" written without escaping the inner quotes
_BROKEN_FONT_FAMILY_RE = re.compile(
    r"""(font-family\s*=\s*)"((?:[^"<>=]*"[^"<>=]*")+[^"<>=]*)"(?=[\s/>])"""
)
_BARE_AMP_RE = re.compile(r"&(?!(?:#\d+|#x[0-9a-fA-F]+|[A-Za-z][\w.-]*);)")
_NAMED_ENTITY_RE = re.compile(r"&([A-Za-z][\w.-]*);")
_BR_RE = re.compile(r"<br\s*>", re.IGNORECASE)
_CURRENT_COLOR_RE = re.compile(r"currentColor", re.IGNORECASE)

# Named entities XML parsers accept without a DTD
_XML_ENTITIES = {"amp", "lt", "gt", "quot", "apos"}


def node_id_from_group_id(group_id: str) -> str | None:
    """Return the diagram node id encoded in a node-group element id."""
    m = NODE_GROUP_ID_RE.search(group_id)
    return m.group(1) if m else None


# ── Text repairs (before parsing) ──


def collapse_tag_newlines(svg: str) -> str:
    """Fold line breaks inside tags (multi-line attribute values) to spaces."""
    return _TAG_RE.sub(lambda m: re.sub(r"\s*[\r\n]+\s*", " ", m.group(0)), svg)


def repair_font_family_quotes(svg: str) -> str:
    """Turn nested double quotes in a font-family attribute into single quotes."""
    return _BROKEN_FONT_FAMILY_RE.sub(
        lambda m: f'{m.group(1)}"{m.group(2).replace(chr(34), chr(39))}"', svg
    )


def normalize_entities(svg: str) -> str:
    """Rewrite HTML-only entities so a DTD-less XML parser keeps the text."""
    svg = svg.replace("&nbsp;", "&#160;")
    svg = _BARE_AMP_RE.sub("&amp;", svg)
    return _NAMED_ENTITY_RE.sub(
        lambda m: m.group(0) if m.group(1) in _XML_ENTITIES else f"&amp;{m.group(1)};",
        svg,
    )


def close_line_breaks(svg: str) -> str:
    return _BR_RE.sub("<br/>", svg)


def prepare_markup(svg: str) -> str:
    svg = collapse_tag_newlines(svg)
    svg = repair_font_family_quotes(svg)
    svg = normalize_entities(svg)
    svg = close_line_breaks(svg)
    return ensure_namespace(svg)


# ── Document passes ──


def remove_elements(soup: BeautifulSoup, names: tuple[str, ...]) -> int:
    """Decompose every element with one of ``names``, children included."""
    found = soup.find_all(list(names))
    for element in found:
        # nested matches go with their ancestor
        if not element.decomposed:
            element.decompose()
    return len(found)


def remove_unsupported_elements(soup: BeautifulSoup) -> int:
    """Drop foreignObject, script and title elements with their children."""
    return remove_elements(soup, UNSUPPORTED_ELEMENTS)


def strip_filter_refs(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(True):
        remove_attrs(tag, ["filter", "clip-path"])
        remove_style_props(tag, ["filter", "clip-path"])


def remove_filters_and_clip_paths(soup: BeautifulSoup) -> None:
    """Remove filter/clipPath definitions and every reference to them."""
    remove_elements(soup, ("filter", "clipPath"))
    strip_filter_refs(soup)


def remove_empty_defs(soup: BeautifulSoup) -> None:
    for defs in soup.find_all("defs"):
        if defs.find(True) is None and not defs.get_text(strip=True):
            defs.decompose()


def replace_current_color(soup: BeautifulSoup, color: str = FALLBACK_COLOR) -> None:
    """Resolve ``currentColor`` in attribute values (inline styles included)."""
    for tag in soup.find_all(True):
        for name, value in list(tag.attrs.items()):
            if isinstance(value, str) and _CURRENT_COLOR_RE.search(value):
                tag[name] = _CURRENT_COLOR_RE.sub(color, value)


def ensure_text_fill(soup: BeautifulSoup, fill: str = DEFAULT_TEXT_FILL) -> None:
    """Give every ``<text>`` an explicit fill; SVG's implicit black is not reliable."""
    for text in soup.find_all("text"):
        add_missing(text, {"fill": fill})


def is_node_group(tag: Tag) -> bool:
    return tag.name == "g" and node_id_from_group_id(tag.get("id", "")) is not None


def strip_node_group_strokes(soup: BeautifulSoup) -> None:
    """Remove stroke and stroke-width from node ``<g>`` elements."""
    for group in soup.find_all(is_node_group):
        remove_attrs(group, ["stroke", "stroke-width"])
        remove_style_props(group, ["stroke", "stroke-width"])


def pre_css_cleanup(soup: BeautifulSoup) -> None:
    remove_unsupported_elements(soup)


def post_css_cleanup(soup: BeautifulSoup) -> None:
    remove_filters_and_clip_paths(soup)
    remove_empty_defs(soup)
    replace_current_color(soup)
    ensure_text_fill(soup)
    strip_node_group_strokes(soup)

