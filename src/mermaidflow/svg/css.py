"""Collect class rules from ``<style>`` blocks and inline them onto elements.

Mermaid styles its output almost entirely through an embedded stylesheet.
Hosts that ignore CSS see unstyled shapes, so the class-level declarations
are copied onto each element as presentation attributes or inline styles.
Only class selectors are honored and the last rule in document order wins;
there is no specificity cascade.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag

from mermaidflow.svg.markup import attr_value, format_style, parse_style

logger = logging.getLogger(__name__)

StyleRuleSet = dict[str, dict[str, str]]

# CSS properties SVG also accepts as presentation attributes.
PRESENTATION_ATTRIBUTES = frozenset({
    "alignment-baseline",
    "color",
    "display",
    "dominant-baseline",
    "fill",
    "fill-opacity",
    "fill-rule",
    "font-family",
    "font-size",
    "font-style",
    "font-variant",
    "font-weight",
    "letter-spacing",
    "opacity",
    "stroke",
    "stroke-dasharray",
    "stroke-dashoffset",
    "stroke-linecap",
    "stroke-linejoin",
    "stroke-miterlimit",
    "stroke-opacity",
    "stroke-width",
    "text-anchor",
    "text-decoration",
    "visibility",
})

_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
_CDATA_RE = re.compile(r"<!\[CDATA\[|\]\]>")
# @keyframes / @media blocks with one level of nested rules
_AT_RULE_RE = re.compile(r"@[\w-]+[^{};]*\{(?:[^{}]*\{[^{}]*\})*[^{}]*\}|@[\w-]+[^{};]*;")
_RULE_RE = re.compile(r"([^{}]+)\{([^{}]*)\}")
_CLASS_RE = re.compile(r"\.(-?[_a-zA-Z][\w-]*)")


def parse_declarations(body: str) -> dict[str, str]:
    """Parse ``prop: value; ...`` dropping ``!important`` and malformed parts."""
    decls: dict[str, str] = {}
    for part in body.split(";"):
        prop, sep, value = part.partition(":")
        prop = prop.strip().lower()
        if not sep or not prop:
            continue
        value = re.sub(r"\s*!important\s*$", "", value.strip(), flags=re.IGNORECASE)
        if value:
            decls[prop] = value
    return decls


def _selector_classes(selector: str) -> list[str]:
    """Classes named by the right-most space-separated token of a selector."""
    tokens = selector.split()
    if not tokens:
        return []
    return _CLASS_RE.findall(tokens[-1])


def parse_stylesheet(css: str, rules: StyleRuleSet | None = None) -> StyleRuleSet:
    """Merge the class rules of one stylesheet body into ``rules``."""
    rules = {} if rules is None else rules
    css = _CDATA_RE.sub("", css)
    css = _COMMENT_RE.sub("", css)
    css = _AT_RULE_RE.sub("", css)
    for selector_group, decl_body in _RULE_RE.findall(css):
        decls = parse_declarations(decl_body)
        if not decls:
            continue
        for selector in selector_group.split(","):
            for cls in _selector_classes(selector):
                rules.setdefault(cls, {}).update(decls)
    return rules


def collect_style_rules(soup: BeautifulSoup) -> StyleRuleSet:
    """Build class name -> declarations from every ``<style>`` element.

    Each selector in a comma-separated group contributes the classes found in
    its right-most token. A later declaration for the same class and property
    overwrites an earlier one.
    """
    rules: StyleRuleSet = {}
    for style in soup.find_all("style"):
        parse_stylesheet(style.get_text(), rules)
    logger.debug("Collected style rules for %d class(es)", len(rules))
    return rules


def strip_style_blocks(soup: BeautifulSoup) -> None:
    for style in soup.find_all("style"):
        style.decompose()


def resolve_class_declarations(class_attr: str, rules: StyleRuleSet) -> dict[str, str]:
    """Union the declarations of each class, later classes winning."""
    resolved: dict[str, str] = {}
    for cls in class_attr.split():
        resolved.update(rules.get(cls, {}))
    return resolved


def _inline_element(tag: Tag, rules: StyleRuleSet) -> None:
    class_attr = tag.get("class")
    if not class_attr:
        return
    if not isinstance(class_attr, str):
        class_attr = " ".join(class_attr)
    resolved = resolve_class_declarations(class_attr, rules)
    if not resolved:
        return

    inline = parse_style(tag.get("style", ""))
    style_additions: dict[str, str] = {}
    for prop, value in resolved.items():
        if prop in inline:
            continue
        if prop in PRESENTATION_ATTRIBUTES:
            if not tag.has_attr(prop):
                tag[prop] = attr_value(value)
        else:
            style_additions[prop] = attr_value(value)

    if style_additions:
        tag["style"] = format_style({**inline, **style_additions})


def inline_styles(soup: BeautifulSoup, rules: StyleRuleSet) -> None:
    """Copy class-derived declarations onto every element with a ``class``.

    Presentation properties become attributes; anything else is merged into
    the inline style. An attribute or inline declaration the element already
    carries is never overwritten.
    """
    if not rules:
        return
    for tag in soup.find_all(class_=True):
        _inline_element(tag, rules)
