"""Parsing, serializing and attribute helpers for SVG documents."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

# The root start tag; namespace declarations must be in place before parsing.
_ROOT_TAG_RE = re.compile(r"<svg\b([^>]*)>", re.IGNORECASE)


def parse_svg(svg: str) -> BeautifulSoup:
    """Parse with the lxml XML builder, which keeps SVG tag case (foreignObject, clipPath)."""
    return BeautifulSoup(svg, "xml")


def serialize(soup: BeautifulSoup) -> str:
    """Document text without an XML declaration. Attributes come out sorted by name."""
    return soup.decode_contents()


def has_class(tag: Tag, name: str) -> bool:
    classes = tag.get("class") or ""
    if isinstance(classes, str):
        classes = classes.split()
    return name in classes


def parse_style(style: str) -> dict[str, str]:
    """Parse an inline ``style`` value into property -> value."""
    decls: dict[str, str] = {}
    for part in style.split(";"):
        prop, sep, value = part.partition(":")
        prop = prop.strip().lower()
        if not sep or not prop:
            continue
        decls[prop] = value.strip()
    return decls


def format_style(decls: dict[str, str]) -> str:
    return ";".join(f"{prop}:{value}" for prop, value in decls.items())


def attr_value(value: str) -> str:
    """Swap double quotes for single ones so font lists stay readable once quoted."""
    return value.replace('"', "'")


def declares(tag: Tag, prop: str) -> bool:
    """True if the element sets ``prop`` as an attribute or an inline style."""
    if tag.has_attr(prop):
        return True
    return prop in parse_style(tag.get("style", ""))


def remove_attrs(tag: Tag, names: list[str]) -> None:
    for name in names:
        if tag.has_attr(name):
            del tag[name]


def remove_style_props(tag: Tag, props: list[str]) -> None:
    """Drop the given declarations from the element's inline style, if any."""
    if not tag.has_attr("style"):
        return
    decls = parse_style(tag["style"])
    kept = {k: v for k, v in decls.items() if k not in props}
    if len(kept) == len(decls):
        return
    if kept:
        tag["style"] = format_style(kept)
    else:
        del tag["style"]


def add_missing(tag: Tag, defaults: dict[str, str]) -> None:
    """Set each default attribute the element does not already declare."""
    for prop, value in defaults.items():
        if not declares(tag, prop):
            tag[prop] = value


def ensure_namespace(svg: str) -> str:
    """Give the root ``<svg>`` the SVG (and, if used, XLink) namespace.

    Runs on text before parsing, so ``xlink:`` attributes resolve to a
    declared prefix.
    """
    m = _ROOT_TAG_RE.search(svg)
    if m is None:
        return svg
    attrs = m.group(1)
    additions = ""
    if re.search(r"(?:^|\s)xmlns\s*=", attrs) is None:
        additions += f' xmlns="{SVG_NS}"'
    if "xlink:" in svg and re.search(r"(?:^|\s)xmlns:xlink\s*=", attrs) is None:
        additions += f' xmlns:xlink="{XLINK_NS}"'
    if not additions:
        return svg
    insert_at = m.start() + len("<svg")
    return svg[:insert_at] + additions + svg[insert_at:]
