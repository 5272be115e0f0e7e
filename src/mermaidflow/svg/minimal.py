"""Fallback sanitizer: lower fidelity, but always parseable."""

from __future__ import annotations

from bs4 import Tag

from mermaidflow.svg.cleaner import (
    FALLBACK_COLOR,
    UNSUPPORTED_ELEMENTS,
    prepare_markup,
    remove_elements,
    replace_current_color,
    strip_filter_refs,
)
from mermaidflow.svg.markup import add_missing, parse_svg, serialize

SHAPE_FILL = "#f4f4f4"
NEUTRAL_STROKE = FALLBACK_COLOR
TEXT_FILL = FALLBACK_COLOR

_SHAPES = {"rect", "circle", "ellipse", "polygon"}


def _force_paint(tag: Tag) -> None:
    if tag.name == "path":
        add_missing(tag, {"fill": "none", "stroke": NEUTRAL_STROKE})
    elif tag.name in _SHAPES:
        add_missing(tag, {"fill": SHAPE_FILL, "stroke": NEUTRAL_STROKE})
    elif tag.name == "text":
        add_missing(tag, {"fill": TEXT_FILL})


def minimal_sanitize(svg: str) -> str:
    """Strip everything a strict importer might choke on.

    No stylesheet inlining is attempted: style blocks and all ``<defs>`` are
    dropped outright, and paths, basic shapes and text get explicit paint so
    the result is at least visible.
    """
    soup = parse_svg(prepare_markup(svg))
    remove_elements(soup, ("style", "defs") + UNSUPPORTED_ELEMENTS)
    strip_filter_refs(soup)
    replace_current_color(soup)
    for tag in soup.find_all(True):
        _force_paint(tag)
    return serialize(soup)
