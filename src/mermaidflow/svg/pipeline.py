"""Sanitization pipeline and the two-tier export used when inserting into a host."""

from __future__ import annotations

import logging
import time
import xml.etree.ElementTree as ET
from collections.abc import Callable
from dataclasses import dataclass

from mermaidflow.diagram.labels import extract_labels
from mermaidflow.svg.cleaner import post_css_cleanup, pre_css_cleanup, prepare_markup
from mermaidflow.svg.css import collect_style_rules, inline_styles, strip_style_blocks
from mermaidflow.svg.inject import LabelResolver, inject_labels
from mermaidflow.svg.markup import parse_svg, serialize
from mermaidflow.svg.minimal import minimal_sanitize

logger = logging.getLogger(__name__)

Importer = Callable[[str], object]


class SanitizationError(Exception):
    """Raised when neither the full pipeline nor the minimal fallback is accepted."""

    kind = "sanitization"


@dataclass
class ExportResult:
    svg: str
    fallback: bool = False


def check_parseable(svg: str) -> ET.Element:
    """Default importer: a strict XML parse, like a host-side SVG import."""
    return ET.fromstring(svg)


def label_resolver(diagram_source: str | None) -> LabelResolver:
    """Labels from the diagram source, falling back to the raw node id."""
    if not diagram_source:
        return lambda node_id: node_id
    labels = extract_labels(diagram_source)
    return lambda node_id: labels.get(node_id, node_id)


def sanitize_svg(svg: str, diagram_source: str | None = None) -> str:
    """Turn renderer SVG into a host-compatible document.

    Args:
        svg: Raw SVG produced by the Mermaid renderer.
        diagram_source: The Mermaid source it was rendered from, if known.
            Used to restore node labels missing from the SVG.

    Returns:
        Sanitized SVG text. Deterministic, no I/O.
    """
    t0 = time.perf_counter()
    soup = parse_svg(prepare_markup(svg))
    pre_css_cleanup(soup)
    rules = collect_style_rules(soup)
    strip_style_blocks(soup)
    inline_styles(soup, rules)
    post_css_cleanup(soup)
    inject_labels(soup, label_resolver(diagram_source))
    svg = serialize(soup)
    logger.debug("Sanitized SVG: %d chars, %.1fms", len(svg), (time.perf_counter() - t0) * 1000)
    return svg


def export_svg(
    svg: str,
    diagram_source: str | None = None,
    importer: Importer = check_parseable,
) -> ExportResult:
    """Sanitize and hand the result to ``importer``, falling back once.

    If the importer rejects the full pipeline's output, the raw SVG goes
    through :func:`minimal_sanitize` instead. A second rejection is terminal.

    Raises:
        SanitizationError: If both documents are rejected.
    """
    try:
        doc = sanitize_svg(svg, diagram_source)
        importer(doc)
        return ExportResult(doc)
    except Exception as e:
        logger.warning("Sanitized SVG rejected (%s); retrying with minimal sanitizer", e)

    try:
        doc = minimal_sanitize(svg)
        importer(doc)
    except Exception as e:
        logger.error("Minimal SVG rejected: %s", e)
        raise SanitizationError(f"SVG could not be imported: {e}") from e
    return ExportResult(doc, fallback=True)
