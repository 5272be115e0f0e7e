"""Label injection: restore node text the renderer left out of node groups."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Optional

from bs4 import BeautifulSoup, Tag

from mermaidflow.svg.cleaner import DEFAULT_TEXT_FILL, is_node_group, node_id_from_group_id
from mermaidflow.svg.markup import has_class

logger = logging.getLogger(__name__)

LabelResolver = Callable[[str], Optional[str]]

LABEL_FONT_SIZE = "14"


def _number(value: str | None) -> float:
    if not value:
        return 0.0
    try:
        return float(re.sub(r"px$", "", value.strip()))
    except ValueError:
        return 0.0


def label_center(container: Tag) -> tuple[float, float]:
    """Center of the label's background rect, or the group origin."""
    rect = container.find("rect")
    if rect is None or not rect.has_attr("width") or not rect.has_attr("height"):
        return 0.0, 0.0
    x = _number(rect.get("x")) + _number(rect["width"]) / 2
    y = _number(rect.get("y")) + _number(rect["height"]) / 2
    return x, y


def build_label_text(soup: BeautifulSoup, label: str, x: float = 0.0, y: float = 0.0) -> Tag:
    text = soup.new_tag(
        "text",
        attrs={
            "x": f"{x:g}",
            "y": f"{y:g}",
            "text-anchor": "middle",
            "dominant-baseline": "central",
            "fill": DEFAULT_TEXT_FILL,
            "font-size": LABEL_FONT_SIZE,
        },
    )
    text.string = label
    return text


def find_label_container(node_group: Tag, used: set[int]) -> Tag | None:
    """First ``g.label`` under the node group that no other node has claimed."""
    for group in node_group.find_all("g"):
        if has_class(group, "label") and id(group) not in used:
            return group
    return None


def inject_labels(soup: BeautifulSoup, resolve: LabelResolver) -> int:
    """Append a ``<text>`` to each node's label container that has none.

    Args:
        soup: Parsed document, edited in place.
        resolve: Maps a diagram node id to its label. ``None`` or ``""``
            means the group is left alone.

    Returns:
        Number of labels inserted; at most one per node group.
    """
    node_groups = soup.find_all(is_node_group)
    if not node_groups:
        return 0

    inserted = 0
    used: set[int] = set()
    for node_group in node_groups:
        container = find_label_container(node_group, used)
        if container is None:
            continue
        used.add(id(container))
        if container.find("text") is not None or container.find("rect") is None:
            continue
        label = resolve(node_id_from_group_id(node_group["id"]))
        if not label:
            continue
        x, y = label_center(container)
        container.append(build_label_text(soup, label, x, y))
        inserted += 1

    logger.debug("Injected %d label(s) into %d node group(s)", inserted, len(node_groups))
    return inserted
