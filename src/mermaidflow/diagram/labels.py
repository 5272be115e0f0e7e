"""Mermaid source scanning: node id -> display label."""

from __future__ import annotations

import re

COMMENT_MARKER = "%%"

# Node shapes, longest delimiters first so "[[x]]" is not read as "[" + "[x" + "]".
# Each entry is (opening, closing); labels never span lines.
NODE_SHAPES: list[tuple[str, str]] = [
    ("(((", ")))"),  # double circle
    ("[[", "]]"),  # subroutine
    ("((", "))"),  # circle
    ("([", "])"),  # stadium
    ("[(", ")]"),  # cylinder
    ("{{", "}}"),  # hexagon
    ("[/", "/]"),  # parallelogram
    ("[\\", "\\]"),  # alt parallelogram
    ("[/", "\\]"),  # trapezoid
    ("[\\", "/]"),  # alt trapezoid
    ("(/", "/)"),
    ("[", "]"),  # rectangle
    ("(", ")"),  # rounded
    ("{", "}"),  # rhombus
    (">", "]"),  # asymmetric
]


def _build_node_pattern() -> re.Pattern[str]:
    # A label never contains its shape's outer delimiters, so an unterminated
    # shape cannot swallow the next node on the line.
    alternatives = [
        f"{re.escape(opening)}([^{re.escape(opening[0] + closing[-1])}]*?){re.escape(closing)}"
        for opening, closing in NODE_SHAPES
    ]
    return re.compile(r"(?<![\w])(\w+)(?:" + "|".join(alternatives) + ")")


_NODE_RE = _build_node_pattern()


def _clean_label(raw: str) -> str:
    label = raw.strip()
    if len(label) >= 2 and label[0] == '"' and label[-1] == '"':
        label = label[1:-1].strip()
    return label


def strip_comments(source: str) -> str:
    """Drop lines starting with the ``%%`` comment marker."""
    return "\n".join(
        line for line in source.splitlines() if not line.lstrip().startswith(COMMENT_MARKER)
    )


def extract_labels(source: str) -> dict[str, str]:
    """Map node identifiers to their shape labels.

    The scan walks each line left to right. At any position the longest
    matching shape wins, and across the whole source the first non-empty
    label seen for an identifier is kept. Unterminated shapes simply do not
    match.

    Args:
        source: Mermaid diagram source.

    Returns:
        Dict of node id -> trimmed label. Empty if nothing matched.
    """
    labels: dict[str, str] = {}
    for line in strip_comments(source).splitlines():
        for match in _NODE_RE.finditer(line):
            node_id = match.group(1)
            if node_id in labels:
                continue
            raw = next((g for g in match.groups()[1:] if g is not None), "")
            label = _clean_label(raw)
            if label:
                labels[node_id] = label
    return labels
