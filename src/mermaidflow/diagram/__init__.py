"""Mermaid diagram source helpers."""

from mermaidflow.diagram.labels import extract_labels

__all__ = ["extract_labels"]
