"""Mermaid SVG -> host-compatible SVG."""

from mermaidflow.svg.minimal import minimal_sanitize
from mermaidflow.svg.pipeline import ExportResult, SanitizationError, export_svg, sanitize_svg

__all__ = ["ExportResult", "SanitizationError", "export_svg", "minimal_sanitize", "sanitize_svg"]
