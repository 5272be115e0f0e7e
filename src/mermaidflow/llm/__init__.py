"""LLM provider calls that produce Mermaid source."""

from mermaidflow.llm.errors import ProviderError, describe_failure
from mermaidflow.llm.orchestrator import extract_diagram_source, generate_diagram, verify_model
from mermaidflow.llm.provider import ProviderConfig, ProviderKind

__all__ = [
    "ProviderConfig",
    "ProviderError",
    "ProviderKind",
    "describe_failure",
    "extract_diagram_source",
    "generate_diagram",
    "verify_model",
]
