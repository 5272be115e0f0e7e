"""Shared fixtures: a Mermaid-like rendered SVG, its source, and a settings store."""

import pytest

from mermaidflow.llm.provider import ProviderConfig
from mermaidflow.storage.settings_store import SettingsStore

SAMPLE_SOURCE = "flowchart LR\n  %% entry point\n  A[Start] --> B[End]"

# Trimmed from a real Mermaid flowchart render with htmlLabels disabled. Node A
# lost its label text; node B kept it.
SAMPLE_SVG = (
    '<svg id="mermaid-1" width="100%" xmlns="http://www.w3.org/2000/svg" class="flowchart" '
    'viewBox="0 0 200 100" role="graphics-document document">'
    "<style>"
    '#mermaid-1{font-family:"trebuchet ms",verdana,arial,sans-serif;font-size:16px;fill:#333;}'
    "@keyframes dash{to{stroke-dashoffset:0;}}"
    "#mermaid-1 .node rect,#mermaid-1 .node circle{fill:#ECECFF;stroke:#9370DB;stroke-width:1px;}"
    "#mermaid-1 .flowchart-link{stroke:#333333;fill:none;}"
    "#mermaid-1 .marker{fill:#333333;stroke:#333333;}"
    "#mermaid-1 .node .label{text-align:center;}"
    "#mermaid-1 rect.basic{fill:#ECECFF !important;stroke:#9370DB;}"
    "</style>"
    "<title>Sample</title>"
    '<g><marker id="mermaid-1_pointEnd" class="marker flowchart-v2" viewBox="0 0 10 10" '
    'refX="5" refY="5" markerWidth="8" markerHeight="8" orient="auto">'
    '<path d="M 0 0 L 10 5 L 0 10 z" class="arrowMarkerPath" style="stroke-width: 1;"/></marker>'
    '<g class="root"><g class="edgePaths">'
    '<path d="M50,50L150,50" id="L_A_B_0" class="flowchart-link" '
    'marker-end="url(#mermaid-1_pointEnd)"/></g>'
    '<g class="nodes">'
    '<g class="node default" id="flowchart-A-0" transform="translate(30, 50)" stroke="#000" stroke-width="2">'
    '<rect class="basic label-container" x="-26" y="-20" width="52" height="40"/>'
    '<g class="label" transform="translate(-16, -10)">'
    '<rect class="background" width="32" height="20"/></g></g>'
    '<g class="node default" id="flowchart-B-1" transform="translate(170, 50)">'
    '<rect class="basic label-container" x="-24" y="-20" width="48" height="40"/>'
    '<g class="label" transform="translate(-12, -10)">'
    '<rect class="background" width="24" height="20"/>'
    '<text y="-10.1"><tspan x="0" dy="1em">End</tspan></text></g></g>'
    "</g></g></g></svg>"
)


@pytest.fixture
def sample_svg():
    return SAMPLE_SVG


@pytest.fixture
def sample_source():
    return SAMPLE_SOURCE


@pytest.fixture
def settings_store(tmp_path):
    """Fresh SettingsStore with schema initialized."""
    store = SettingsStore(tmp_path / "settings.db")
    store.init_db()
    yield store
    store.close()


@pytest.fixture
def openai_config():
    return ProviderConfig(provider="openai", model="gpt-4o-mini", api_key="sk-test")


@pytest.fixture
def gemini_config():
    return ProviderConfig(provider="gemini", model="gemini-2.0-flash", api_key="g-test")
