"""Diagram generation on top of provider calls: retry, fence stripping, probing."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass

import httpx

from mermaidflow import config
from mermaidflow.llm.errors import (
    EmptyCompletionError,
    HttpStatusError,
    NetworkError,
    ProviderError,
    RequestTimeoutError,
    describe_failure,
)
from mermaidflow.llm.provider import ProviderConfig, request_completion

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a Mermaid diagram expert. Turn the user's description into Mermaid code \
for a flowchart or a sequenceDiagram.
Return only the raw Mermaid code: no markdown code fences, no explanations, no extra text.
Prefer "flowchart LR" or "flowchart TB". Node IDs must be English word characters; \
labels may be in any language."""

VERIFY_PROMPT = "Reply with the single word OK."

OPENROUTER_MODELS_URL = "https://openrouter.ai/api/v1/models"

_FENCE_RE = re.compile(r"```(?:mermaid)?\s*([\s\S]*?)```")


@dataclass
class VerifyResult:
    ok: bool
    error: str | None = None


@dataclass
class ModelInfo:
    id: str
    name: str


def extract_diagram_source(text: str) -> str:
    """Return the first fenced block's content, or the trimmed text."""
    trimmed = text.strip()
    m = _FENCE_RE.search(trimmed)
    if m:
        return m.group(1).strip()
    return trimmed


async def generate_diagram(
    description: str,
    cfg: ProviderConfig,
    *,
    system_prompt: str = SYSTEM_PROMPT,
    timeout: float | None = None,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Ask the provider for Mermaid source describing ``description``.

    An empty completion is retried exactly once with identical parameters;
    every other failure propagates immediately.

    Raises:
        ProviderError: The classified failure (see ``mermaidflow.llm.errors``).
    """
    timeout = config.GENERATE_TIMEOUT if timeout is None else timeout
    logger.info("Generating diagram via %s (%d char description)", cfg.provider.value, len(description))
    t0 = time.perf_counter()
    try:
        text = await request_completion(cfg, system_prompt, description, timeout, client)
    except EmptyCompletionError:
        logger.warning("Empty completion from %s; retrying once", cfg.provider.value)
        text = await request_completion(cfg, system_prompt, description, timeout, client)
    source = extract_diagram_source(text)
    logger.info("Diagram source ready: %d chars, %.2fs", len(source), time.perf_counter() - t0)
    return source


async def verify_model(
    cfg: ProviderConfig,
    *,
    timeout: float | None = None,
    client: httpx.AsyncClient | None = None,
) -> VerifyResult:
    """Connectivity check with a tiny prompt and the short verification timeout.

    An empty completion still proves the endpoint, key and model work.
    """
    timeout = config.VERIFY_TIMEOUT if timeout is None else timeout
    try:
        await request_completion(cfg, "", VERIFY_PROMPT, timeout, client)
    except EmptyCompletionError:
        logger.info("Model check of %s returned no text; treating as reachable", cfg.provider.value)
    except ProviderError as e:
        logger.info("Model check of %s failed: %s (%s)", cfg.provider.value, e, e.kind)
        return VerifyResult(ok=False, error=describe_failure(e))
    return VerifyResult(ok=True)


async def list_openrouter_models(
    api_key: str,
    *,
    timeout: float | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[ModelInfo]:
    """Fetch the OpenRouter model catalogue as (id, name) pairs."""
    timeout = config.VERIFY_TIMEOUT if timeout is None else timeout
    headers = {"Authorization": f"Bearer {api_key}"}
    t0 = time.perf_counter()
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as owned:
                response = await owned.get(OPENROUTER_MODELS_URL, headers=headers)
        else:
            response = await client.get(OPENROUTER_MODELS_URL, headers=headers, timeout=timeout)
    except httpx.TimeoutException as e:
        raise RequestTimeoutError(timeout, time.perf_counter() - t0) from e
    except httpx.RequestError as e:
        raise NetworkError(f"Network request failed: {e}") from e

    if not response.is_success:
        raise HttpStatusError(response.status_code, f"API error: {response.status_code}")
    try:
        data = response.json().get("data", [])
    except (ValueError, AttributeError):
        data = []
    if not isinstance(data, list):
        data = []
    models = [
        ModelInfo(id=m["id"], name=m.get("name") or m["id"])
        for m in data
        if isinstance(m, dict) and isinstance(m.get("id"), str)
    ]
    logger.info("Loaded %d OpenRouter models (%.2fs)", len(models), time.perf_counter() - t0)
    return models


def fuzzy_match(query: str, text: str) -> bool:
    """True if the query's characters appear in ``text`` in order (case-insensitive)."""
    q = query.strip().lower()
    if not q:
        return True
    j = 0
    for ch in text.lower():
        if ch == q[j]:
            j += 1
            if j == len(q):
                return True
    return False


def filter_models(models: list[ModelInfo], query: str) -> list[ModelInfo]:
    return [m for m in models if fuzzy_match(query, m.id) or fuzzy_match(query, m.name)]
