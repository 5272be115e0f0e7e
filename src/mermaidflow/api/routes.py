"""API router: generate, export, settings, model test and model listing."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from mermaidflow import config
from mermaidflow.llm.errors import ProviderError, describe_failure
from mermaidflow.llm.orchestrator import (
    filter_models,
    generate_diagram,
    list_openrouter_models,
    verify_model,
)
from mermaidflow.llm.provider import ProviderConfig
from mermaidflow.storage.settings_store import SettingsStore
from mermaidflow.svg.pipeline import SanitizationError, export_svg

logger = logging.getLogger(__name__)

router = APIRouter()

# HTTP status per failure kind
_STATUS_BY_KIND = {
    "config": 400,
    "network": 502,
    "http_error": 502,
    "empty_completion": 502,
    "timeout": 504,
    "server_timeout": 504,
    "sanitization": 422,
}


# ── Lazy-initialized store ──


def _get_settings_store() -> SettingsStore:
    # One connection per call; sync routes run on worker threads
    store = SettingsStore(config.SETTINGS_DB_PATH)
    store.init_db()
    return store


def _load_settings() -> dict[str, str]:
    store = _get_settings_store()
    try:
        return store.load(config.default_settings())
    finally:
        store.close()


def _error(exc: Exception) -> HTTPException:
    kind = getattr(exc, "kind", "provider")
    return HTTPException(
        status_code=_STATUS_BY_KIND.get(kind, 500),
        detail={"kind": kind, "message": describe_failure(exc)},
    )


# ── Health ──


@router.get("/health")
def health():
    return {"status": "ok"}


# ── Settings ──


class SettingsModel(BaseModel):
    api_key: str = ""
    provider: str = "openai"
    model: str = ""
    base_url: str | None = None


@router.get("/settings", response_model=SettingsModel)
def read_settings():
    return _load_settings()


@router.put("/settings", response_model=SettingsModel)
def save_settings(req: SettingsModel):
    settings = req.model_dump()
    # A base URL only means something for the custom provider
    if req.provider != "custom":
        settings["base_url"] = None
    store = _get_settings_store()
    try:
        store.save(settings)
        saved = store.load(config.default_settings())
    finally:
        store.close()
    logger.info("Saved settings for provider %r model %r", req.provider, req.model)
    return saved


# ── Generation ──


class GenerateRequest(BaseModel):
    description: str


class GenerateResponse(BaseModel):
    mermaid_code: str


@router.post("/generate", response_model=GenerateResponse)
async def generate(req: GenerateRequest):
    description = req.description.strip()
    if not description:
        raise HTTPException(status_code=400, detail={"kind": "config", "message": "Please enter a description"})
    logger.info("POST /generate description=%r", description[:120])
    t0 = time.perf_counter()
    try:
        cfg = ProviderConfig.from_settings(await run_in_threadpool(_load_settings))
        code = await generate_diagram(description, cfg)
    except ProviderError as e:
        logger.warning("Generation failed after %.2fs: %s (%s)", time.perf_counter() - t0, e, e.kind)
        raise _error(e)
    return GenerateResponse(mermaid_code=code)


# ── Export (host insertion) ──


class ExportRequest(BaseModel):
    svg: str
    mermaid_code: str | None = None


class ExportResponse(BaseModel):
    svg: str
    fallback: bool


@router.post("/export", response_model=ExportResponse)
def export(req: ExportRequest):
    if not req.svg.strip():
        raise HTTPException(status_code=400, detail={"kind": "sanitization", "message": "No diagram to insert"})
    try:
        result = export_svg(req.svg, req.mermaid_code)
    except SanitizationError as e:
        raise HTTPException(
            status_code=_STATUS_BY_KIND[e.kind],
            detail={"kind": e.kind, "message": f"Insert failed: {e}"},
        )
    return ExportResponse(svg=result.svg, fallback=result.fallback)


# ── Model test / listing ──


class ModelCheckRequest(BaseModel):
    api_key: str
    provider: str = "openai"
    model: str = ""
    base_url: str | None = None


@router.post("/test-model")
async def check_model(req: ModelCheckRequest):
    try:
        cfg = ProviderConfig.from_settings(req.model_dump())
    except ProviderError as e:
        return {"success": False, "error": describe_failure(e)}
    result = await verify_model(cfg)
    if result.ok:
        return {"success": True}
    return {"success": False, "error": result.error}


class OpenRouterModelsRequest(BaseModel):
    api_key: str
    query: str = ""


@router.post("/models/openrouter")
async def openrouter_models(req: OpenRouterModelsRequest):
    if not req.api_key.strip():
        raise HTTPException(status_code=400, detail={"kind": "config", "message": "API key is not configured"})
    try:
        models = await list_openrouter_models(req.api_key.strip())
    except ProviderError as e:
        raise _error(e)
    return {"models": [{"id": m.id, "name": m.name} for m in filter_models(models, req.query)]}
