"""LLM provider dialects and a single cancellable completion call."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

import httpx

from mermaidflow import config
from mermaidflow.llm.errors import (
    EmptyCompletionError,
    HttpStatusError,
    NetworkError,
    ProviderConfigError,
    RequestTimeoutError,
    ServerTimeoutError,
)

logger = logging.getLogger(__name__)

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
OPENROUTER_CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"
GEMINI_URL_TEMPLATE = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

SERVER_TIMEOUT_STATUSES = frozenset({408, 504})


class ProviderKind(str, Enum):
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    GEMINI = "gemini"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ProviderConfig:
    """Everything needed to reach one provider. Never persisted here."""

    provider: ProviderKind
    model: str
    api_key: str
    base_url: str | None = None

    def __post_init__(self) -> None:
        try:
            kind = ProviderKind(self.provider)
        except ValueError:
            raise ProviderConfigError(f"Unknown provider {self.provider!r}") from None
        object.__setattr__(self, "provider", kind)
        if not self.api_key or not self.api_key.strip():
            raise ProviderConfigError("API key is not configured")
        if kind is ProviderKind.CUSTOM and not (self.base_url or "").strip():
            raise ProviderConfigError("The custom provider requires a base URL")

    @classmethod
    def from_settings(cls, settings: dict[str, Any]) -> ProviderConfig:
        """Build from a stored settings dict (api_key/provider/model/base_url)."""
        return cls(
            provider=settings.get("provider") or ProviderKind.OPENAI.value,
            model=(settings.get("model") or "").strip(),
            api_key=(settings.get("api_key") or "").strip(),
            base_url=(settings.get("base_url") or "").strip() or None,
        )


@dataclass
class ProviderRequest:
    url: str
    headers: dict[str, str]
    body: dict[str, Any]
    params: dict[str, str] = field(default_factory=dict)


class Dialect(Protocol):
    """Request builder / response parser pair for one API shape."""

    def build_request(self, cfg: ProviderConfig, system: str, user: str) -> ProviderRequest: ...

    def extract_text(self, data: Any) -> str | None: ...


class ChatCompletionsDialect:
    """OpenAI-style ``/chat/completions`` (OpenAI, OpenRouter, custom endpoints)."""

    def endpoint(self, cfg: ProviderConfig) -> str:
        if cfg.provider is ProviderKind.CUSTOM:
            return f"{(cfg.base_url or '').rstrip('/')}/chat/completions"
        if cfg.provider is ProviderKind.OPENROUTER:
            return OPENROUTER_CHAT_URL
        return OPENAI_CHAT_URL

    def build_request(self, cfg: ProviderConfig, system: str, user: str) -> ProviderRequest:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {cfg.api_key}",
        }
        if cfg.provider is ProviderKind.OPENROUTER:
            headers["HTTP-Referer"] = config.OPENROUTER_REFERER
            headers["X-Title"] = config.OPENROUTER_TITLE
        body = {
            "model": cfg.model or config.OPENAI_FALLBACK_MODEL,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": config.TEMPERATURE,
            "max_tokens": config.MAX_TOKENS,
        }
        return ProviderRequest(self.endpoint(cfg), headers, body)

    def extract_text(self, data: Any) -> str | None:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return None
        return content if isinstance(content, str) else None


class GenerateContentDialect:
    """Gemini ``models/{model}:generateContent``; system and user share one prompt."""

    def build_request(self, cfg: ProviderConfig, system: str, user: str) -> ProviderRequest:
        model = cfg.model or config.GEMINI_FALLBACK_MODEL
        body = {
            "contents": [
                {"role": "user", "parts": [{"text": f"{system}\n\n{user}"}]},
            ],
            "generationConfig": {
                "temperature": config.TEMPERATURE,
                "maxOutputTokens": config.MAX_TOKENS,
            },
        }
        return ProviderRequest(
            GEMINI_URL_TEMPLATE.format(model=model),
            {"Content-Type": "application/json"},
            body,
            params={"key": cfg.api_key},
        )

    def extract_text(self, data: Any) -> str | None:
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None
        return text if isinstance(text, str) else None


_CHAT = ChatCompletionsDialect()
_GENERATE = GenerateContentDialect()

DIALECTS: dict[ProviderKind, Dialect] = {
    ProviderKind.OPENAI: _CHAT,
    ProviderKind.OPENROUTER: _CHAT,
    ProviderKind.CUSTOM: _CHAT,
    ProviderKind.GEMINI: _GENERATE,
}


def _error_message(response: httpx.Response) -> str | None:
    """Best-effort ``error.message`` from an error body."""
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    err = data.get("error")
    if isinstance(err, dict):
        message = err.get("message")
        return message if isinstance(message, str) and message else None
    if isinstance(err, str) and err:
        return err
    return None


def classify_response(response: httpx.Response, dialect: Dialect) -> str:
    """Return the completion text or raise the matching ProviderError."""
    status = response.status_code
    if not response.is_success:
        if status in SERVER_TIMEOUT_STATUSES:
            raise ServerTimeoutError(status)
        raise HttpStatusError(status, _error_message(response) or f"API error: {status}")
    try:
        data = response.json()
    except ValueError:
        data = None
    text = dialect.extract_text(data)
    if not text or not text.strip():
        raise EmptyCompletionError("The API returned an empty completion")
    return text


async def _post(
    client: httpx.AsyncClient,
    req: ProviderRequest,
    timeout: float,
) -> httpx.Response:
    t0 = time.perf_counter()
    try:
        # wait_for cancels the request when the timer fires and clears it otherwise
        return await asyncio.wait_for(
            client.post(req.url, params=req.params or None, headers=req.headers, json=req.body),
            timeout,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        raise RequestTimeoutError(timeout, time.perf_counter() - t0) from e
    except httpx.RequestError as e:
        raise NetworkError(f"Network request failed: {e}") from e


async def request_completion(
    cfg: ProviderConfig,
    system: str,
    user: str,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Send one completion request and return the raw completion text.

    Args:
        cfg: Provider, model and credentials.
        system: System instruction.
        user: User prompt.
        timeout: Seconds before the request is cancelled.
        client: Optional client to reuse; one is created per call otherwise.

    Raises:
        NetworkError, RequestTimeoutError, ServerTimeoutError, HttpStatusError,
        EmptyCompletionError.
    """
    dialect = DIALECTS[cfg.provider]
    req = dialect.build_request(cfg, system, user)
    logger.debug(
        "Completion via %s model=%s (%d char prompt, timeout %gs)",
        cfg.provider.value, cfg.model or "<default>", len(user), timeout,
    )
    t0 = time.perf_counter()
    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as owned:
            response = await _post(owned, req, timeout)
    else:
        response = await _post(client, req, timeout)
    logger.debug(
        "Completion response %d from %s (%.0fms)",
        response.status_code, cfg.provider.value, (time.perf_counter() - t0) * 1000,
    )
    return classify_response(response, dialect)
