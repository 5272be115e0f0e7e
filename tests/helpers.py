"""Shared test helpers: fake provider responses over httpx.MockTransport."""

import asyncio
import json

import httpx


def _chat_payload(text):
    """OpenAI-style chat completion body."""
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


def _gemini_payload(text):
    """Gemini generateContent body."""
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def _mock_client(handler):
    """AsyncClient whose requests are answered by ``handler(request)``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _recording_handler(responses):
    """Handler that replays ``responses`` in order and records each request.

    Returns (handler, requests). Each response is either an httpx.Response or
    a payload dict (sent as 200 JSON).
    """
    requests = []
    queue = list(responses)

    def handler(request):
        requests.append(request)
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json=item)

    return handler, requests


def _request_json(request):
    return json.loads(request.content)


def _run(coro):
    return asyncio.run(coro)
