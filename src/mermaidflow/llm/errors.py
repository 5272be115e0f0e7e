"""Provider failure taxonomy and user-facing messages."""

from __future__ import annotations

# Cancellations faster than this point at configuration or connectivity,
# not a slow server.
IMMEDIATE_CANCEL_SECS = 1.0


class ProviderError(Exception):
    """Base class for every failed provider call."""

    kind = "provider"


class ProviderConfigError(ProviderError):
    """Provider settings are unusable (no API key, no custom endpoint, ...)."""

    kind = "config"


class NetworkError(ProviderError):
    """Transport failure before any response arrived."""

    kind = "network"


class RequestTimeoutError(ProviderError):
    """The request was cancelled because the timeout elapsed."""

    kind = "timeout"

    def __init__(self, timeout: float, elapsed: float) -> None:
        self.timeout = timeout
        self.elapsed = elapsed
        super().__init__(f"Request cancelled after {elapsed:.1f}s (timeout {timeout:g}s)")

    @property
    def immediate(self) -> bool:
        return self.elapsed < IMMEDIATE_CANCEL_SECS


class HttpStatusError(ProviderError):
    """Non-success HTTP status from the provider."""

    kind = "http_error"

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(message)


class ServerTimeoutError(HttpStatusError):
    """The provider (or a gateway in front of it) timed out: 408 / 504."""

    kind = "server_timeout"

    def __init__(self, status: int, message: str | None = None) -> None:
        super().__init__(status, message or f"Server timed out ({status}), please try again later")


class EmptyCompletionError(ProviderError):
    """The response succeeded but carried no completion text."""

    kind = "empty_completion"


def describe_failure(exc: Exception) -> str:
    """Human-readable message for a failed call, one wording per kind."""
    if isinstance(exc, NetworkError):
        return (
            "Network request failed. If you use a custom endpoint, make sure its domain "
            "is allowed by the host; api.openai.com may also be blocked in some regions, "
            "in which case use OpenRouter or a proxy."
        )
    if isinstance(exc, RequestTimeoutError):
        if exc.immediate:
            return (
                "The request was cancelled immediately. Check the API key, endpoint "
                "and network connection."
            )
        return (
            f"Request timed out ({exc.timeout:g} seconds). Reasoning models can be slow; "
            "try a shorter description."
        )
    if isinstance(exc, ServerTimeoutError):
        return exc.message
    if isinstance(exc, HttpStatusError):
        return exc.message
    if isinstance(exc, EmptyCompletionError):
        return "The API returned an empty response."
    return str(exc) or exc.__class__.__name__
