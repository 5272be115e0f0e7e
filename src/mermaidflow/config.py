"""Configuration loaded from environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


# Provider defaults (used until settings are saved)
DEFAULT_PROVIDER: str = os.getenv("MERMAIDFLOW_PROVIDER", "openai")
DEFAULT_MODEL: str = os.getenv("MERMAIDFLOW_MODEL", "gpt-4o-mini")
DEFAULT_API_KEY: str = os.getenv("MERMAIDFLOW_API_KEY", "")
DEFAULT_BASE_URL: str = os.getenv("MERMAIDFLOW_BASE_URL", "")

# Per-provider fallback models when the configured model is blank
OPENAI_FALLBACK_MODEL = "gpt-4o-mini"
GEMINI_FALLBACK_MODEL = "gemini-2.0-flash"

# Timeouts (seconds)
GENERATE_TIMEOUT: float = float(os.getenv("GENERATE_TIMEOUT", "120"))
VERIFY_TIMEOUT: float = float(os.getenv("VERIFY_TIMEOUT", "30"))

# Sampling
TEMPERATURE: float = 0.3
MAX_TOKENS: int = 2048

# OpenRouter attribution headers
OPENROUTER_REFERER: str = os.getenv("OPENROUTER_REFERER", "https://github.com/mermaidflow/mermaidflow")
OPENROUTER_TITLE: str = os.getenv("OPENROUTER_TITLE", "Mermaid Flow")

# Server
HOST: str = os.getenv("HOST", "127.0.0.1")
PORT: int = int(os.getenv("PORT", "8000"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Paths
DATA_DIR: Path = Path(os.getenv("DATA_DIR", "./data"))
SETTINGS_DB_PATH: Path = DATA_DIR / "settings.db"


def default_settings() -> dict[str, str]:
    """Return the settings used before anything has been saved."""
    return {
        "api_key": DEFAULT_API_KEY,
        "provider": DEFAULT_PROVIDER,
        "model": DEFAULT_MODEL,
        "base_url": DEFAULT_BASE_URL,
    }
