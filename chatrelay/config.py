"""Configuration helpers.

All runtime configuration comes from environment variables, read once at import.

Why this exists:
- Keeps the inference server location and model choice out of the relay logic.
- Lets the same build run against a local Ollama or one on another box.

"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


@dataclass(frozen=True)
class Settings:
    # Where the Ollama server listens. The relay talks to exactly one server.
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

    # Fixed model used for every generation request.
    ollama_model: str = os.getenv("OLLAMA_MODEL", "llama3.2")

    # Seconds before an inference call gives up. Unset means no client-side
    # timeout: local generation on a laptop can take minutes.
    ollama_timeout_s: Optional[float] = _optional_float("OLLAMA_TIMEOUT_S")

    # HTTP server
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "3000"))
    api_version: str = os.getenv("API_VERSION", "1.0.0")

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Page header
    app_title: str = os.getenv("APP_TITLE", "Product Makers")
    app_subtitle: str = os.getenv("APP_SUBTITLE", "Product Innovation with AI: Prototyping")


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Install the root handler used by the server and the CLI."""
    logging.basicConfig(
        level=getattr(logging, level or settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
