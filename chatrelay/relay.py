"""Relay orchestration.

    ChatRequest  →  (health probe | generate)  →  Ollama  →  ChatReply / HealthReply

Keeping this separate from FastAPI makes it easy to:
  - unit test the relay without running an HTTP server
  - swap the inference transport in tests

Errors are not caught here. `OllamaError` subclasses propagate to the web layer,
which owns the mapping to HTTP status codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from chatrelay.config import settings
from chatrelay.llm.ollama_client import OllamaClient
from chatrelay.models import ChatReply, HealthReply
from chatrelay.render import render_markdown


def _default_client() -> OllamaClient:
    return OllamaClient(
        base_url=settings.ollama_base_url,
        model=settings.ollama_model,
        timeout_s=settings.ollama_timeout_s,
    )


@dataclass
class RelayResult:
    """A relay reply plus whatever the inference server told us about the run."""

    response: Any
    model_info: Dict[str, Any]


class ChatRelay:
    """Forwards chat requests to the local inference server."""

    def __init__(self, client: Optional[OllamaClient] = None):
        self._client = client or _default_client()

    @property
    def client(self) -> OllamaClient:
        return self._client

    def check(self) -> RelayResult:
        """Probe the inference server. Raises `OllamaConnectionError` when down."""
        models = self._client.list_models()
        return RelayResult(
            response=HealthReply(status="connected"),
            model_info={"provider": "ollama", "installed_models": models},
        )

    def reply(self, message: str) -> RelayResult:
        """Generate the assistant's answer to `message`."""
        result = self._client.generate(message)
        return RelayResult(
            response=ChatReply(response=result.text, html=render_markdown(result.text)),
            model_info=result.model_info,
        )
