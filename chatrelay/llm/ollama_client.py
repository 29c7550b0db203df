"""Ollama inference client.

Talks to the two Ollama endpoints the relay needs:

- `GET  /api/tags`      lists installed models; used as a liveness probe
- `POST /api/generate`  one-shot, non-streaming completion

HTTP-level outcomes are turned into exceptions here so the FastAPI layer only
has to map exception types to status codes:

- 404 from `/api/generate`       -> `ModelNotFoundError`
- any other non-2xx              -> `OllamaStatusError`
- refused / unreachable / timeout -> `OllamaConnectionError`

A fresh `httpx.Client` is opened per call. The relay is stateless and each
request stands on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx


logger = logging.getLogger(__name__)


class OllamaError(Exception):
    """Base class for everything the inference server can do wrong."""


class ModelNotFoundError(OllamaError):
    def __init__(self, model: str):
        super().__init__(f"Model not found. Run: ollama pull {model}")
        self.model = model


class OllamaConnectionError(OllamaError):
    def __init__(self, base_url: str, cause: Optional[Exception] = None):
        super().__init__("Cannot connect to Ollama. Make sure it's running: ollama serve")
        self.base_url = base_url
        self.cause = cause


class OllamaStatusError(OllamaError):
    def __init__(self, status_code: int):
        super().__init__(f"Ollama error: {status_code}")
        self.status_code = status_code


@dataclass
class OllamaResult:
    text: str
    model_info: Dict[str, Any]


class OllamaClient:
    """Thin wrapper around Ollama's REST API."""

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout_s
        self._transport = transport

    @property
    def model(self) -> str:
        return self._model

    @property
    def base_url(self) -> str:
        return self._base_url

    def _http(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    def list_models(self) -> List[str]:
        """Return the names of locally installed models.

        Raises `OllamaConnectionError` if the server cannot be reached or
        answers with anything but 2xx.
        """
        try:
            with self._http() as client:
                r = client.get("/api/tags")
        except httpx.TransportError as e:
            raise OllamaConnectionError(self._base_url, e) from e

        if not r.is_success:
            logger.warning("Ollama /api/tags answered %s", r.status_code)
            raise OllamaConnectionError(self._base_url)

        # Reachability is decided by the status alone; the body is best effort.
        try:
            data = r.json()
        except ValueError:
            return []
        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            return []
        return [str(m.get("name", "")) for m in models if isinstance(m, dict)]

    def generate(self, prompt: str) -> OllamaResult:
        """Run one non-streaming completion with the configured model."""
        payload = {"model": self._model, "prompt": prompt, "stream": False}

        try:
            with self._http() as client:
                r = client.post("/api/generate", json=payload)
        except httpx.TransportError as e:
            raise OllamaConnectionError(self._base_url, e) from e

        if r.status_code == 404:
            raise ModelNotFoundError(self._model)
        if not r.is_success:
            raise OllamaStatusError(r.status_code)

        data = r.json()

        model_info: Dict[str, Any] = {"provider": "ollama", "model": data.get("model", self._model)}
        for key in ("total_duration", "prompt_eval_count", "eval_count"):
            if key in data:
                model_info[key] = data[key]

        return OllamaResult(text=data.get("response") or "", model_info=model_info)
