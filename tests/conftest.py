"""Shared fixtures: an in-process fake of the Ollama REST API.

Nothing here opens a socket. `FakeOllama.handler` is plugged into
`httpx.MockTransport`, and the relay app's module-level `_relay` is swapped for
one that talks to it.
"""

from __future__ import annotations

from typing import Any, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

import chatrelay.main as main_module
from chatrelay.llm.ollama_client import OllamaClient
from chatrelay.relay import ChatRelay


OLLAMA_URL = "http://ollama.test"

CANNOT_CONNECT = "Cannot connect to Ollama. Make sure it's running: ollama serve"


class FakeOllama:
    """Answers `/api/tags` and `/api/generate` like a local Ollama would."""

    def __init__(
        self,
        *,
        refuse: bool = False,
        tags_status: int = 200,
        tags_json: Optional[Any] = None,
        generate_status: int = 200,
        generate_json: Optional[Any] = None,
        generate_text: Optional[str] = None,
    ):
        self.refuse = refuse
        self.tags_status = tags_status
        self.tags_json = tags_json if tags_json is not None else {"models": [{"name": "llama3.2:latest"}]}
        self.generate_status = generate_status
        self.generate_json = generate_json if generate_json is not None else {
            "model": "llama3.2",
            "response": "Hello from **llama**",
            "done": True,
            "eval_count": 7,
        }
        self.generate_text = generate_text
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.refuse:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

        if request.url.path == "/api/tags":
            if self.tags_status != 200:
                return httpx.Response(self.tags_status, json={"error": "boom"})
            return httpx.Response(200, json=self.tags_json)

        if request.url.path == "/api/generate":
            if self.generate_status == 404:
                return httpx.Response(404, json={"error": "model 'llama3.2' not found"})
            if self.generate_text is not None:
                return httpx.Response(self.generate_status, text=self.generate_text)
            return httpx.Response(self.generate_status, json=self.generate_json)

        return httpx.Response(404)

    def client(self, model: str = "llama3.2") -> OllamaClient:
        return OllamaClient(OLLAMA_URL, model, transport=httpx.MockTransport(self.handler))

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def install_ollama(monkeypatch):
    """Point the relay app at a `FakeOllama`; returns the fake for inspection."""

    def _install(fake: Optional[FakeOllama] = None) -> FakeOllama:
        fake = fake or FakeOllama()
        monkeypatch.setattr(main_module, "_relay", ChatRelay(client=fake.client()))
        return fake

    return _install


@pytest.fixture
def client():
    return TestClient(main_module.app)
