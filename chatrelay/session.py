"""Client-side conversation state.

`ChatSession` is the chat UI's state machine, the same one the browser page
runs in `templates/app.js`:

    idle  --submit-->  awaiting-response  --reply or error-->  idle

- The conversation is an append-only list of `Message` turns, kept in memory
  only. It starts with one assistant greeting.
- At most one request is in flight. `submit()` while awaiting a response, or
  with blank input, does nothing and sends nothing.
- Every accepted submission appends exactly one user turn and then exactly one
  assistant or error turn.
- `connected` follows the last health check or the last exchange.

Uses `httpx.AsyncClient`; pass your own client (e.g. with a mock transport) to
control where requests go.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import httpx

from chatrelay.models import Message, Role


logger = logging.getLogger(__name__)

GREETING = "👋 Hello! I'm running locally on your computer. Ask me anything!"


def format_error(detail: str) -> str:
    return f"⚠️ Error: {detail}. Make sure Ollama is running!"


class ChatSession:
    def __init__(
        self,
        relay_url: str,
        http: Optional[httpx.AsyncClient] = None,
        greeting: Optional[str] = GREETING,
    ):
        self._relay_url = relay_url
        self._http = http
        self._messages: List[Message] = []
        if greeting:
            self._messages.append(Message(role=Role.assistant, content=greeting))
        self.connected = False
        self.pending = False

    @property
    def messages(self) -> Tuple[Message, ...]:
        """Snapshot of the conversation in send order."""
        return tuple(self._messages)

    async def __aenter__(self) -> "ChatSession":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            # Generation can be slow; the relay enforces any timeout.
            self._http = httpx.AsyncClient(timeout=None)
        return self._http

    async def check_connection(self) -> bool:
        """Ask the relay to probe Ollama and update `connected`."""
        try:
            r = await self._client().post(
                self._relay_url, json={"message": "test", "checkOnly": True}
            )
            self.connected = r.is_success
        except Exception as e:
            logger.debug("Health check failed: %s", e)
            self.connected = False
        return self.connected

    async def submit(self, text: str) -> bool:
        """Send one user turn. Returns False when the submission was ignored."""
        content = (text or "").strip()
        if not content or self.pending:
            return False

        self._messages.append(Message(role=Role.user, content=content))
        self.pending = True
        try:
            answer = await self._exchange(content)
        except Exception as e:
            # Any failure, relay or local, closes the turn with an error entry.
            detail = str(e) or type(e).__name__
            logger.error("Error: %s", detail)
            self._messages.append(Message(role=Role.error, content=format_error(detail)))
            self.connected = False
        else:
            self._messages.append(Message(role=Role.assistant, content=answer))
            self.connected = True
        finally:
            self.pending = False
        return True

    async def _exchange(self, content: str) -> str:
        try:
            r = await self._client().post(self._relay_url, json={"message": content})
        except httpx.HTTPError as e:
            raise _ExchangeError(str(e) or type(e).__name__) from e

        try:
            data = r.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not r.is_success:
            raise _ExchangeError(data.get("error") or "Failed to get response")
        return data.get("response") or ""


class _ExchangeError(Exception):
    pass
