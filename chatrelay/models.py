"""Pydantic schemas (contracts) for the chat relay.

Two conceptual layers live here:

A) Wire schema of the relay endpoint
------------------------------------
The browser page and `ChatSession` both POST a `ChatRequest` to `/api/chat`
and get back exactly one of `ChatReply`, `HealthReply` or `ErrorReply`.
Field names are camelCase where the browser sends them (`checkOnly`).

B) Conversation turns
---------------------
`Message` is one turn of the in-memory conversation. The relay itself never
sees the list; only the UI side keeps it.

"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Relay wire schema
# ---------------------------------------------------------------------------

class ChatRequest(BaseModel):
    """Body of `POST /api/chat`.

    With `checkOnly` set, `message` is ignored and the relay only probes the
    inference server. Otherwise `message` is forwarded as the prompt, as is.
    A missing or null `message` is treated as empty.
    """

    message: str = ""
    checkOnly: bool = False

    @field_validator("message", mode="before")
    @classmethod
    def _null_message_is_empty(cls, value):
        return "" if value is None else value


class ChatReply(BaseModel):
    """Successful generation.

    `response` is the raw model text; `html` is the same text rendered to
    safe HTML so the page can display it without interpreting model output.
    """

    response: str
    html: str = ""


class HealthReply(BaseModel):
    status: str = "connected"


class ErrorReply(BaseModel):
    error: str


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------

class Role(str, Enum):
    user = "user"
    assistant = "assistant"
    error = "error"


class Message(BaseModel):
    """One turn. Identity is its position in the conversation."""

    role: Role
    content: str = Field(default="")
