"""FastAPI app for the local chat relay.

The browser page posts every chat turn here; the relay forwards it to a
locally running Ollama server and hands the answer back.

ENDPOINTS

  GET  /                  -> chat page (HTML, CSS and JS assembled from templates/)
  POST /api/chat          -> relay: health probe or one generation
  GET  /api/v1/apidata    -> API metadata and endpoint listing
  GET  /api/v1/health     -> Health diagnostics

"""

from __future__ import annotations

import html
import logging
import platform
import time
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse

from chatrelay.config import configure_logging, settings
from chatrelay.llm.ollama_client import (
    ModelNotFoundError,
    OllamaConnectionError,
    OllamaError,
)
from chatrelay.models import ChatReply, ChatRequest, ErrorReply
from chatrelay.relay import ChatRelay
from chatrelay.render import render_markdown
from chatrelay.session import GREETING


logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


app = FastAPI(
    title="Local Chat Relay",
    version=settings.api_version,
    description="Browser chat UI relayed to a local Ollama server",
)

_relay = ChatRelay()


# Track server startup time for health diagnostics.
_started_at = datetime.now(timezone.utc)
_start_monotonic = time.monotonic()

# Recent errors for the health endpoint (ring buffer, last 50).
_recent_errors: List[Dict[str, Any]] = []
_MAX_ERRORS = 50

_request_counts: Dict[str, int] = {
    "chat": 0,
    "health_check": 0,
    "total": 0,
}

# model_info of the last successful relay call, for the health endpoint.
_last_run: Dict[str, Any] = {}


def _record_error(endpoint: str, error: str) -> None:
    """Record an error for the health endpoint."""
    _recent_errors.append({
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoint": endpoint,
        "error": str(error)[:500],
    })
    while len(_recent_errors) > _MAX_ERRORS:
        _recent_errors.pop(0)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorReply(error=message).model_dump())


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request: " + ("; ".join(parts) or "malformed body")


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    """Malformed bodies get the same `{"error": ...}` shape as relay failures."""
    message = _describe_validation(exc)
    _record_error(request.url.path, message)
    logger.error("API Error: %s", message)
    return _error(500, message)


@lru_cache(maxsize=1)
def load_page() -> str:
    """Assemble the chat page from templates/ (read once per process)."""
    page = (TEMPLATES_DIR / "index.html").read_text(encoding="utf-8")
    css = (TEMPLATES_DIR / "styles.css").read_text(encoding="utf-8")
    js = (TEMPLATES_DIR / "app.js").read_text(encoding="utf-8")

    replacements = {
        "{{TITLE}}": html.escape(settings.app_title),
        "{{SUBTITLE}}": html.escape(settings.app_subtitle),
        "{{GREETING_HTML}}": render_markdown(GREETING),
        "{{CSS_PLACEHOLDER}}": css,
        "{{JS_PLACEHOLDER}}": js,
    }
    for placeholder, value in replacements.items():
        page = page.replace(placeholder, value)
    return page


@app.get("/", response_class=HTMLResponse)
def index():
    return HTMLResponse(load_page())


@app.post(
    "/api/chat",
    responses={
        200: {"model": ChatReply},
        404: {"model": ErrorReply},
        500: {"model": ErrorReply},
        503: {"model": ErrorReply},
    },
)
def chat(payload: ChatRequest):
    """Relay one request to Ollama.

    `checkOnly` requests only probe the server's model listing. Everything else
    is a non-streaming generation with the configured model. Failures come back
    as `{"error": ...}` with 404 (model missing), 503 (Ollama unreachable) or
    500 (anything else).
    """
    kind = "health_check" if payload.checkOnly else "chat"
    _request_counts[kind] += 1
    _request_counts["total"] += 1

    try:
        if payload.checkOnly:
            result = _relay.check()
        else:
            result = _relay.reply(payload.message)
    except ModelNotFoundError as e:
        _record_error("/api/chat", str(e))
        logger.error("API Error: %s", e)
        return _error(404, str(e))
    except OllamaConnectionError as e:
        _record_error("/api/chat", str(e))
        logger.error("API Error: %s (%s)", e, e.cause or e.base_url)
        return _error(503, str(e))
    except OllamaError as e:
        _record_error("/api/chat", str(e))
        logger.error("API Error: %s", e)
        return _error(500, str(e))
    except Exception as e:
        _record_error("/api/chat", str(e))
        logger.exception("API Error")
        return _error(500, str(e) or "Unknown error")

    _last_run.clear()
    _last_run.update(result.model_info, kind=kind, at=datetime.now(timezone.utc).isoformat())
    return result.response


@app.get("/api/v1/apidata")
def apidata():
    """Returns API information: name, version, endpoints, configured model."""
    return {
        "name": "Local Chat Relay",
        "version": settings.api_version,
        "description": "Relays browser chat turns to a local Ollama server and returns the answer.",
        "model": _relay.client.model,
        "endpoints": [
            {
                "method": "GET",
                "path": "/",
                "description": "Chat page.",
            },
            {
                "method": "POST",
                "path": "/api/chat",
                "description": "Relay a message to Ollama, or probe it with checkOnly.",
            },
            {
                "method": "GET",
                "path": "/api/v1/apidata",
                "description": "API metadata, version, and endpoint listing.",
            },
            {
                "method": "GET",
                "path": "/api/v1/health",
                "description": "Health diagnostics: uptime, status, recent errors.",
            },
        ],
    }


@app.get("/api/v1/health")
def health():
    """Returns health diagnostics: status, uptime, recent errors, system info.

    This reports on the relay process itself. Whether Ollama is reachable is
    what `POST /api/chat` with `checkOnly` answers.
    """
    uptime_s = round(time.monotonic() - _start_monotonic, 2)

    recent_window = [
        e for e in _recent_errors
        if (datetime.now(timezone.utc) - datetime.fromisoformat(e["timestamp"])).total_seconds() < 300
    ]
    status = "degraded" if len(recent_window) >= 10 else "healthy"

    return {
        "status": status,
        "uptime_seconds": uptime_s,
        "started_at": _started_at.isoformat(),
        "checks": {
            "llm_provider": {
                "provider": "ollama",
                "base_url": _relay.client.base_url,
                "model": _relay.client.model,
            },
            "python_version": platform.python_version(),
        },
        "request_counts": dict(_request_counts),
        "recent_errors": _recent_errors[-10:],
        "last_run": dict(_last_run),
        "version": settings.api_version,
    }


def run() -> None:
    """Console entry point: configure logging and serve with uvicorn."""
    import uvicorn

    configure_logging()
    logger.info(
        "Relaying to %s (model %s)", settings.ollama_base_url, settings.ollama_model
    )
    uvicorn.run(
        "chatrelay.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
