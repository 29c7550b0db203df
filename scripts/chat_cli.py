#!/usr/bin/env python3
"""
Terminal chat against a running relay.

Drives the same `ChatSession` state machine the browser page uses, so it is a
quick way to try the relay without a browser:

  python scripts/chat_cli.py --url http://127.0.0.1:3000/api/chat

Type `/quit` (or Ctrl-D) to leave.
"""

from __future__ import annotations

import argparse
import asyncio

# IMPORTANT:
# Run this script from the repo root (or install the package) so `chatrelay.*` resolves.
from chatrelay.config import configure_logging
from chatrelay.models import Role
from chatrelay.session import ChatSession


_PREFIX = {Role.user: "you", Role.assistant: "ai", Role.error: "!!"}


def _print_turn(message) -> None:
    print(f"[{_PREFIX[message.role]}] {message.content}\n")


async def _chat(url: str) -> None:
    async with ChatSession(url) as session:
        for message in session.messages:
            _print_turn(message)

        connected = await session.check_connection()
        print("Connected to Ollama\n" if connected else "Not connected\n")

        loop = asyncio.get_running_loop()
        while True:
            try:
                line = await loop.run_in_executor(None, input, "> ")
            except EOFError:
                break
            if line.strip() == "/quit":
                break

            seen = len(session.messages)
            if not await session.submit(line):
                continue
            # The user turn was already echoed by the terminal.
            for message in session.messages[seen + 1:]:
                _print_turn(message)


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--url", default="http://127.0.0.1:3000/api/chat")
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args()

    configure_logging(args.log_level.upper())
    try:
        asyncio.run(_chat(args.url))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
