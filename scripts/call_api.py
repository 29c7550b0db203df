"""Small utility to call the chat relay (local dev helper).

Conceptual purpose
------------------
When you're poking at the relay or at a freshly pulled model, you often want to
send one message and look at the raw JSON the page would get.

Technical behavior
------------------
- POSTs `{"message": ...}` (or a `checkOnly` probe) to the relay
- Prints the status code and the response JSON (pretty-printed) or raw text

Usage examples
--------------
Probe Ollama through the relay:
  python scripts/call_api.py --check

Ask something:
  python scripts/call_api.py --message "Write a haiku about SQLite"
"""

from __future__ import annotations

import argparse
import json

import httpx


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--url", default="http://127.0.0.1:3000/api/chat")
    ap.add_argument("--message", default="test")
    ap.add_argument("--check", action="store_true", help="Only ask the relay whether Ollama is reachable.")
    args = ap.parse_args()

    payload = {"message": args.message}
    if args.check:
        payload["checkOnly"] = True

    with httpx.Client(timeout=None) as client:
        r = client.post(args.url, json=payload)
        print("Status:", r.status_code)
        try:
            print(json.dumps(r.json(), indent=2, ensure_ascii=False))
        except ValueError:
            print(r.text)


if __name__ == "__main__":
    main()
