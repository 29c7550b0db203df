"""Markdown → safe HTML for chat bubbles.

Model output is untrusted. We render it with markdown-it-py in CommonMark mode
with raw HTML switched off, so any `<script>` (or other tag) the model emits
comes out as escaped text. markdown-it's link validator already refuses
`javascript:`, `vbscript:` and `file:` URLs; those stay literal text.

BeautifulSoup is then used for a light decoration pass (links open in a new tab
without handing over `window.opener`).
"""
from __future__ import annotations

from bs4 import BeautifulSoup
from markdown_it import MarkdownIt


_md = MarkdownIt("commonmark", {"html": False, "breaks": True}).enable(["table", "strikethrough"])


def render_markdown(text: str) -> str:
    """Render `text` to an HTML fragment safe to assign to `innerHTML`."""
    if not text or not text.strip():
        return ""

    soup = BeautifulSoup(_md.render(text), "lxml")
    for a in soup.find_all("a"):
        a["target"] = "_blank"
        a["rel"] = "noopener noreferrer"

    # lxml wraps fragments in <html><body>; hand back only the fragment.
    body = soup.body
    if body is None:
        return ""
    return "".join(str(node) for node in body.contents).strip()
