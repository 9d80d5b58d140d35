"""Unified entry point for markdown → Telegram HTML chunking."""

from __future__ import annotations

import re

from relaybot.config.schema import SplitterConfig
from relaybot.markdown.chunk import chunk_text
from relaybot.markdown.convert import markdown_to_html
from relaybot.markdown.split import split_html

_HTML_TAG_RE = re.compile(r"<[^>]+>")


def has_html_tags(text: str) -> bool:
    """Check whether text already carries HTML markup."""
    return isinstance(text, str) and bool(_HTML_TAG_RE.search(text))


def split_message(
    text: str,
    max_length: int = 4000,
    config: SplitterConfig | None = None,
) -> list[str]:
    """Split a message, HTML-aware when it contains tags."""
    if has_html_tags(text):
        return split_html(text, max_length, config)
    return chunk_text(text, max_length)


def markdown_to_telegram_chunks(
    md: str,
    limit: int = 4000,
    config: SplitterConfig | None = None,
) -> list[str]:
    """Convert markdown to a list of Telegram-safe HTML strings.

    Each string is balanced HTML of at most *limit* characters. The default
    limit of 4000 leaves headroom below Telegram's 4096-character cap.
    """
    if not md:
        return [""]

    html = markdown_to_html(md)
    return split_html(html, limit, config)
