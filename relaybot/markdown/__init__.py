"""Markdown → Telegram HTML conversion and message chunking."""

from relaybot.markdown.convert import convert, escape_html, markdown_to_html
from relaybot.markdown.format import markdown_to_telegram_chunks, split_message
from relaybot.markdown.split import find_split_offset, split, split_html
from relaybot.markdown.tags import is_balanced, open_tags_at, tokenize

__all__ = [
    "convert",
    "escape_html",
    "find_split_offset",
    "is_balanced",
    "markdown_to_html",
    "markdown_to_telegram_chunks",
    "open_tags_at",
    "split",
    "split_html",
    "split_message",
    "tokenize",
]
