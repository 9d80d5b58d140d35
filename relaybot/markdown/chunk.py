"""Plain text splitting for messages without markup."""

from __future__ import annotations

from relaybot.markdown.split import BREAKS

# Breaks at or below this share of the limit are ignored
MIN_BREAK_RATIO = 0.3


def chunk_text(text: str, limit: int) -> list[str]:
    """Split text into chunks of at most *limit* characters.

    Split priority: paragraph (\\n\\n) > newline (\\n) > sentence (". ") >
    comma (", ") > space > hard cut.
    """
    if not text or not isinstance(text, str):
        return []
    if limit < 1:
        raise ValueError(f"limit must be positive, got {limit}")
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    remaining = text

    while len(remaining) > limit:
        split_pos = _find_split(remaining, limit)
        chunk = remaining[:split_pos].strip()
        if chunk:
            chunks.append(chunk)
        remaining = remaining[split_pos:].strip()

    if remaining:
        chunks.append(remaining)

    return chunks


def _find_split(text: str, limit: int) -> int:
    """Find the best split position within the first *limit* characters."""
    for sep in BREAKS:
        pos = text.rfind(sep, 0, limit)
        if pos > limit * MIN_BREAK_RATIO:
            return pos + len(sep)
    return limit
