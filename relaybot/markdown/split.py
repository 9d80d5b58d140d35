"""HTML-aware splitting of long messages into balanced chunks.

A cut is searched from the full budget downward so the first chunk is as
long as possible while still closing every tag it opens.  When no balanced
cut exists within the search window, the chunk is cut anyway and repaired:
open tags are closed at the end of the chunk and reopened, attributes
included, at the start of the next one.
"""

from __future__ import annotations

import re

from loguru import logger

from relaybot.config.schema import SplitterConfig
from relaybot.markdown.tags import (
    OpenTag,
    TextRun,
    find_tag_start,
    is_balanced,
    open_tag_tokens,
    tokenize,
)

# Break sequences in priority order
BREAKS = ("\n\n", "\n", ". ", ", ", " ")

_ENTITY_RE = re.compile(r"&#?\w+;")
_MAX_ENTITY_LEN = 10


def _natural_cutoff(text: str, n: int, floor: int) -> int:
    """Last break at or before *n* that lies above *floor*, else *n*."""
    for sep in BREAKS:
        pos = text.rfind(sep, 0, n)
        if pos > floor:
            return pos + len(sep)
    return n


def _safe_cutoff(text: str, n: int, floor: int) -> int:
    """Natural cutoff moved off any tag or entity it would cut through."""
    offset = _natural_cutoff(text, n, floor)

    tag_start = find_tag_start(text, offset)
    if tag_start > 0:
        offset = tag_start

    amp = text.rfind("&", max(0, offset - _MAX_ENTITY_LEN), offset)
    if amp > 0 and ";" not in text[amp:offset] and _ENTITY_RE.match(text, amp):
        offset = amp

    return max(offset, 1)


def find_split_offset(
    text: str,
    max_length: int,
    config: SplitterConfig | None = None,
) -> int:
    """Find where to cut *text* so the head fits *max_length*.

    Returns the longest balanced cut found between ``min_ratio`` and the full
    budget.  If there is none, returns a degraded cut near ``fallback_ratio``
    that the caller must repair.
    """
    cfg = config or SplitterConfig()
    floor = int(max_length * cfg.min_ratio)

    tried: set[int] = set()
    for n in range(max_length, floor - 1, -cfg.step):
        offset = _safe_cutoff(text, n, floor)
        if offset in tried:
            continue
        tried.add(offset)
        if is_balanced(text[:offset]):
            logger.debug(f"Balanced split at {offset} (budget {max_length})")
            return offset

    offset = _safe_cutoff(text, max(1, int(max_length * cfg.fallback_ratio)), floor)
    logger.debug(f"No balanced split within budget {max_length}, degraded cut at {offset}")
    return offset


def _visible_end(text: str, start: int) -> int:
    """End of the first visible character (or entity) at or after *start*."""
    for tok in tokenize(text[start:]):
        if not isinstance(tok, TextRun):
            continue
        stripped = tok.text.lstrip()
        if stripped:
            pos = start + tok.end - len(stripped)
            m = _ENTITY_RE.match(text, pos)
            return m.end() if m else pos + 1
    return len(text)


def _content_cut(text: str, offset: int) -> tuple[int, list[OpenTag]]:
    """Move *offset* forward until the innermost open tag holds visible text."""
    opened = open_tag_tokens(text[:offset])
    if not opened:
        return offset, opened
    inner = text[opened[-1].end:offset]
    if any(isinstance(tok, TextRun) and tok.text.strip() for tok in tokenize(inner)):
        return offset, opened
    offset = _visible_end(text, opened[-1].end)
    return offset, open_tag_tokens(text[:offset])


def _repair(
    text: str,
    offset: int,
    max_length: int,
    cfg: SplitterConfig,
) -> tuple[str, str]:
    """Cut *text* at *offset*, closing open tags on the head and reopening them on the tail.

    The head always keeps at least one visible character after its innermost
    open tag, so the reopened tail is strictly shorter than *text*.
    """
    offset, opened = _content_cut(text, offset)
    prefix = text[:offset].strip()
    closing = "".join(f"</{tag.name}>" for tag in reversed(opened))

    attempts = 0
    while len(prefix) + len(closing) > max_length and attempts < cfg.max_shrink_attempts:
        attempts += 1
        n = max(1, int(offset * cfg.shrink_factor))
        shorter, shorter_opened = _content_cut(text, _safe_cutoff(text, n, int(n * cfg.min_ratio)))
        if shorter >= offset:
            break
        offset, opened = shorter, shorter_opened
        prefix = text[:offset].strip()
        closing = "".join(f"</{tag.name}>" for tag in reversed(opened))

    if len(prefix) + len(closing) > max_length:
        logger.warning(
            f"Repaired chunk is {len(prefix) + len(closing)} chars, over the "
            f"{max_length} budget after {attempts} shrink attempts"
        )

    rest = text[offset:].strip()
    if rest:
        rest = "".join(tag.raw for tag in opened) + rest

    if opened:
        logger.debug(f"Repaired split at {offset}: reopened {[t.name for t in opened]}")
    return prefix + closing, rest


def split_html(
    text: str,
    max_length: int | None = None,
    config: SplitterConfig | None = None,
) -> list[str]:
    """Split HTML *text* into chunks of at most *max_length* characters.

    Text within the budget is returned as ``[text]`` untouched.  For balanced
    input every chunk is balanced on its own; a chunk only exceeds the budget
    when tag repair cannot shrink it enough, which is logged.
    """
    cfg = config or SplitterConfig()
    limit = cfg.max_length if max_length is None else max_length
    if limit < 1:
        raise ValueError(f"max_length must be positive, got {limit}")

    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    remaining = text
    while len(remaining) > limit:
        offset = find_split_offset(remaining, limit, cfg)
        prefix = remaining[:offset].strip()
        if is_balanced(prefix):
            rest = remaining[offset:].strip()
        else:
            prefix, rest = _repair(remaining, offset, limit, cfg)
        if prefix:
            chunks.append(prefix)
        remaining = rest

    if remaining:
        chunks.append(remaining)

    logger.debug(f"Split {len(text)} chars into {len(chunks)} chunks (budget {limit})")
    return chunks


split = split_html
