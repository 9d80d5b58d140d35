"""HTML tag tokenizer and balance analysis.

Scans a string into a flat token list (open / close / self-closing tags and
text runs) and answers balance questions over that list.  Closing tags are
matched strictly against the top of the stack: cross-nested markup such as
``<b><i>x</b></i>`` is reported as unbalanced.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_TAG_RE = re.compile(r"<(/?)([a-zA-Z][a-zA-Z0-9]*)\b([^<>]*)>")
_TAG_START_RE = re.compile(r"</?[a-zA-Z]")


@dataclass
class OpenTag:
    name: str
    raw: str
    start: int
    end: int


@dataclass
class CloseTag:
    name: str
    raw: str
    start: int
    end: int


@dataclass
class SelfClosingTag:
    name: str
    raw: str
    start: int
    end: int


@dataclass
class TextRun:
    text: str
    start: int
    end: int


Token = OpenTag | CloseTag | SelfClosingTag | TextRun


def tokenize(s: str) -> list[Token]:
    """Split *s* into tag and text tokens. Unparseable markup stays text."""
    tokens: list[Token] = []
    pos = 0
    for m in _TAG_RE.finditer(s):
        if m.start() > pos:
            tokens.append(TextRun(text=s[pos:m.start()], start=pos, end=m.start()))
        raw = m.group(0)
        name = m.group(2).lower()
        if m.group(1):
            tokens.append(CloseTag(name=name, raw=raw, start=m.start(), end=m.end()))
        elif m.group(3).endswith("/"):
            tokens.append(SelfClosingTag(name=name, raw=raw, start=m.start(), end=m.end()))
        else:
            tokens.append(OpenTag(name=name, raw=raw, start=m.start(), end=m.end()))
        pos = m.end()
    if pos < len(s):
        tokens.append(TextRun(text=s[pos:], start=pos, end=len(s)))
    return tokens


def is_balanced(s: str) -> bool:
    """Return True if every opened tag in *s* is closed in LIFO order."""
    stack: list[str] = []
    for tok in tokenize(s):
        if isinstance(tok, OpenTag):
            stack.append(tok.name)
        elif isinstance(tok, CloseTag):
            if not stack or stack[-1] != tok.name:
                return False
            stack.pop()
    return not stack


def open_tag_tokens(s: str) -> list[OpenTag]:
    """Return the opening tags still open at the end of *s*, oldest first.

    Best effort on malformed input: a close that does not match the top of
    the stack removes the most recent open tag of that name, and a close with
    no open tag of that name is ignored.
    """
    stack: list[OpenTag] = []
    for tok in tokenize(s):
        if isinstance(tok, OpenTag):
            stack.append(tok)
        elif isinstance(tok, CloseTag):
            for i in range(len(stack) - 1, -1, -1):
                if stack[i].name == tok.name:
                    del stack[i]
                    break
    return stack


def open_tags_at(s: str) -> list[str]:
    """Return the names of tags still open at the end of *s*, oldest first."""
    return [tok.name for tok in open_tag_tokens(s)]


def find_tag_start(s: str, offset: int) -> int:
    """Return the index of a tag's ``<`` if *offset* falls inside that tag.

    Returns -1 when ``s[:offset]`` does not end in an unterminated tag.
    """
    start = s.rfind("<", 0, offset)
    if start == -1 or not _TAG_START_RE.match(s, start):
        return -1
    end = s.find(">", start)
    if end == -1 or end >= offset:
        return start
    return -1
