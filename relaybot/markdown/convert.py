"""Markdown to Telegram HTML converter.

Handles the constrained Markdown dialect the assistant emits and renders it
with the fixed tag set Telegram accepts: ``b``, ``i``, ``s``, ``code``,
``pre``, ``pre > code[class]``, ``a[href]`` and ``blockquote``.

Code fences and blockquote lines are rendered first and swapped for
placeholders so the escaping and inline passes never touch them.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from relaybot.markdown.tags import is_balanced

H1_ICON = "📋"
H2_ICON = "🔸"
BULLET = "•"

_FENCE_RE = re.compile(r"```(?:([\w+#.-]+)?\n)?([\s\S]*?)```")
_QUOTE_RE = re.compile(r"^> (.*)$", re.MULTILINE)
_PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")

_H1_RE = re.compile(r"^# (.*)$", re.MULTILINE)
_H2_RE = re.compile(r"^##{1,2} (.*)$", re.MULTILINE)
_BOLD_RE = re.compile(r"\*\*([^\n]+?)\*\*")
_ITALIC_RE = re.compile(r"\*(?=[^\s*])([^*\n]+?)(?<=[^\s*])\*")
_STRIKE_RE = re.compile(r"~~([^\n]+?)~~")
_CODE_RE = re.compile(r"`([^`]+)`")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")
_NUMBERED_RE = re.compile(r"^\d+\.[ \t]+", re.MULTILINE)
_NEWLINES_RE = re.compile(r"\n{4,}")


def escape_html(text: str | None) -> str:
    """Escape ``&``, ``<`` and ``>``. Ampersand goes first."""
    if not text:
        return ""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _escape_attr(value: str) -> str:
    return value.replace('"', "&quot;")


def _wrap(open_tag: str, close_tag: str) -> Callable[[re.Match], str]:
    """Build a substitution that wraps the first group if it is balanced.

    Content that would cross-nest with tags produced by an earlier pass is
    left untouched.
    """
    def repl(m: re.Match) -> str:
        content = m.group(1)
        if not is_balanced(content):
            return m.group(0)
        return f"{open_tag}{content}{close_tag}"
    return repl


def _link(m: re.Match) -> str:
    label, href = m.group(1), m.group(2)
    if not is_balanced(label):
        return m.group(0)
    return f'<a href="{_escape_attr(href)}">{label}</a>'


def _render_fence(lang: str | None, code: str) -> str:
    body = escape_html(code.strip())
    if lang:
        return f'<pre><code class="language-{lang}">{body}</code></pre>'
    return f"<pre>{body}</pre>"


def _restore(text: str, segments: list[str]) -> str:
    def repl(m: re.Match) -> str:
        # Quote segments can hold fence placeholders; those always have lower indexes.
        return _restore(segments[int(m.group(1))], segments)
    return _PLACEHOLDER_RE.sub(repl, text)


def markdown_to_html(text: object) -> str:
    """Convert assistant Markdown to Telegram-safe HTML.

    Returns ``""`` for ``None`` or any non-string input. The result only uses
    the fixed tag vocabulary and is always tag-balanced.
    """
    if not text or not isinstance(text, str):
        return ""

    # NUL delimits placeholders below
    text = text.replace("\x00", "")
    segments: list[str] = []

    def protect(rendered: str) -> str:
        segments.append(rendered)
        return f"\x00{len(segments) - 1}\x00"

    # 1. Fenced code blocks
    out = _FENCE_RE.sub(lambda m: protect(_render_fence(m.group(1), m.group(2))), text)

    # 2. Blockquote lines
    out = _QUOTE_RE.sub(
        lambda m: protect(f"<blockquote>{escape_html(m.group(1))}</blockquote>"), out
    )

    # 3. Escape everything else
    out = escape_html(out)

    # 4. Inline markdown, order matters
    out = _H1_RE.sub(rf"<b>{H1_ICON} \1</b>", out)
    out = _H2_RE.sub(rf"<b>{H2_ICON} \1</b>", out)
    out = _BOLD_RE.sub(_wrap("<b>", "</b>"), out)
    out = _ITALIC_RE.sub(_wrap("<i>", "</i>"), out)
    out = _STRIKE_RE.sub(_wrap("<s>", "</s>"), out)
    out = _CODE_RE.sub(_wrap("<code>", "</code>"), out)
    out = _LINK_RE.sub(_link, out)
    out = _NUMBERED_RE.sub(f"{BULLET} ", out)
    out = _NEWLINES_RE.sub("\n\n\n", out)

    # 5. Put protected segments back
    return _restore(out, segments)


convert = markdown_to_html
