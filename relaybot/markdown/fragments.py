"""HTML fragments for the non-text parts of an assistant stream.

Thinking blocks, todo lists, tool calls, run results and errors are rendered
directly to Telegram HTML here instead of going through the Markdown
converter.  All user-provided content is escaped; only the fixed tag set is
emitted. Long tool payloads are cut to a short preview before escaping.
"""

from __future__ import annotations

import json
import re
from typing import Any

from relaybot.markdown.convert import escape_html

TOOL_ICONS = {
    "edit": "✏️",
    "write": "📝",
    "read": "👀",
    "bash": "💻",
    "task": "🤖",
    "mcp": "🔌",
}

# Carriage returns and control characters other than \t and \n
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")

STATUS_ICONS = {
    "completed": "✅",
    "in_progress": "🔄",
    "pending": "⭕",
    "blocked": "🚧",
}

STATUS_NAMES = {
    "completed": "✅ Completed",
    "in_progress": "🔄 In Progress",
    "pending": "⭕ Pending",
    "blocked": "🚧 Blocked",
}

PRIORITY_BADGES = {
    "critical": "🚨",
    "high": "🔴",
    "medium": "🟡",
    "low": "🟢",
}

# Section order in a rendered todo list
STATUS_ORDER = ("in_progress", "pending", "blocked", "completed")


def format_thinking(thinking: str) -> str:
    """Render the assistant's thinking text as a preformatted block."""
    return f"🤔 <b>Thinking...</b>\n\n<pre>{escape_html(thinking)}</pre>"


def format_todo_list(todos: list[dict[str, Any]]) -> str:
    """Render a todo list with a progress overview and per-status sections."""
    text = "📋 <b>Todo List</b>\n\n"
    if not todos:
        return text + "<i>No tasks</i>"

    counts = {status: 0 for status in STATUS_ICONS}
    for todo in todos:
        status = todo.get("status", "pending")
        counts[status] = counts.get(status, 0) + 1

    total = len(todos)
    percent = round(counts["completed"] / total * 100)
    text += f"📊 <b>Progress</b>: {counts['completed']}/{total} ({percent}%)\n"
    text += f"✅ {counts['completed']} | 🔄 {counts['in_progress']} | ⭕ {counts['pending']}"
    if counts["blocked"]:
        text += f" | 🚧 {counts['blocked']}"
    text += "\n\n"

    for status in STATUS_ORDER:
        items = [t for t in todos if t.get("status", "pending") == status]
        if not items:
            continue
        text += f"<b>{STATUS_NAMES[status]}</b> ({len(items)})\n"
        for todo in items:
            content = escape_html(str(todo.get("content", "")))
            badge = PRIORITY_BADGES.get(todo.get("priority") or "", "")
            suffix = f" {badge}" if badge else ""
            if status == "completed":
                text += f"{STATUS_ICONS[status]} <s>{content}</s>{suffix}\n"
            else:
                text += f"{STATUS_ICONS[status]} {content}{suffix}\n"
        text += "\n"

    return text.strip()


def todos_changed(
    old: list[dict[str, Any]] | None,
    new: list[dict[str, Any]] | None,
) -> bool:
    """Whether a live todo message needs to be edited."""
    if not old or not new:
        return True
    if len(old) != len(new):
        return True
    for before, after in zip(old, new):
        for key in ("status", "content", "priority"):
            if before.get(key) != after.get(key):
                return True
    return False


def _preview(value: Any, limit: int) -> str:
    """Stringify *value*, cut to *limit* chars and escape. Cut before escaping."""
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    if len(text) > limit:
        text = text[:limit] + "..."
    return escape_html(text)


def _status(tool_result: dict[str, Any], ok: str = "Success", label: str = "Result") -> str:
    if tool_result.get("is_error"):
        return f"❌ <b>{label}:</b> Failed"
    return f"✅ <b>{label}:</b> {ok}"


def format_file_edit(
    file_path: str,
    old_string: str,
    new_string: str,
    tool_result: dict[str, Any] | None = None,
) -> str:
    """Before/after preview of an edit, 100 chars per side."""
    text = f"{TOOL_ICONS['edit']} <b>File Edit</b>\n\n"
    text += f"📄 <code>{escape_html(file_path)}</code>\n\n"
    text += f"<b>Before:</b>\n<pre>{_preview(old_string, 100)}</pre>\n\n"
    text += f"<b>After:</b>\n<pre>{_preview(new_string, 100)}</pre>"
    if tool_result is not None:
        text += f"\n\n{_status(tool_result)}"
    return text


def format_file_write(
    file_path: str,
    content: str,
    tool_result: dict[str, Any] | None = None,
) -> str:
    text = f"{TOOL_ICONS['write']} <b>File Write</b>\n\n"
    text += f"📄 <code>{escape_html(file_path)}</code>\n\n"
    cleaned = _CONTROL_RE.sub("", content or "").strip()
    text += f"<b>Content:</b>\n<pre>{_preview(cleaned, 200)}</pre>"
    if tool_result is not None:
        text += f"\n\n{_status(tool_result)}"
    return text


def format_file_read(file_path: str, tool_result: dict[str, Any] | None = None) -> str:
    text = f"{TOOL_ICONS['read']} <b>File Read</b>\n\n"
    text += f"📄 <code>{escape_html(file_path)}</code>"
    if tool_result is None:
        return text
    if tool_result.get("is_error"):
        return text + "\n\n❌ <b>Error reading file</b>"
    if tool_result.get("content"):
        text += f"\n\n<b>Content:</b>\n<pre>{_preview(tool_result['content'], 500)}</pre>"
    return text


def format_bash_command(
    command: str,
    description: str | None = None,
    tool_result: dict[str, Any] | None = None,
) -> str:
    """Terminal command with optional output.

    Long or multi-line commands go in a ``bash`` code block, short ones
    inline. Output is previewed up to 300 chars.
    """
    text = f"{TOOL_ICONS['bash']} <b>Terminal Command</b>\n\n"
    if description:
        text += f"📝 <b>Description:</b> {escape_html(description)}\n\n"

    if len(command) > 100 or "\n" in command:
        text += f'💻 <b>Command:</b>\n<pre><code class="language-bash">{escape_html(command)}</code></pre>'
    else:
        text += f"💻 <code>{escape_html(command)}</code>"

    if tool_result is not None:
        text += f"\n\n{_status(tool_result)}"
        if tool_result.get("content"):
            text += f"\n\n<b>Output:</b>\n<pre>{_preview(tool_result['content'], 300)}</pre>"
    return text


def format_task_spawn(
    description: str,
    prompt: str,
    subagent_type: str,
    tool_result: dict[str, Any] | None = None,
) -> str:
    text = f"{TOOL_ICONS['task']} <b>Task Agent</b>\n\n"
    text += f"🤖 <b>Type:</b> {escape_html(subagent_type)}\n"
    text += f"📋 <b>Description:</b> {escape_html(description)}\n\n"
    text += f"<b>Prompt:</b>\n<pre>{_preview(prompt, 200)}</pre>"
    if tool_result is not None:
        text += f"\n\n{_status(tool_result, ok='Running', label='Status')}"
    return text


def format_mcp_tool(
    tool_name: str,
    tool_input: dict[str, Any] | None = None,
    tool_result: dict[str, Any] | None = None,
) -> str:
    """MCP tool call with its parameters (100 chars each) and output (200)."""
    text = f"{TOOL_ICONS['mcp']} <b>MCP Tool</b>\n\n"
    text += f"🔌 <b>Tool:</b> <code>{escape_html(tool_name)}</code>\n\n"

    if tool_input:
        text += "<b>Parameters:</b>\n"
        for key, value in tool_input.items():
            text += f"• <b>{escape_html(str(key))}:</b> <code>{_preview(value, 100)}</code>\n"

    if tool_result is not None:
        text += f"\n{_status(tool_result)}"
        if tool_result.get("content"):
            text += f"\n\n<b>Output:</b>\n<pre>{_preview(tool_result['content'], 200)}</pre>"
    return text.strip()


def format_session_init(session: dict[str, Any]) -> str:
    """Header sent when the assistant reports a new session."""
    session_id = session.get("session_id")
    short_id = escape_html(session_id[-8:]) if session_id else "Not started"
    tools = session.get("tools") or []
    return (
        "🚀 <b>Session Started</b>\n\n"
        f"🆔 <b>Session:</b> <code>{short_id}</code>\n"
        f"🤖 <b>Model:</b> {escape_html(session.get('model') or 'unknown')}\n"
        f"📁 <b>Directory:</b> <code>{escape_html(session.get('cwd') or 'unknown')}</code>\n"
        f"🔒 <b>Permissions:</b> {escape_html(session.get('permission_mode') or 'unknown')}\n"
        f"🛠 <b>Tools:</b> {len(tools)} available"
    )


def format_execution_result(
    success: bool,
    duration_ms: float | None = None,
    cost: float | None = None,
    usage: dict[str, int] | None = None,
    session_id: str | None = None,
) -> str:
    """Summary line block sent when an assistant run finishes."""
    if success:
        short_id = escape_html(session_id[-8:]) if session_id else "unknown"
        text = f"✅ <b>Session</b> <code>{short_id}</code> <b>ended</b>\n\n"
    else:
        text = "❌ <b>Execution Failed</b>\n\n"

    if duration_ms:
        text += f"⏱ <b>Duration:</b> {duration_ms / 1000:.2f}s\n"
    if cost:
        text += f"💰 <b>Cost:</b> ${cost:.4f}\n"
    if usage:
        tokens_in = usage.get("input_tokens", 0)
        tokens_out = usage.get("output_tokens", 0)
        text += f"🎯 <b>Tokens:</b> {tokens_in + tokens_out} ({tokens_in} in, {tokens_out} out)"

    return text.strip()


def format_error(error: BaseException | str, context: str = "") -> str:
    text = "❌ <b>Error</b>"
    if context:
        text += f" in {escape_html(context)}"
    return f"{text}\n\n<pre>{escape_html(str(error))}</pre>"
