"""Tests for relaybot.markdown.fragments — thinking, todo, tool and result blocks."""

from relaybot.markdown.fragments import (
    format_bash_command,
    format_error,
    format_execution_result,
    format_file_edit,
    format_file_read,
    format_file_write,
    format_mcp_tool,
    format_session_init,
    format_task_spawn,
    format_thinking,
    format_todo_list,
    todos_changed,
)
from relaybot.markdown.tags import is_balanced


class TestThinking:
    def test_escaped_in_pre(self):
        result = format_thinking("if a < b && c:")
        assert result == "🤔 <b>Thinking...</b>\n\n<pre>if a &lt; b &amp;&amp; c:</pre>"


class TestTodoList:
    TODOS = [
        {"content": "Write tests", "status": "completed", "priority": "high"},
        {"content": "Fix <parser>", "status": "in_progress", "priority": "critical"},
        {"content": "Update docs", "status": "pending"},
        {"content": "Deploy", "status": "blocked", "priority": "low"},
    ]

    def test_progress_overview(self):
        result = format_todo_list(self.TODOS)
        assert "📊 <b>Progress</b>: 1/4 (25%)" in result
        assert "✅ 1 | 🔄 1 | ⭕ 1 | 🚧 1" in result

    def test_sections_in_order(self):
        result = format_todo_list(self.TODOS)
        order = [result.index(name) for name in ("In Progress", "Pending", "Blocked", "Completed")]
        assert order == sorted(order)

    def test_items(self):
        result = format_todo_list(self.TODOS)
        assert "✅ <s>Write tests</s> 🔴" in result
        assert "🔄 Fix &lt;parser&gt; 🚨" in result
        assert "⭕ Update docs\n" in result
        assert is_balanced(result)

    def test_no_blocked_count_when_none(self):
        result = format_todo_list([{"content": "a", "status": "pending"}])
        assert "🚧" not in result

    def test_empty(self):
        assert format_todo_list([]) == "📋 <b>Todo List</b>\n\n<i>No tasks</i>"


class TestTodosChanged:
    def test_missing_side(self):
        assert todos_changed(None, [{"content": "a"}]) is True
        assert todos_changed([{"content": "a"}], None) is True

    def test_same(self):
        todos = [{"content": "a", "status": "pending", "priority": "low"}]
        assert todos_changed(todos, [dict(todos[0])]) is False

    def test_status_change(self):
        old = [{"content": "a", "status": "pending"}]
        new = [{"content": "a", "status": "completed"}]
        assert todos_changed(old, new) is True

    def test_length_change(self):
        assert todos_changed([{"content": "a"}], [{"content": "a"}, {"content": "b"}]) is True


class TestExecutionResult:
    def test_success(self):
        result = format_execution_result(
            True,
            duration_ms=12340,
            cost=0.01234,
            usage={"input_tokens": 100, "output_tokens": 50},
            session_id="abcdef0123456789",
        )
        assert result.startswith("✅ <b>Session</b> <code>23456789</code> <b>ended</b>")
        assert "⏱ <b>Duration:</b> 12.34s" in result
        assert "💰 <b>Cost:</b> $0.0123" in result
        assert "🎯 <b>Tokens:</b> 150 (100 in, 50 out)" in result

    def test_failure(self):
        assert format_execution_result(False) == "❌ <b>Execution Failed</b>"


class TestError:
    def test_with_context(self):
        result = format_error(RuntimeError("bad <input>"), context="parser")
        assert result == "❌ <b>Error</b> in parser\n\n<pre>bad &lt;input&gt;</pre>"
        assert is_balanced(result)


class TestToolFragments:
    def test_file_edit_previews(self):
        result = format_file_edit("src/app.py", "a" * 150, "x < y", {"is_error": False})
        assert result.startswith("✏️ <b>File Edit</b>\n\n📄 <code>src/app.py</code>")
        assert "<b>Before:</b>\n<pre>" + "a" * 100 + "...</pre>" in result
        assert "<b>After:</b>\n<pre>x &lt; y</pre>" in result
        assert result.endswith("✅ <b>Result:</b> Success")
        assert is_balanced(result)

    def test_preview_cut_before_escaping(self):
        result = format_file_edit("f", "&" * 150, "")
        assert "<pre>" + "&amp;" * 100 + "...</pre>" in result

    def test_file_write_cleans_and_truncates(self):
        result = format_file_write("out.txt", "line1\r\nline2\x07", {"is_error": True})
        assert "<b>Content:</b>\n<pre>line1\nline2</pre>" in result
        assert result.endswith("❌ <b>Result:</b> Failed")

        long_result = format_file_write("out.txt", "z" * 300)
        assert "<pre>" + "z" * 200 + "...</pre>" in long_result
        assert "Result" not in long_result

    def test_file_read(self):
        assert format_file_read("a.md") == "👀 <b>File Read</b>\n\n📄 <code>a.md</code>"
        assert format_file_read("a.md", {"is_error": True}).endswith("❌ <b>Error reading file</b>")

        result = format_file_read("a.md", {"content": "b" * 600})
        assert "<pre>" + "b" * 500 + "...</pre>" in result

    def test_file_read_structured_content(self):
        result = format_file_read("data.json", {"content": {"key": "<v>"}})
        assert '<pre>{"key": "&lt;v&gt;"}</pre>' in result

    def test_bash_inline_command(self):
        result = format_bash_command("ls -la", "List <files>")
        assert "📝 <b>Description:</b> List &lt;files&gt;" in result
        assert result.endswith("💻 <code>ls -la</code>")

    def test_bash_block_command_with_output(self):
        result = format_bash_command("cd /tmp\nmake", tool_result={"content": "o" * 400})
        assert '💻 <b>Command:</b>\n<pre><code class="language-bash">cd /tmp\nmake</code></pre>' in result
        assert "✅ <b>Result:</b> Success" in result
        assert "<b>Output:</b>\n<pre>" + "o" * 300 + "...</pre>" in result
        assert is_balanced(result)

    def test_long_bash_command_uses_block(self):
        assert "language-bash" in format_bash_command("echo " + "x" * 120)

    def test_task_spawn(self):
        result = format_task_spawn("Find bugs", "p" * 250, "general-purpose", {"is_error": False})
        assert "🤖 <b>Type:</b> general-purpose\n📋 <b>Description:</b> Find bugs" in result
        assert "<pre>" + "p" * 200 + "...</pre>" in result
        assert result.endswith("✅ <b>Status:</b> Running")

    def test_mcp_tool(self):
        result = format_mcp_tool(
            "search",
            {"query": "a<b", "limit": 5},
            {"content": [{"title": "hit"}]},
        )
        assert "🔌 <b>Tool:</b> <code>search</code>" in result
        assert "• <b>query:</b> <code>a&lt;b</code>\n" in result
        assert "• <b>limit:</b> <code>5</code>\n" in result
        assert "\n✅ <b>Result:</b> Success" in result
        assert '<b>Output:</b>\n<pre>[{"title": "hit"}]</pre>' in result
        assert is_balanced(result)

    def test_mcp_tool_without_input(self):
        assert format_mcp_tool("ping") == "🔌 <b>MCP Tool</b>\n\n🔌 <b>Tool:</b> <code>ping</code>"

    def test_session_init(self):
        result = format_session_init({
            "session_id": "abcdef0123456789",
            "model": "opus",
            "cwd": "/home/dev/project",
            "tools": ["Read", "Edit", "Bash"],
            "permission_mode": "default",
        })
        assert result.startswith("🚀 <b>Session Started</b>")
        assert "🆔 <b>Session:</b> <code>23456789</code>" in result
        assert "📁 <b>Directory:</b> <code>/home/dev/project</code>" in result
        assert result.endswith("🛠 <b>Tools:</b> 3 available")

    def test_session_init_defaults(self):
        result = format_session_init({})
        assert "<code>Not started</code>" in result
        assert "🤖 <b>Model:</b> unknown" in result
        assert "0 available" in result
