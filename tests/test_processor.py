"""Tests for EventProcessor.

Runs parsed stream-json lines through a no-color processor and checks the
rendered fragments, pending-tool reporting and session state.
"""

from viewscreen.config import ViewscreenConfig
from viewscreen.processor import EventProcessor, ProcessResult
from viewscreen.renderers import RendererSet
from viewscreen.state import SessionState
from viewscreen.stream.events import ParseError, parse_event


def stream_text(lines, text, index=0):
    return [
        lines.stream({"type": "content_block_start", "index": index, "content_block": {"type": "text", "text": ""}}),
        lines.stream({"type": "content_block_delta", "index": index, "delta": {"type": "text_delta", "text": text}}),
        lines.stream({"type": "content_block_stop", "index": index}),
    ]


def stream_tool(lines, name, partial_json, index=1):
    return [
        lines.stream({"type": "content_block_start", "index": index,
                      "content_block": {"type": "tool_use", "id": "t1", "name": name, "input": {}}}),
        lines.stream({"type": "content_block_delta", "index": index,
                      "delta": {"type": "input_json_delta", "partial_json": partial_json}}),
        lines.stream({"type": "content_block_stop", "index": index}),
    ]


class TestNoOp:
    def test_none(self, processor, state):
        assert processor.process(None) == ProcessResult(rendered="", has_pending_tools=False)
        assert state == SessionState()

    def test_parse_error(self, processor, state):
        result = processor.process(parse_event("garbage"))
        assert isinstance(parse_event("garbage"), ParseError)
        assert result == ProcessResult()
        assert state == SessionState()

    def test_no_op_reports_no_pending_even_with_tools(self, processor, feed, lines):
        feed(lines.assistant([lines.tool_use("t1", "Bash", {"command": "ls"})]))
        assert processor.process(None).has_pending_tools is False


class TestSystem:
    def test_banner_and_state(self, feed, lines, state):
        (result,) = feed(lines.system())
        assert result.rendered == (
            "● Session Started\n"
            "  ⎿  Model: claude-sonnet\n"
            "     Version: 2.0.1\n"
            "     CWD: /work/project\n"
            "     Tools: 3 available\n"
            "\n"
        )
        assert state.model == "claude-sonnet"
        assert state.version == "2.0.1"
        assert state.tools_count == 3
        assert state.agents == ["general-purpose", "Explore"]
        assert state.permission_mode == "default"

    def test_agents_in_verbose_mode(self, lines, state):
        verbose = RendererSet.from_config(ViewscreenConfig(verbose=True, no_color=True, width=80))
        rendered = EventProcessor(state, verbose).process(parse_event(lines.system())).rendered
        assert "     Agents: general-purpose, Explore\n" in rendered


class TestAssistant:
    def test_text_rendered_with_newline(self, feed, lines, state):
        (result,) = feed(lines.assistant([lines.text("Hello")]))
        assert result.rendered == "Hello\n"
        assert result.has_pending_tools is False
        assert state.turn_count == 1

    def test_streamed_text_not_repeated(self, feed, lines):
        results = feed(*stream_text(lines, "Hello"), lines.assistant([lines.text("Hello")]))
        assert results[2].rendered == "Hello\n"
        assert results[3].rendered == ""

        # The flag is reset after the assistant event
        (again,) = feed(lines.assistant([lines.text("Again")]))
        assert again.rendered == "Again\n"

    def test_tool_use_deferred(self, feed, lines, state):
        (result,) = feed(lines.assistant([
            lines.text("Listing files."),
            lines.tool_use("t1", "Bash", {"command": "ls"}),
        ]))
        assert result.rendered == "Listing files.\n"
        assert "Bash" not in result.rendered
        assert result.has_pending_tools is True
        assert state.current_tool == "Bash"
        assert state.current_tool_input == "ls"
        assert state.tool_in_progress is True

    def test_error(self, feed, lines):
        (result,) = feed(lines.assistant([], error="rate_limit"))
        assert result.rendered == "● Error\n  ⎿  rate_limit\n"

    def test_live_token_usage(self, feed, lines, state):
        usage = {"input_tokens": 100, "output_tokens": 20}
        feed(
            lines.assistant([lines.text("a")], message_id="m1", usage=usage),
            lines.assistant([lines.tool_use("t1", "Bash")], message_id="m1", usage=usage),
            lines.assistant([lines.text("b")], message_id="m2", usage={"input_tokens": 50, "output_tokens": 5}),
        )
        assert state.input_tokens == 150
        assert state.output_tokens == 25


class TestUser:
    def test_header_above_result(self, feed, lines, state):
        results = feed(
            lines.assistant([lines.tool_use("t1", "Read", {"file_path": "/src/app.py"})]),
            lines.user([lines.tool_result("t1", "a\nb")]),
        )
        assert results[1].rendered == "● Read /src/app.py\n  ⎿  Read 2 lines\n"
        assert results[1].has_pending_tools is False
        assert state.current_tool == ""
        assert state.tool_in_progress is False

    def test_results_in_any_order(self, feed, lines):
        results = feed(
            lines.assistant([
                lines.tool_use("a", "Bash", {"command": "one"}),
                lines.tool_use("b", "Bash", {"command": "two"}),
            ]),
            lines.user([lines.tool_result("b", "x")]),
            lines.user([lines.tool_result("a", "y")]),
        )
        assert results[1].rendered.startswith("● Bash two\n")
        assert results[1].has_pending_tools is True
        assert results[2].rendered.startswith("● Bash one\n")
        assert results[2].has_pending_tools is False

    def test_current_tool_kept_while_tools_pending(self, feed, lines, state):
        feed(
            lines.assistant([lines.tool_use("a", "Bash"), lines.tool_use("b", "Grep")]),
            lines.user([lines.tool_result("a")]),
        )
        assert state.current_tool == "Bash"

    def test_unmatched_result_rendered_without_header(self, feed, lines):
        (result,) = feed(lines.user([lines.tool_result("unknown", "out")]))
        assert result.rendered == "  ⎿  Read 1 lines\n"

    def test_todos_updated(self, feed, lines, state):
        feed(lines.user(
            [lines.tool_result("t1", "ok")],
            tool_use_result={"newTodos": [
                {"content": "Fix bug", "status": "in_progress", "activeForm": "Fixing bug"},
                {"content": "Ship", "status": "pending", "activeForm": "Shipping"},
            ]},
        ))
        assert [t.content for t in state.todos] == ["Fix bug", "Ship"]
        assert state.has_active_todos()
        assert state.active_todo().active_form == "Fixing bug"


class TestSubAgents:
    def test_nested_tools(self, feed, lines, state):
        results = feed(
            lines.assistant([lines.tool_use("task-1", "Task", {"description": "Explore"})]),
            lines.user([lines.text("Find the parser")], parent="task-1"),
            lines.assistant([lines.tool_use("c1", "Grep", {"pattern": "TODO"})], parent="task-1"),
            lines.user([lines.tool_result("c1", "hit")], parent="task-1"),
            lines.user([lines.tool_result("task-1", "summary")]),
        )
        prompt, child, parent = results[1], results[3], results[4]

        assert prompt.rendered == "● Task Explore\n  ⎿  Find the parser\n"
        assert prompt.has_pending_tools is True

        assert child.rendered == "  │ ● Grep TODO\n  │   ⎿  Read 1 lines\n"
        assert child.has_pending_tools is True

        # Header was already shown with the prompt
        assert parent.rendered == "  ⎿  Read 1 lines\n"
        assert parent.has_pending_tools is False
        assert state.current_tool == ""

    def test_prompt_without_pending_parent(self, feed, lines):
        (result,) = feed(lines.user([lines.text("Do the thing")], parent="missing"))
        assert result.rendered == "  ⎿  Do the thing\n"

    def test_second_prompt_does_not_repeat_header(self, feed, lines):
        results = feed(
            lines.assistant([lines.tool_use("task-1", "Task", {"description": "Explore"})]),
            lines.user([lines.text("first")], parent="task-1"),
            lines.user([lines.text("second")], parent="task-1"),
        )
        assert results[2].rendered == "  ⎿  second\n"


class TestStream:
    def test_streamed_tool_header(self, feed, lines, state):
        results = feed(*stream_tool(lines, "Bash", '{"command": "make test"}'))
        assert results[0].rendered == ""
        assert state.current_tool == "tool_use"
        assert results[2].rendered == "● Bash make test\n"

    def test_streamed_tool_bad_json_falls_back_to_name(self, feed, lines):
        results = feed(*stream_tool(lines, "Bash", '{"command": '))
        assert results[2].rendered == "● Bash\n"

    def test_streamed_tool_not_tracked(self, feed, lines):
        results = feed(
            *stream_tool(lines, "Bash", '{"command": "ls"}'),
            lines.assistant([lines.tool_use("t1", "Bash", {"command": "ls"})]),
            lines.user([lines.tool_result("t1", "out")]),
        )
        assert results[3].has_pending_tools is False
        assert results[4].rendered == "  ⎿  Read 1 lines\n"


class TestResult:
    def test_orphan(self, feed, lines):
        results = feed(
            lines.assistant([lines.tool_use("orphan-tool", "Read", {"file_path": "/x.py"})]),
            lines.result(),
        )
        rendered = results[1].rendered
        assert "Read" in rendered
        assert "(no result)" in rendered
        assert rendered.startswith("● Read /x.py\n  ⎿  (no result)\n")
        assert results[1].has_pending_tools is False

    def test_orphan_header_repeated_after_early_prompt(self, feed, lines):
        results = feed(
            lines.assistant([lines.tool_use("task-1", "Task", {"description": "Explore"})]),
            lines.user([lines.text("go")], parent="task-1"),
            lines.result(),
        )
        assert results[2].rendered.startswith("● Task Explore\n  ⎿  (no result)\n")

    def test_summary(self, feed, lines, state):
        (result,) = feed(lines.result(duration_ms=1500, duration_api_ms=750))
        assert result.rendered == (
            "\n"
            "● Session Complete\n"
            "  ⎿  Duration: 1.50s (API: 0.75s)\n"
            "     Turns: 3\n"
            "     Cost: $0.0123\n"
            "     Tokens: in=100 out=50 (cache: created=10 read=20)\n"
        )
        assert state.turn_count == 3
        assert state.total_cost == 0.0123
        assert state.duration_ms == 1500
        assert state.input_tokens == 100
        assert state.cache_read == 20
        assert state.is_error is False

    def test_error_summary_with_denials(self, feed, lines, state):
        (result,) = feed(lines.result(
            is_error=True,
            subtype="error_during_execution",
            errors=["boom"],
            permission_denials=[{"tool_name": "Bash", "tool_use_id": "t9"}],
        ))
        assert "● Session Error\n  ⎿  boom\n" in result.rendered
        assert "     Permission Denials: 1\n       - Bash (t9)\n" in result.rendered
        assert state.is_error is True

    def test_usage_line_optional(self, state, lines):
        renderers = RendererSet.from_config(ViewscreenConfig(no_color=True, width=80, show_usage=False))
        rendered = EventProcessor(state, renderers).process(parse_event(lines.result())).rendered
        assert "Tokens:" not in rendered


class TestEndToEnd:
    def test_session(self, feed, lines, state):
        results = feed(
            lines.system(),
            lines.assistant([lines.tool_use("t1", "Bash", {"command": "ls"})]),
            lines.user([lines.tool_result("t1", "file1\nfile2")]),
            lines.result(),
        )
        assert [r.has_pending_tools for r in results[1:]] == [True, False, False]
        assert results[2].rendered == "● Bash ls\n  ⎿  Read 2 lines\n"
        assert "Session Complete" in results[3].rendered
        assert "(no result)" not in results[3].rendered


class TestPendingToolRendering:
    def test_render_pending_tool_with_icon(self, processor, feed, lines):
        feed(
            lines.assistant([lines.tool_use("task-1", "Task", {"description": "Explore"})]),
            lines.assistant([lines.tool_use("c1", "Grep", {"pattern": "x"})], parent="task-1"),
        )
        rendered = {}
        processor.for_each_pending_tool(
            lambda tool_id, pending: rendered.__setitem__(tool_id, processor.render_pending_tool(pending, icon="⠋ "))
        )
        assert rendered == {
            "task-1": "⠋ Task Explore\n",
            "c1": "  │ ⠋ Grep x\n",
        }
        assert processor.has_pending_tools()
