"""Tests for the stdin host loop and CLI entry point."""

import io
import logging

import pytest
from rich.console import Console

from viewscreen import cli
from viewscreen.config import ViewscreenConfig
from viewscreen.errors import StreamReadError
from viewscreen.state import SessionState


def plain_markdown(text: str) -> str:
    return text


def ndjson(*lines) -> io.BytesIO:
    return io.BytesIO(("\n".join(lines) + "\n").encode("utf-8"))


class TestIterLines:
    def test_strips_line_endings(self):
        stream = io.BytesIO(b'{"a":1}\r\n\n{"b":2}')
        assert list(cli.iter_lines(stream, 100)) == ['{"a":1}', "", '{"b":2}']

    def test_line_at_limit_accepted(self):
        assert list(cli.iter_lines(io.BytesIO(b"x" * 10 + b"\n"), 10)) == ["x" * 10]

    def test_oversized_line(self):
        with pytest.raises(StreamReadError) as exc_info:
            list(cli.iter_lines(io.BytesIO(b"x" * 11 + b"\n"), 10))
        assert str(exc_info.value).startswith("error reading input:")

    def test_io_error(self):
        class Broken(io.RawIOBase):
            def readline(self, size=-1):
                raise OSError("device gone")

        with pytest.raises(StreamReadError, match="device gone"):
            list(cli.iter_lines(Broken(), 10))


class TestRun:
    def test_renders_session(self, lines):
        stdout = io.StringIO()
        state = cli.run(
            ViewscreenConfig(no_color=True, width=80),
            ndjson(
                lines.system(),
                "",
                lines.assistant([lines.tool_use("t1", "Bash", {"command": "ls"})]),
                lines.user([lines.tool_result("t1", "a")]),
                lines.result(),
            ),
            stdout,
            markdown=plain_markdown,
        )
        output = stdout.getvalue()
        assert output.startswith("● Session Started\n")
        assert "● Bash ls\n  ⎿  Read 1 lines\n" in output
        assert "● Session Complete\n" in output
        assert state.turn_count == 3

    def test_parse_errors_logged_and_skipped(self, lines, caplog):
        stdout = io.StringIO()
        with caplog.at_level(logging.WARNING, logger="viewscreen"):
            cli.run(
                ViewscreenConfig(no_color=True, width=80),
                ndjson("not json", '{"type":"mystery"}', lines.assistant([lines.text("hi")])),
                stdout,
                markdown=plain_markdown,
            )
        assert stdout.getvalue() == "hi\n"
        messages = [record.getMessage() for record in caplog.records]
        assert any("Unknown event type: mystery" in message for message in messages)
        assert any("not json" in message for message in messages)

    def test_deeply_nested_line_skipped(self, lines):
        depth = 100_000
        deep = '{"type":"user","message":{"content":' + "[" * depth + "]" * depth + "}}"
        stdout = io.StringIO()
        cli.run(
            ViewscreenConfig(no_color=True, width=80),
            ndjson(deep, lines.result()),
            stdout,
            markdown=plain_markdown,
        )
        assert "● Session Complete\n" in stdout.getvalue()


class TestStatusLine:
    """Session state shown above the pending-tool spinners."""

    def test_empty_state(self):
        assert cli.status_line(SessionState()) == ""

    def test_todo_tool_and_tokens(self, processor, feed, lines):
        feed(
            lines.user(
                [lines.tool_result("t0", "ok")],
                tool_use_result={"newTodos": [
                    {"content": "Fix bug", "status": "in_progress", "activeForm": "Fixing bug"},
                ]},
            ),
            lines.assistant(
                [lines.tool_use("t1", "Bash", {"command": "make test"})],
                usage={"input_tokens": 120, "output_tokens": 30},
            ),
        )
        assert cli.status_line(processor.state) == "→ Fixing bug · Bash make test · in=120 out=30"

    def test_display_renders_status_and_pending_tools(self, processor, feed, lines):
        feed(lines.assistant(
            [lines.tool_use("t1", "Bash", {"command": "ls"})],
            usage={"input_tokens": 5, "output_tokens": 1},
        ))
        display = cli.PendingToolsDisplay()
        display.update(processor)

        console = Console(file=io.StringIO(), width=80, no_color=True)
        with console.capture() as capture:
            console.print(display)
        output = capture.get().splitlines()
        assert output[0] == "Bash ls · in=5 out=1"
        assert output[1].endswith(" Bash ls")

    def test_display_cleared_after_result(self, processor, feed, lines):
        feed(lines.assistant([lines.tool_use("t1", "Bash", {"command": "ls"})]), lines.result())
        display = cli.PendingToolsDisplay()
        display.update(processor)

        console = Console(file=io.StringIO(), width=80, no_color=True)
        with console.capture() as capture:
            console.print(display)
        # Result totals remain, the tool line is gone
        assert capture.get() == "in=100 out=50\n"


class TestMain:
    @pytest.fixture(autouse=True)
    def _env(self, monkeypatch):
        for name in ("VIEWSCREEN_VERBOSE", "VIEWSCREEN_SHOW_USAGE", "VIEWSCREEN_WIDTH"):
            monkeypatch.delenv(name, raising=False)

    def _stdin(self, monkeypatch, data: bytes):
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(data)))

    def test_renders_to_stdout(self, monkeypatch, capsys, lines):
        self._stdin(monkeypatch, (lines.result(duration_ms=2000) + "\n").encode())
        cli.main(["--no-color", "--no-usage", "--width", "100"])
        out = capsys.readouterr().out
        assert "● Session Complete\n" in out
        assert "Duration: 2.00s" in out
        assert "Tokens:" not in out

    def test_oversized_line_exits_1(self, monkeypatch, capsys):
        monkeypatch.setenv("VIEWSCREEN_MAX_LINE_BYTES", "16")
        self._stdin(monkeypatch, b'{"type":"system","cwd":"/a/very/long/path"}\n')
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--no-color"])
        assert exc_info.value.code == 1
        assert "error reading input" in capsys.readouterr().err

    def test_interrupt_exits_130(self, monkeypatch):
        def interrupted(*args, **kwargs):
            raise KeyboardInterrupt

        monkeypatch.setattr(cli, "run", interrupted)
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 130

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("VIEWSCREEN_SHOW_USAGE", "1")
        args = cli.build_parser().parse_args(["-v", "--no-usage", "--no-progress", "--log-level", "debug"])
        config = cli.build_config(args)
        assert config.verbose is True
        assert config.show_usage is False
        assert config.show_progress is False
        assert config.log_level == "DEBUG"

    def test_non_positive_width_flag_ignored(self, monkeypatch):
        monkeypatch.setenv("VIEWSCREEN_WIDTH", "90")
        config = cli.build_config(cli.build_parser().parse_args(["--width", "-1"]))
        assert config.width == 90
