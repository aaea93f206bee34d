"""
Viewscreen CLI

Reads the stream-json output of a coding-agent CLI from stdin and renders it:
- Markdown assistant text, streamed blocks shown as they complete
- Tool headers paired with their results, sub-agent tools indented
- Session banner and summary
"""

import argparse
import logging
import sys
from typing import BinaryIO, Iterator, Optional, TextIO

from rich.console import Console, Group
from rich.live import Live
from rich.spinner import Spinner
from rich.text import Text

from .config import ViewscreenConfig
from .errors import StreamReadError
from .observability import setup_logging
from .processor import EventProcessor
from .renderers import MarkdownRenderer, RendererSet
from .state import SessionState
from .stream.events import ParseError, parse_event

logger = logging.getLogger(__name__)


def iter_lines(stream: BinaryIO, max_line_bytes: int) -> Iterator[str]:
    """Yield decoded lines (without line endings) from a binary stream

    Raises:
        StreamReadError: On an I/O failure or a line longer than max_line_bytes
    """
    while True:
        try:
            # Room for "\r\n" after a line of exactly max_line_bytes
            raw = stream.readline(max_line_bytes + 2)
        except OSError as e:
            raise StreamReadError(str(e)) from e
        if not raw:
            return

        content = raw.rstrip(b"\r\n")
        if len(content) > max_line_bytes:
            raise StreamReadError(f"line exceeds maximum size of {max_line_bytes} bytes")
        yield content.decode("utf-8", errors="replace")


def status_line(state: SessionState) -> str:
    """Active todo, current tool and live token totals, joined with " · "

    Returns "" when none of them is set.
    """
    parts = []
    todo = state.active_todo()
    if todo is not None:
        parts.append(f"→ {todo.active_form or todo.content}")
    if state.tool_in_progress and state.current_tool:
        tool = state.current_tool
        if state.current_tool_input:
            tool += f" {state.current_tool_input}"
        parts.append(tool)
    if state.input_tokens or state.output_tokens:
        parts.append(f"in={state.input_tokens} out={state.output_tokens}")
    return " · ".join(parts)


class PendingToolsDisplay:
    """Status line plus a spinner line per pending tool, rebuilt by the main thread after each event"""

    def __init__(self):
        self._status = ""
        self._headers: list[str] = []

    def update(self, processor: EventProcessor) -> None:
        self._status = status_line(processor.state)
        self._headers = [
            processor.render_pending_tool(pending, icon="").rstrip("\n")
            for pending in processor.tracker.snapshot()
        ]

    def __rich__(self):
        renderables = []
        if self._status:
            renderables.append(Text(self._status, style="dim"))
        renderables.extend(
            Spinner("dots", text=Text.from_ansi(" " + header), style="yellow")
            for header in self._headers
        )
        return Group(*renderables)


def _log_parse_error(event: ParseError) -> None:
    if event.error is None:
        logger.warning("Skipping line: %s", event.line)
    else:
        logger.warning("Skipping unparseable line (%s): %.200s", event.error, event.line)


def run(
    config: ViewscreenConfig,
    stdin: BinaryIO,
    stdout: TextIO,
    markdown: Optional[MarkdownRenderer] = None,
) -> SessionState:
    """Render a whole event stream

    Returns:
        The final session state
    """
    state = SessionState()
    processor = EventProcessor(state, RendererSet.from_config(config, markdown))

    def handle(line: str) -> str:
        if not line.strip():
            return ""
        event = parse_event(line)
        if isinstance(event, ParseError):
            _log_parse_error(event)
            return ""
        return processor.process(event).rendered

    show_progress = config.show_progress and stdout.isatty()
    if not show_progress:
        for line in iter_lines(stdin, config.max_line_bytes):
            rendered = handle(line)
            if rendered:
                stdout.write(rendered)
                stdout.flush()
        return state

    console = Console(file=stdout, no_color=config.no_color, highlight=False)
    display = PendingToolsDisplay()
    with Live(display, console=console, refresh_per_second=10, transient=True) as live:
        for line in iter_lines(stdin, config.max_line_bytes):
            rendered = handle(line)
            if rendered:
                live.console.print(Text.from_ansi(rendered), end="", soft_wrap=True)
            display.update(processor)
            live.refresh()
    return state


def build_config(args: argparse.Namespace) -> ViewscreenConfig:
    """Environment settings with command-line overrides applied"""
    config = ViewscreenConfig.from_env()
    if args.verbose:
        config.verbose = True
    if args.no_color:
        config.no_color = True
    if args.usage is not None:
        config.show_usage = args.usage
    if args.width and args.width > 0:
        config.width = args.width
    if args.no_progress:
        config.show_progress = False
    if args.log_level:
        config.log_level = args.log_level
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="viewscreen",
        description="Render a coding agent's stream-json output in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Render a live session
  claude -p "fix the tests" --output-format stream-json --verbose | %(prog)s

  # Replay a recorded session with full tool output
  %(prog)s -v < session.ndjson
""",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show full tool output, synthetic messages and agents",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colors and styling",
    )
    parser.add_argument(
        "--usage",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show token usage in the session summary",
    )
    parser.add_argument(
        "--width",
        type=int,
        help="Wrap width (defaults to the terminal width)",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the pending-tools spinner",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostics level (written to stderr)",
    )
    return parser


def main(argv: Optional[list[str]] = None):
    """CLI main entry point"""
    args = build_parser().parse_args(argv)
    config = build_config(args)
    setup_logging(config.log_level, no_color=config.no_color)

    try:
        run(config, sys.stdin.buffer, sys.stdout)
    except StreamReadError as e:
        logger.error("%s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
