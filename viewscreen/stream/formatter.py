"""
ToolResultFormatter - Tool result formatter

Renders the tool_result content of user events. Structured results carried in
tool_use_result (edit patches, created files, todo lists) get specialised
renderers; everything else is cleaned and shown as a summary, or as
highlighted, truncated output in verbose mode.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from .events import TextBlock, ToolResultBlock, UserEvent
from .headers import ToolContext
from .styles import Styler
from .utils import (
    NESTED_OUTPUT_CONTINUE,
    NESTED_OUTPUT_PREFIX,
    OUTPUT_CONTINUE,
    OUTPUT_PREFIX,
    DisplayLimits,
    clean_content,
    count_lines,
    extract_text,
    truncate,
    truncate_with_line_hint,
    truncation_indicator,
    wrap_text,
)


class PrefixedLines:
    """Collects lines, prefixing the first with one string and the rest with another"""

    def __init__(self, first_prefix: str, continue_prefix: str):
        self.first_prefix = first_prefix
        self.continue_prefix = continue_prefix
        self._lines: List[str] = []

    def add(self, line: str) -> None:
        prefix = self.first_prefix if not self._lines else self.continue_prefix
        self._lines.append(f"{prefix}{line}\n")

    def __str__(self) -> str:
        return "".join(self._lines)


@dataclass
class RenderContext:
    """Prefixes for one result rendering (plain or nested)"""
    output_prefix: str = OUTPUT_PREFIX
    output_continue: str = OUTPUT_CONTINUE

    @classmethod
    def for_nesting(cls, nested: bool) -> "RenderContext":
        if nested:
            return cls(NESTED_OUTPUT_PREFIX, NESTED_OUTPUT_CONTINUE)
        return cls()


class ToolResultRenderer(Protocol):
    """Renders one kind of structured tool_use_result

    Returns None when the result is not of its kind.
    """

    def try_render(self, ctx: RenderContext, tool_use_result: Any) -> Optional[str]:
        ...


class EditResultRenderer:
    """Structured-patch diff with line numbers:  ⎿ 12 │ + new code"""

    def __init__(self, styler: Styler):
        self.styler = styler

    def try_render(self, ctx: RenderContext, tool_use_result: Any) -> Optional[str]:
        if not isinstance(tool_use_result, dict):
            return None
        file_path = tool_use_result.get("filePath")
        hunks = tool_use_result.get("structuredPatch")
        if not isinstance(file_path, str) or not file_path or not isinstance(hunks, list) or not hunks:
            return None
        hunks = [h for h in hunks if isinstance(h, dict)]

        max_line = 0
        for hunk in hunks:
            max_line = max(
                max_line,
                _int(hunk, "oldStart") + _int(hunk, "oldLines"),
                _int(hunk, "newStart") + _int(hunk, "newLines"),
            )
        width = len(str(max_line))
        total_lines = sum(len(h.get("lines") or []) for h in hunks)

        sep = self.styler.style("│", "line_number")
        out = PrefixedLines(ctx.output_prefix, ctx.output_continue)
        shown = 0
        for hunk in hunks:
            old_line = _int(hunk, "oldStart")
            new_line = _int(hunk, "newStart")
            for line in hunk.get("lines") or []:
                if not isinstance(line, str) or not line:
                    continue
                if shown >= DisplayLimits.RESULT_LINES:
                    remaining = total_lines - shown
                    if remaining > 0:
                        out.add(self.styler.muted(truncation_indicator(remaining)))
                    return str(out)

                marker, code = line[0], line[1:]
                if marker == "+":
                    number, op = new_line, self.styler.success("+")
                    styled = self.styler.highlight_on(code, file_path, "diff_add")
                    new_line += 1
                elif marker == "-":
                    number, op = old_line, self.styler.error("-")
                    styled = self.styler.highlight_on(code, file_path, "diff_remove")
                    old_line += 1
                else:
                    number, op = new_line, " "
                    styled = self.styler.highlight(code, file_path)
                    old_line += 1
                    new_line += 1

                line_num = self.styler.style(f"{number:>{width}}", "line_number")
                out.add(f"{line_num} {sep} {op} {styled}")
                shown += 1
        return str(out)


class WriteResultRenderer:
    """Summary line for newly created files"""

    def __init__(self, styler: Styler):
        self.styler = styler

    def try_render(self, ctx: RenderContext, tool_use_result: Any) -> Optional[str]:
        if not isinstance(tool_use_result, dict):
            return None
        if tool_use_result.get("type") != "create" or not tool_use_result.get("filePath"):
            return None

        content = tool_use_result.get("content")
        line_count = count_lines(content) if isinstance(content, str) else 0
        line_count = line_count or 1
        return f"{ctx.output_prefix}{self.styler.muted(f'Created ({line_count} lines)')}\n"


class TodoResultRenderer:
    """Todo list with status glyphs"""

    def __init__(self, styler: Styler):
        self.styler = styler

    def try_render(self, ctx: RenderContext, tool_use_result: Any) -> Optional[str]:
        todos = parse_todos(tool_use_result)
        if not todos:
            return None

        out = PrefixedLines(ctx.output_prefix, ctx.output_continue)
        for todo in todos:
            status = todo.get("status")
            content = todo.get("content") or ""
            if status == "completed":
                glyph, text = self.styler.success("✓"), self.styler.muted(content)
            elif status == "in_progress":
                glyph, text = self.styler.warning("→"), todo.get("activeForm") or content
            else:
                glyph, text = self.styler.muted("○"), self.styler.muted(content)
            out.add(f"{glyph} {text}")
        return str(out)


def parse_todos(tool_use_result: Any) -> List[Dict[str, Any]]:
    """The newTodos list of a TodoWrite result, or []"""
    if not isinstance(tool_use_result, dict):
        return []
    todos = tool_use_result.get("newTodos")
    if not isinstance(todos, list):
        return []
    return [todo for todo in todos if isinstance(todo, dict)]


def _int(data: dict, key: str) -> int:
    value = data.get(key)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


class ToolResultFormatter:
    """Tool result formatter

    Usage example:
        formatter = ToolResultFormatter(styler, verbose=True)
        formatter.set_tool_context(context)  # from the matching tool header
        fragment = formatter.format(user_event, nested=False)
    """

    def __init__(self, styler: Styler, verbose: bool = False, markdown=None):
        self.styler = styler
        self.verbose = verbose
        # Callable[[str], str]; used for synthetic messages
        self.markdown = markdown or styler.markdown
        self.tool_context = ToolContext()
        # Tried in registration order
        self.result_renderers: List[ToolResultRenderer] = [
            EditResultRenderer(styler),
            WriteResultRenderer(styler),
            TodoResultRenderer(styler),
        ]

    def set_tool_context(self, context: ToolContext) -> None:
        self.tool_context = context

    def format(self, event: UserEvent, nested: bool = False) -> str:
        """Render the tool results of a user event"""
        if event.is_synthetic:
            return self._format_synthetic(event) if self.verbose else ""

        ctx = RenderContext.for_nesting(nested)
        if event.tool_use_result is not None:
            for renderer in self.result_renderers:
                rendered = renderer.try_render(ctx, event.tool_use_result)
                if rendered is not None:
                    return rendered

        parts = []
        for block in event.message.content:
            if not isinstance(block, ToolResultBlock):
                continue
            text = clean_content(extract_text(block.content))
            if block.is_error:
                message = truncate(text, DisplayLimits.ERROR_MESSAGE)
                parts.append(f"{ctx.output_prefix}{self.styler.error(message)}\n")
            elif text:
                parts.append(self._format_output(ctx, text))
        return "".join(parts)

    def _format_output(self, ctx: RenderContext, content: str) -> str:
        if not self.verbose:
            summary = f"Read {count_lines(content)} lines"
            return f"{ctx.output_prefix}{self.styler.muted(summary)}\n"

        highlighted = self.styler.highlight(content, self.tool_context.file_path)
        shown, remaining = truncate_with_line_hint(highlighted, DisplayLimits.RESULT_LINES)
        out = PrefixedLines(ctx.output_prefix, ctx.output_continue)
        for line in shown.rstrip("\n").split("\n"):
            out.add(line)
        if remaining > 0:
            out.add(self.styler.muted(truncation_indicator(remaining)))
        return str(out)

    def _format_synthetic(self, event: UserEvent) -> str:
        """Synthetic messages (e.g. loaded skill content) render as markdown"""
        parts = []
        for block in event.message.content:
            if isinstance(block, TextBlock) and block.text:
                rendered = self.markdown(clean_content(block.text))
                if not rendered.endswith("\n"):
                    rendered += "\n"
                parts.append(rendered)
        return "".join(parts)

    def format_sub_agent_prompt(self, event: UserEvent, nested: bool = False) -> str:
        """Truncated preview of the prompt handed to a sub-agent"""
        ctx = RenderContext.for_nesting(nested)
        text = "\n".join(
            block.text for block in event.message.content
            if isinstance(block, TextBlock) and block.text
        )
        text = clean_content(text)
        if not text:
            return ""

        width = max(self.styler.width - len(ctx.output_prefix), 20)
        out = PrefixedLines(ctx.output_prefix, ctx.output_continue)
        for line in wrap_text(text, width).split("\n"):
            out.add(self.styler.muted(line))
        return str(out)
