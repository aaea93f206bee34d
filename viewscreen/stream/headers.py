"""
Tool headers

Each built-in tool declares which input field its header shows, which field
holds a file path (for syntax highlighting its output), or which array it
counts. Headers render as:

    ● Read src/main.py
    ● TodoWrite 3 items
  │ ● Grep TODO          (nested under a pending Task)
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .events import ToolUseBlock
from .styles import Styler
from .utils import BULLET, NESTED_PREFIX, DisplayLimits, truncate


@dataclass(frozen=True)
class ToolDefinition:
    """Tool metadata for header rendering"""
    name: str
    header_field: str = ""
    file_path_field: str = ""
    # Tried when file_path_field is absent (NotebookEdit accepts both)
    file_path_fallback: str = ""
    count_field: str = ""
    singular: str = ""
    plural: str = ""

    def header_arg(self, tool_input: Dict[str, Any]) -> str:
        """Argument string shown after the tool name"""
        if self.count_field:
            items = tool_input.get(self.count_field)
            if not isinstance(items, list):
                return ""
            if len(items) == 1:
                return f"1 {self.singular}"
            return f"{len(items)} {self.plural}"

        if self.header_field:
            value = tool_input.get(self.header_field)
            if isinstance(value, str):
                return value
        return ""

    def file_path(self, tool_input: Dict[str, Any]) -> str:
        for key in (self.file_path_field, self.file_path_fallback):
            if key and isinstance(tool_input.get(key), str):
                return tool_input[key]
        return ""

    @property
    def is_file_path_tool(self) -> bool:
        return bool(self.file_path_field)


BUILTIN_TOOLS = [
    # File operations
    ToolDefinition("Read", header_field="file_path", file_path_field="file_path"),
    ToolDefinition("Write", header_field="file_path", file_path_field="file_path"),
    ToolDefinition("Edit", header_field="file_path", file_path_field="file_path"),
    ToolDefinition("NotebookEdit", header_field="notebook_path",
                   file_path_field="notebook_path", file_path_fallback="file_path"),

    # Single string field
    ToolDefinition("Bash", header_field="command"),
    ToolDefinition("Glob", header_field="pattern"),
    ToolDefinition("Grep", header_field="pattern"),
    ToolDefinition("Task", header_field="description"),
    ToolDefinition("WebFetch", header_field="url"),
    ToolDefinition("WebSearch", header_field="query"),
    ToolDefinition("Skill", header_field="skill"),
    ToolDefinition("TaskOutput", header_field="task_id"),
    ToolDefinition("TaskStop", header_field="task_id"),
    ToolDefinition("ToolSearch", header_field="query"),

    # Array counters
    ToolDefinition("TodoWrite", count_field="todos", singular="item", plural="items"),
    ToolDefinition("AskUserQuestion", count_field="questions", singular="question", plural="questions"),

    # No arguments worth showing
    ToolDefinition("EnterPlanMode"),
    ToolDefinition("ExitPlanMode"),
]


class ToolRegistry:
    """Tool definitions keyed by tool name"""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self._definitions: Dict[str, ToolDefinition] = {}
        for definition in BUILTIN_TOOLS:
            self.register(definition)

    def register(self, definition: ToolDefinition) -> None:
        self._definitions[definition.name] = definition

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._definitions.get(name)

    def tool_arg(self, name: str, tool_input: Dict[str, Any]) -> str:
        """Header argument for a tool; unknown tools show a JSON preview in verbose mode"""
        definition = self.get(name)
        if definition is not None:
            return definition.header_arg(tool_input)

        if self.verbose and tool_input:
            preview = json.dumps(tool_input, ensure_ascii=False, separators=(",", ":"))
            if len(preview) > DisplayLimits.UNKNOWN_TOOL_ARGS:
                preview = preview[:DisplayLimits.UNKNOWN_TOOL_ARGS] + "..."
            return preview
        return ""

    def block_arg(self, block: ToolUseBlock) -> str:
        return self.tool_arg(block.name, block.input_dict())

    def file_path(self, name: str, tool_input: Dict[str, Any]) -> str:
        definition = self.get(name)
        return definition.file_path(tool_input) if definition else ""

    def is_file_path_tool(self, name: str) -> bool:
        definition = self.get(name)
        return definition is not None and definition.is_file_path_tool


@dataclass(frozen=True)
class ToolContext:
    """Which tool produced the output being rendered (for syntax highlighting)"""
    tool_name: str = ""
    file_path: str = ""


class HeaderRenderer:
    """Render "[prefix]● Name args" tool header lines"""

    def __init__(self, styler: Styler, registry: ToolRegistry):
        self.styler = styler
        self.registry = registry

    def render(
        self,
        name: str,
        tool_input: Optional[Dict[str, Any]],
        nested: bool = False,
        icon: str = BULLET,
    ) -> tuple[str, ToolContext]:
        """Render a header line (with trailing newline) and the tool context for its result"""
        tool_input = tool_input or {}
        args = truncate(self.registry.tool_arg(name, tool_input), DisplayLimits.HEADER_ARGS)

        prefix = NESTED_PREFIX if nested else ""
        line = prefix + icon + self.styler.style(name, "tool_name")
        if args:
            if self.registry.is_file_path_tool(name):
                line += " " + self.styler.muted_underline(args)
            else:
                line += " " + self.styler.muted(args)

        context = ToolContext(tool_name=name, file_path=self.registry.file_path(name, tool_input))
        return line + "\n", context

    def render_block(self, block: ToolUseBlock, nested: bool = False, icon: str = BULLET) -> tuple[str, ToolContext]:
        return self.render(block.name, block.input_dict(), nested=nested, icon=icon)
