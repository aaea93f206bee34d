"""
Session state

Accumulators written by the EventProcessor as events arrive: session metadata
from the system event, the current tool for progress display, the todo list
from TodoWrite results, and running and final totals.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .stream.events import ResultEvent, SystemEvent, Usage
from .stream.formatter import parse_todos
from .stream.token_tracker import TokenTracker, TokenUsageInfo


@dataclass
class Todo:
    """A tracked task item"""
    content: str = ""
    status: str = ""    # "pending", "in_progress", "completed"
    active_form: str = ""


@dataclass
class SessionState:
    """Centralized session state extracted from events"""
    # Session info from the system event
    model: str = ""
    version: str = ""
    cwd: str = ""
    tools_count: int = 0
    agents: List[str] = field(default_factory=list)
    permission_mode: str = ""

    # Runtime tracking
    turn_count: int = 0
    total_cost: float = 0.0
    todos: List[Todo] = field(default_factory=list)

    # Current tool being executed (for progress display)
    current_tool: str = ""
    current_tool_input: str = ""
    tool_in_progress: bool = False

    # Usage; live while running, replaced by the result event's totals
    input_tokens: int = 0
    output_tokens: int = 0
    cache_created: int = 0
    cache_read: int = 0
    token_tracker: TokenTracker = field(default_factory=TokenTracker)

    # Session status
    is_error: bool = False
    duration_ms: int = 0
    duration_api_ms: int = 0

    def update_from_system_event(self, event: SystemEvent) -> None:
        self.model = event.model
        self.version = event.claude_code_version
        self.cwd = event.cwd
        self.tools_count = len(event.tools)
        self.agents = list(event.agents)
        self.permission_mode = event.permission_mode

    def increment_turn_count(self) -> None:
        self.turn_count += 1

    def set_current_tool(self, name: str, tool_input: str = "") -> None:
        self.current_tool = name
        self.current_tool_input = tool_input
        self.tool_in_progress = True

    def clear_current_tool(self) -> None:
        self.current_tool = ""
        self.current_tool_input = ""
        self.tool_in_progress = False

    def update_from_tool_use_result(self, tool_use_result: Any) -> None:
        """Replace the todo list when the result carries newTodos"""
        todos = parse_todos(tool_use_result)
        if not todos:
            return
        self.todos = [
            Todo(
                content=str(todo.get("content") or ""),
                status=str(todo.get("status") or ""),
                active_form=str(todo.get("activeForm") or ""),
            )
            for todo in todos
        ]

    def update_from_assistant_usage(self, message_id: str, usage: Optional[Usage]) -> None:
        """Feed one assistant event's usage into the live totals"""
        self.token_tracker.update(message_id, usage)
        self._set_tokens(self.token_tracker.get_usage())

    def update_from_result_event(self, event: ResultEvent) -> None:
        self.turn_count = event.num_turns
        self.total_cost = event.total_cost_usd
        self.is_error = event.is_error
        self.duration_ms = event.duration_ms
        self.duration_api_ms = event.duration_api_ms
        self.token_tracker.finalize_turn()
        self._set_tokens(TokenUsageInfo.from_usage(event.usage))

    def _set_tokens(self, usage: TokenUsageInfo) -> None:
        self.input_tokens = usage.input_tokens
        self.output_tokens = usage.output_tokens
        self.cache_created = usage.cache_creation_input_tokens
        self.cache_read = usage.cache_read_input_tokens

    def has_active_todos(self) -> bool:
        return self.active_todo() is not None

    def active_todo(self) -> Optional[Todo]:
        """First in-progress todo, if any"""
        for todo in self.todos:
            if todo.status == "in_progress":
                return todo
        return None
