"""
Stream submodule - Event decoding and rendering building blocks

Provides:
- parse_event and the event dataclasses
- StreamState: streaming block state
- ToolUseTracker: pending tool invocation tracker
- TokenTracker: live token usage
- ToolRegistry / HeaderRenderer: tool header lines
- ToolResultFormatter: tool result formatter
- Styler: rich-backed string styling
"""

from .events import (
    AssistantEvent,
    AssistantMessage,
    ContentBlock,
    Event,
    ParseError,
    PermissionDenial,
    ResultEvent,
    StreamEvent,
    StreamEventData,
    SystemEvent,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    Usage,
    UserEvent,
    UserMessage,
    parse_event,
)
from .block_state import StreamState
from .tracker import ToolUseTracker, PendingToolUse, ResolvedTool, MatchedTool, OrphanedTool
from .token_tracker import TokenTracker, TokenUsageInfo
from .headers import ToolDefinition, ToolRegistry, ToolContext, HeaderRenderer
from .formatter import ToolResultFormatter
from .styles import Styler
from .utils import (
    BULLET,
    OUTPUT_PREFIX,
    OUTPUT_CONTINUE,
    NESTED_PREFIX,
    NESTED_OUTPUT_PREFIX,
    NESTED_OUTPUT_CONTINUE,
    DisplayLimits,
    truncate,
    count_lines,
    truncate_with_line_hint,
)

__all__ = [
    # Events
    "AssistantEvent",
    "AssistantMessage",
    "ContentBlock",
    "Event",
    "ParseError",
    "PermissionDenial",
    "ResultEvent",
    "StreamEvent",
    "StreamEventData",
    "SystemEvent",
    "TextBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "Usage",
    "UserEvent",
    "UserMessage",
    "parse_event",
    # Stream state
    "StreamState",
    # Tracker
    "ToolUseTracker",
    "PendingToolUse",
    "ResolvedTool",
    "MatchedTool",
    "OrphanedTool",
    # Token Tracker
    "TokenTracker",
    "TokenUsageInfo",
    # Headers
    "ToolDefinition",
    "ToolRegistry",
    "ToolContext",
    "HeaderRenderer",
    # Formatter
    "ToolResultFormatter",
    "Styler",
    # Utils
    "BULLET",
    "OUTPUT_PREFIX",
    "OUTPUT_CONTINUE",
    "NESTED_PREFIX",
    "NESTED_OUTPUT_PREFIX",
    "NESTED_OUTPUT_CONTINUE",
    "DisplayLimits",
    "truncate",
    "count_lines",
    "truncate_with_line_hint",
]
