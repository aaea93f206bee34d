"""
EventProcessor - Event orchestration

Takes one parsed event at a time, updates SessionState, the StreamState and
the ToolUseTracker, and returns the fragment to print. Tool headers are held
back until their result arrives so each header sits directly above its
output; sub-agent tools are indented under their pending Task.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .renderers import RendererSet
from .state import SessionState
from .stream.block_state import BLOCK_TOOL_USE
from .stream.events import (
    AssistantEvent,
    ResultEvent,
    StreamEvent,
    SystemEvent,
    TextBlock,
    ToolUseBlock,
    UserEvent,
)
from .stream.headers import ToolContext
from .stream.tracker import PendingToolUse, ResolvedTool
from .stream.utils import BULLET, NO_RESULT_MARKER, OUTPUT_PREFIX

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Output of processing one event"""
    rendered: str = ""
    has_pending_tools: bool = False


class EventProcessor:
    """Event processor

    Usage example:
        renderers = RendererSet.from_config(config)
        processor = EventProcessor(SessionState(), renderers)
        for line in lines:
            result = processor.process(parse_event(line))
            sys.stdout.write(result.rendered)
    """

    def __init__(self, state: SessionState, renderers: RendererSet):
        self.state = state
        self.renderers = renderers
        self._handlers = {
            SystemEvent: self._process_system,
            AssistantEvent: self._process_assistant,
            UserEvent: self._process_user,
            StreamEvent: self._process_stream,
            ResultEvent: self._process_result,
        }

    @property
    def tracker(self):
        return self.renderers.tracker

    def process(self, event) -> ProcessResult:
        """Process one event; None, ParseError and unknown objects are no-ops"""
        handler = self._handlers.get(type(event))
        if handler is None:
            return ProcessResult()
        return handler(event)

    def has_pending_tools(self) -> bool:
        return len(self.tracker) > 0

    def _result(self, rendered: str) -> ProcessResult:
        return ProcessResult(rendered=rendered, has_pending_tools=self.has_pending_tools())

    def render_pending_tool(self, pending: PendingToolUse, icon: str = BULLET) -> str:
        """Header line for a pending tool, with a custom icon (spinner frame)"""
        header, _ = self.renderers.headers.render_block(
            pending.block,
            nested=self.tracker.is_nested(pending),
            icon=icon,
        )
        return header

    def for_each_pending_tool(self, fn: Callable[[str, PendingToolUse], None]) -> None:
        self.tracker.for_each(fn)

    def _render_resolved(self, resolved: ResolvedTool) -> tuple[str, ToolContext]:
        return self.renderers.headers.render_block(resolved.block, nested=resolved.is_nested)

    # === Handlers ===

    def _process_system(self, event: SystemEvent) -> ProcessResult:
        self.state.update_from_system_event(event)
        return self._result(self.renderers.system.render(event))

    def _process_assistant(self, event: AssistantEvent) -> ProcessResult:
        r = self.renderers
        self.state.increment_turn_count()
        self.state.update_from_assistant_usage(event.message.id, event.message.usage)

        buffered = r.tracker.buffer_from_assistant_message(
            event.message.content,
            event.parent_tool_use_id,
            already_streaming_tool_use=r.stream_state.in_tool_use_block,
        )
        if buffered:
            first = next(
                block for block in event.message.content
                if isinstance(block, ToolUseBlock) and block.id
            )
            self.state.set_current_tool(first.name, r.registry.block_arg(first))

        rendered = r.assistant.render(event, in_text_block=r.stream_state.in_text_block)
        r.stream_state.reset()
        return self._result(rendered)

    def _process_user(self, event: UserEvent) -> ProcessResult:
        r = self.renderers
        self.state.update_from_tool_use_result(event.tool_use_result)

        if event.parent_tool_use_id is not None and _is_sub_agent_prompt(event):
            return self._process_sub_agent_prompt(event, event.parent_tool_use_id)

        unmatched = r.tracker.unmatched_result_ids(event.message.content)
        if unmatched:
            logger.debug("Tool results without a pending tool_use: %s", ", ".join(unmatched))

        parts: List[str] = []
        nested = False
        for match in r.tracker.match_from_user_message(event.message.content):
            nested = match.is_nested
            header, context = self._render_resolved(match.resolved)
            if not match.header_rendered:
                parts.append(header)
            r.user.set_tool_context(context)

        if not r.tracker:
            self.state.clear_current_tool()

        parts.append(r.user.format(event, nested=nested))
        return self._result("".join(parts))

    def _process_sub_agent_prompt(self, event: UserEvent, parent_id: str) -> ProcessResult:
        """Show the parent Task header ahead of the prompt it handed its sub-agent"""
        r = self.renderers
        parts: List[str] = []
        nested = False
        resolved: Optional[ResolvedTool] = r.tracker.resolve_parent_early(parent_id)
        if resolved is not None:
            nested = resolved.is_nested
            header, _ = self._render_resolved(resolved)
            parts.append(header)
        parts.append(r.user.format_sub_agent_prompt(event, nested=nested))
        return self._result("".join(parts))

    def _process_stream(self, event: StreamEvent) -> ProcessResult:
        r = self.renderers
        rendered = r.stream.render(event)
        if event.event.type == "content_block_start" and r.stream_state.current_block_type == BLOCK_TOOL_USE:
            self.state.set_current_tool(r.stream_state.current_block_type, "")
        return self._result(rendered)

    def _process_result(self, event: ResultEvent) -> ProcessResult:
        r = self.renderers
        parts: List[str] = []
        for orphan in r.tracker.flush_all():
            header, _ = self._render_resolved(orphan.resolved)
            parts.append(header)
            parts.append(f"{OUTPUT_PREFIX}{r.styler.muted(NO_RESULT_MARKER)}\n")

        self.state.clear_current_tool()
        self.state.update_from_result_event(event)
        parts.append(r.result.render(event))
        return self._result("".join(parts))


def _is_sub_agent_prompt(event: UserEvent) -> bool:
    """Sub-agent prompts carry text blocks rather than tool results"""
    return any(isinstance(block, TextBlock) for block in event.message.content)
