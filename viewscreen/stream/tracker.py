"""
ToolUseTracker - Pending tool invocation tracker

Holds tool_use blocks from assistant messages until the user message carrying
their tool_result arrives, so a tool's header can be rendered right above its
output. Sub-agent tools carry the id of the Task invocation that spawned them;
a tool counts as nested while that parent is still pending.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from .events import ContentBlock, ToolResultBlock, ToolUseBlock


@dataclass
class PendingToolUse:
    """A tool_use block waiting for its result"""
    id: str
    block: ToolUseBlock
    parent_tool_use_id: Optional[str] = None
    # Set once the header has been shown ahead of the result (sub-agent prompts)
    header_rendered: bool = False


@dataclass(frozen=True)
class ResolvedTool:
    """A tool invocation ready to render, with its nesting fixed at resolve time"""
    id: str
    block: ToolUseBlock
    is_nested: bool = False


@dataclass(frozen=True)
class MatchedTool:
    """A pending tool matched to a tool_result"""
    resolved: ResolvedTool
    is_nested: bool
    header_rendered: bool


@dataclass(frozen=True)
class OrphanedTool:
    """A pending tool still unmatched when the session ended"""
    id: str
    resolved: ResolvedTool
    is_nested: bool
    header_rendered: bool = False


class ToolUseTracker:
    """Tool use tracker

    Usage example:
        tracker = ToolUseTracker()

        # Assistant event: buffer its tool_use blocks
        tracker.buffer_from_assistant_message(event.message.content, event.parent_tool_use_id)

        # User event: pair results with their invocations
        for match in tracker.match_from_user_message(user_event.message.content):
            render_header(match.resolved)

        # Result event: whatever is left never got a result
        orphans = tracker.flush_all()
    """

    def __init__(self):
        self._pending: Dict[str, PendingToolUse] = {}

    def add(self, tool_id: str, block: ToolUseBlock, parent_tool_use_id: Optional[str] = None) -> None:
        """Register a pending tool_use block

        Callers filter out empty ids. Adding an id that is already pending
        replaces the earlier entry.
        """
        self._pending[tool_id] = PendingToolUse(
            id=tool_id,
            block=block,
            parent_tool_use_id=parent_tool_use_id,
        )

    def get(self, tool_id: str) -> Optional[PendingToolUse]:
        """Get a pending tool, or None"""
        return self._pending.get(tool_id)

    def is_parent_pending(self, parent_id: str) -> bool:
        return parent_id in self._pending

    def is_nested(self, pending: PendingToolUse) -> bool:
        """Whether the tool's parent is still pending (recomputed on every call)"""
        return pending.parent_tool_use_id is not None and self.is_parent_pending(pending.parent_tool_use_id)

    def remove(self, tool_id: str) -> None:
        self._pending.pop(tool_id, None)

    def __len__(self) -> int:
        return len(self._pending)

    def for_each(self, fn: Callable[[str, PendingToolUse], None]) -> None:
        """Call fn(id, pending) for every pending tool; order is not guaranteed"""
        for tool_id, pending in list(self._pending.items()):
            fn(tool_id, pending)

    def snapshot(self) -> List[PendingToolUse]:
        """Copy of the pending tools, safe to hand to another reader"""
        return list(self._pending.values())

    def clear(self) -> None:
        """Drop all pending tools without resolving them"""
        self._pending.clear()

    def _resolve(self, pending: PendingToolUse) -> ResolvedTool:
        return ResolvedTool(
            id=pending.id,
            block=pending.block,
            is_nested=self.is_nested(pending),
        )

    def buffer_from_assistant_message(
        self,
        blocks: Iterable[ContentBlock],
        parent_tool_use_id: Optional[str] = None,
        already_streaming_tool_use: bool = False,
    ) -> bool:
        """Buffer the tool_use blocks of an assistant message

        Args:
            blocks: Message content blocks
            parent_tool_use_id: Parent id from the event envelope (sub-agent messages)
            already_streaming_tool_use: The tool_use was already shown via stream
                deltas; nothing is tracked in that case

        Returns:
            True if at least one tool was newly buffered
        """
        if already_streaming_tool_use:
            return False

        buffered = False
        for block in blocks:
            if isinstance(block, ToolUseBlock) and block.id:
                self.add(block.id, block, parent_tool_use_id)
                buffered = True
        return buffered

    def match_from_user_message(self, blocks: Iterable[ContentBlock]) -> List[MatchedTool]:
        """Match tool_result blocks with pending tools and remove the matches

        Nesting is classified before each removal. Results are returned in the
        order of the tool_result blocks; unknown ids are skipped.
        """
        matched = []
        for block in blocks:
            if not isinstance(block, ToolResultBlock) or not block.tool_use_id:
                continue
            pending = self._pending.get(block.tool_use_id)
            if pending is None:
                continue
            resolved = self._resolve(pending)
            self.remove(pending.id)
            matched.append(MatchedTool(
                resolved=resolved,
                is_nested=resolved.is_nested,
                header_rendered=pending.header_rendered,
            ))
        return matched

    def unmatched_result_ids(self, blocks: Iterable[ContentBlock]) -> List[str]:
        """Ids of tool_result blocks that have no pending tool"""
        return [
            block.tool_use_id
            for block in blocks
            if isinstance(block, ToolResultBlock)
            and block.tool_use_id
            and block.tool_use_id not in self._pending
        ]

    def resolve_parent_early(self, parent_id: str) -> Optional[ResolvedTool]:
        """Resolve a parent tool so its header can precede its sub-agent's output

        The parent stays pending. Returns None if the parent is unknown or its
        header was already resolved early.
        """
        pending = self._pending.get(parent_id)
        if pending is None or pending.header_rendered:
            return None
        pending.header_rendered = True
        return self._resolve(pending)

    def flush_all(self) -> List[OrphanedTool]:
        """Return every pending tool as orphaned and clear the tracker

        Nesting is classified against the full pre-flush state, so a parent
        and child flushed together still classify correctly.
        """
        orphaned = []
        for pending in self._pending.values():
            resolved = self._resolve(pending)
            orphaned.append(OrphanedTool(
                id=pending.id,
                resolved=resolved,
                is_nested=resolved.is_nested,
                header_rendered=pending.header_rendered,
            ))
        self.clear()
        return orphaned
