"""
StreamState - Streaming block state

Tracks whether the current assistant message is being shown incrementally
through stream_event deltas. The full assistant event arrives after all of its
deltas, so the flags stay set until reset() is called once that event has been
processed.
"""

import json
import logging
from typing import Any, Dict, Optional

from .events import StreamEventData

logger = logging.getLogger(__name__)


BLOCK_TEXT = "text"
BLOCK_TOOL_USE = "tool_use"


class StreamState:
    """Streaming suppression state machine

    Two independent flags, set by content_block_start deltas and cleared
    together by reset(). Block text and tool input deltas are buffered so the
    stream renderer can show a block when it stops.
    """

    def __init__(self):
        self.in_text_block = False
        self.in_tool_use_block = False
        self.current_block_type = ""
        self.current_block_index = -1
        self.tool_name = ""
        self._text_buffer = ""
        # Accumulates input_json_delta fragments for the active tool_use block
        self._json_buffer = ""

    @property
    def is_idle(self) -> bool:
        return not (self.in_text_block or self.in_tool_use_block)

    def start_block(self, index: int, content_block: Optional[Dict[str, Any]]) -> str:
        """Enter a content block

        Returns:
            The block kind ("text", "tool_use") or "" for other block types
        """
        self.current_block_index = index
        self.current_block_type = ""
        if not content_block:
            return ""

        block_type = content_block.get("type")
        if block_type == BLOCK_TEXT:
            self.in_text_block = True
            self._text_buffer = ""
        elif block_type == BLOCK_TOOL_USE:
            self.in_tool_use_block = True
            name = content_block.get("name")
            self.tool_name = name if isinstance(name, str) else ""
            self._json_buffer = ""
        else:
            return ""

        self.current_block_type = block_type
        return block_type

    def append_delta(self, delta: Optional[Dict[str, Any]]) -> None:
        """Accumulate a content_block_delta payload into the active block's buffer"""
        if not delta:
            return
        delta_type = delta.get("type")
        if delta_type == "text_delta" and self.current_block_type == BLOCK_TEXT:
            text = delta.get("text")
            if isinstance(text, str):
                self._text_buffer += text
        elif delta_type == "input_json_delta" and self.current_block_type == BLOCK_TOOL_USE:
            partial = delta.get("partial_json")
            if isinstance(partial, str):
                self._json_buffer += partial

    def stop_block(self, index: int) -> str:
        """Leave a content block

        The flags stay set until reset(); only the index is checked.

        Returns:
            The kind of the block that stopped, or "" if index is not the active block
        """
        if index != self.current_block_index:
            return ""
        stopped = self.current_block_type
        self.current_block_type = ""
        return stopped

    def apply(self, event: StreamEventData) -> str:
        """Apply one stream event

        Returns:
            The kind of block that completed with this event, if any
        """
        if event.type == "content_block_start":
            self.start_block(event.index, event.content_block)
        elif event.type == "content_block_delta":
            self.append_delta(event.delta)
        elif event.type == "content_block_stop":
            return self.stop_block(event.index)
        elif event.type == "message_stop":
            self.current_block_index = -1
        return ""

    @property
    def text(self) -> str:
        """Text accumulated for the current (or last) text block"""
        return self._text_buffer

    def tool_input(self) -> Optional[Dict[str, Any]]:
        """Parse the accumulated tool input JSON

        Returns:
            The parsed object, or None if the buffer is not a JSON object
        """
        if not self._json_buffer:
            return None
        try:
            data = json.loads(self._json_buffer)
        except json.JSONDecodeError:
            logger.debug("Incomplete tool input for %s: %r", self.tool_name, self._json_buffer)
            return None
        return data if isinstance(data, dict) else None

    def reset(self) -> None:
        """Return to idle after the owning assistant event has been processed"""
        self.in_text_block = False
        self.in_tool_use_block = False
        self.current_block_type = ""
        self.current_block_index = -1
        self.tool_name = ""
