"""
TokenTracker - Token usage tracking

Accumulates usage reported on assistant events while the session runs.

Claude Code emits one assistant event per content block, and every event of
the same API message repeats that message's usage. Usage is therefore merged
per message id (field-wise maximum) and summed across distinct messages. The
result event's usage is authoritative and replaces the running total.
"""

from dataclasses import dataclass, field
from typing import Optional

from .events import Usage


@dataclass
class TokenUsageInfo:
    """Token usage information"""
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: "TokenUsageInfo") -> "TokenUsageInfo":
        """Support + operator for accumulation"""
        return TokenUsageInfo(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            cache_creation_input_tokens=self.cache_creation_input_tokens + other.cache_creation_input_tokens,
            cache_read_input_tokens=self.cache_read_input_tokens + other.cache_read_input_tokens,
        )

    def merge(self, other: "TokenUsageInfo") -> "TokenUsageInfo":
        """Field-wise maximum (same message reported more than once)"""
        return TokenUsageInfo(
            input_tokens=max(self.input_tokens, other.input_tokens),
            output_tokens=max(self.output_tokens, other.output_tokens),
            cache_creation_input_tokens=max(self.cache_creation_input_tokens, other.cache_creation_input_tokens),
            cache_read_input_tokens=max(self.cache_read_input_tokens, other.cache_read_input_tokens),
        )

    def is_empty(self) -> bool:
        """Check if empty (no token statistics, cache included)"""
        return not (
            self.input_tokens or self.output_tokens
            or self.cache_creation_input_tokens or self.cache_read_input_tokens
        )

    @classmethod
    def from_usage(cls, usage: Usage) -> "TokenUsageInfo":
        return cls(
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            cache_creation_input_tokens=usage.cache_creation_input_tokens,
            cache_read_input_tokens=usage.cache_read_input_tokens,
        )


@dataclass
class TokenTracker:
    """
    Token usage tracker

    One "turn" here is one API message, identified by its message id.
    """
    # Current message's usage
    _current_turn: TokenUsageInfo = field(default_factory=TokenUsageInfo)
    # Total of all finalized messages
    _total: TokenUsageInfo = field(default_factory=TokenUsageInfo)
    _current_message_id: Optional[str] = None

    def update(self, message_id: str, usage: Optional[Usage]) -> None:
        """Record the usage reported by one assistant event

        A new message id finalizes the previous message first. Events without
        an id are treated as their own message.
        """
        if usage is None:
            return

        info = TokenUsageInfo.from_usage(usage)
        if info.is_empty():
            return

        if not message_id or message_id != self._current_message_id:
            self.finalize_turn()
            self._current_message_id = message_id or None

        self._current_turn = self._current_turn.merge(info)

    def finalize_turn(self) -> Optional[TokenUsageInfo]:
        """
        Finalize the current message, return its usage and accumulate into total

        Returns:
            TokenUsageInfo for this message, or None if there is no usage
        """
        current = self._current_turn
        self._current_turn = TokenUsageInfo()
        self._current_message_id = None
        if current.is_empty():
            return None
        self._total = self._total + current
        return current

    def get_usage(self) -> TokenUsageInfo:
        """Total usage including the message still in progress"""
        return self._total + self._current_turn

    def reset(self) -> None:
        """Reset all statistics"""
        self._current_turn = TokenUsageInfo()
        self._total = TokenUsageInfo()
        self._current_message_id = None
