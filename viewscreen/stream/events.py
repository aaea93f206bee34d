"""
Event types and parser

Every input line is one JSON object with a "type" discriminator. parse_event()
decodes it into one of five typed events, or a ParseError event when the line
cannot be decoded. It never raises.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..errors import EventDecodeError


# === Content blocks ===

@dataclass(frozen=True)
class TextBlock:
    """Text content block"""
    text: str = ""
    type: str = "text"


@dataclass(frozen=True)
class ToolUseBlock:
    """Tool invocation emitted by the assistant

    input is the decoded JSON payload, kept as-is for the tool-specific
    renderers to interpret.
    """
    id: str = ""
    name: str = ""
    input: Any = None
    type: str = "tool_use"

    def input_dict(self) -> Dict[str, Any]:
        """Input as a dict ({} when absent or not an object)"""
        return self.input if isinstance(self.input, dict) else {}


@dataclass(frozen=True)
class ToolResultBlock:
    """Tool result carried by a user message

    content is either a string or a list of {"type": "text", "text": ...} blocks.
    """
    tool_use_id: str = ""
    content: Any = None
    is_error: bool = False
    type: str = "tool_result"


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]


@dataclass(frozen=True)
class Usage:
    """Token usage information"""
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    service_tier: str = ""


# === Events ===

@dataclass(frozen=True)
class Event:
    """Common envelope fields"""
    type: str = ""
    session_id: str = ""
    uuid: str = ""
    parent_tool_use_id: Optional[str] = None


@dataclass(frozen=True)
class SystemEvent(Event):
    """Session initialization"""
    subtype: str = ""
    cwd: str = ""
    tools: Tuple[str, ...] = ()
    model: str = ""
    permission_mode: str = ""
    claude_code_version: str = ""
    agents: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AssistantMessage:
    id: str = ""
    model: str = ""
    role: str = ""
    content: Tuple[ContentBlock, ...] = ()
    stop_reason: Optional[str] = None
    usage: Optional[Usage] = None


@dataclass(frozen=True)
class AssistantEvent(Event):
    """Assistant message (text and tool_use blocks)"""
    message: AssistantMessage = field(default_factory=AssistantMessage)
    error: str = ""


@dataclass(frozen=True)
class UserMessage:
    role: str = ""
    content: Tuple[ContentBlock, ...] = ()


@dataclass(frozen=True)
class UserEvent(Event):
    """User message: tool results, or a sub-agent prompt

    tool_use_result is the structured side channel some tools attach
    (edit patches, todo lists, created files).
    """
    message: UserMessage = field(default_factory=UserMessage)
    tool_use_result: Any = None
    is_synthetic: bool = False


@dataclass(frozen=True)
class StreamEventData:
    """The inner API event of a stream_event line"""
    type: str = ""
    index: int = 0
    content_block: Optional[Dict[str, Any]] = None
    delta: Optional[Dict[str, Any]] = None
    usage: Optional[Usage] = None


@dataclass(frozen=True)
class StreamEvent(Event):
    """Incremental delta event"""
    event: StreamEventData = field(default_factory=StreamEventData)


@dataclass(frozen=True)
class ModelUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cost_usd: float = 0.0
    context_window: int = 0
    max_output_tokens: int = 0


@dataclass(frozen=True)
class PermissionDenial:
    tool_name: str = ""
    tool_use_id: str = ""
    tool_input: Any = None


@dataclass(frozen=True)
class ResultEvent(Event):
    """Final session result"""
    subtype: str = ""
    is_error: bool = False
    duration_ms: int = 0
    duration_api_ms: int = 0
    num_turns: int = 0
    result: str = ""
    total_cost_usd: float = 0.0
    usage: Usage = field(default_factory=Usage)
    model_usage: Dict[str, ModelUsage] = field(default_factory=dict)
    permission_denials: Tuple[PermissionDenial, ...] = ()
    errors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ParseError:
    """A line that could not be decoded

    error is None for unknown event types, in which case line holds a
    description instead of the raw input.
    """
    error: Optional[Exception]
    line: str


# === Field decoding ===
# Absent and null fields decode to the default; a present value of the wrong
# JSON type raises EventDecodeError.

def _str(data: dict, key: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise EventDecodeError(key, "string", value)
    return value


def _opt_str(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise EventDecodeError(key, "string", value)
    return value


def _int(data: dict, key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    # bool is an int subclass; a JSON true is not a number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise EventDecodeError(key, "integer", value)
    if isinstance(value, float):
        if not value.is_integer():
            raise EventDecodeError(key, "integer", value)
        return int(value)
    return value


def _float(data: dict, key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise EventDecodeError(key, "number", value)
    return float(value)


def _bool(data: dict, key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise EventDecodeError(key, "boolean", value)
    return value


def _obj(data: dict, key: str) -> dict:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise EventDecodeError(key, "object", value)
    return value


def _opt_obj(data: dict, key: str) -> Optional[dict]:
    value = data.get(key)
    if value is not None and not isinstance(value, dict):
        raise EventDecodeError(key, "object", value)
    return value


def _list(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise EventDecodeError(key, "array", value)
    return value


def _str_list(data: dict, key: str) -> Tuple[str, ...]:
    items = _list(data, key)
    for item in items:
        if not isinstance(item, str):
            raise EventDecodeError(key, "array of strings", item)
    return tuple(items)


def _usage(data: Optional[dict]) -> Usage:
    data = data or {}
    return Usage(
        input_tokens=_int(data, "input_tokens"),
        output_tokens=_int(data, "output_tokens"),
        cache_creation_input_tokens=_int(data, "cache_creation_input_tokens"),
        cache_read_input_tokens=_int(data, "cache_read_input_tokens"),
        service_tier=_str(data, "service_tier"),
    )


def _content_blocks(data: dict) -> Tuple[ContentBlock, ...]:
    """Decode message.content; unrecognized block types are skipped"""
    raw = data.get("content")
    if raw is None:
        return ()
    # A plain string message (e.g. a user prompt) is a single text block
    if isinstance(raw, str):
        return (TextBlock(text=raw),)
    if not isinstance(raw, list):
        raise EventDecodeError("content", "array", raw)

    blocks: List[ContentBlock] = []
    for item in raw:
        if not isinstance(item, dict):
            raise EventDecodeError("content", "array of objects", item)
        block_type = _str(item, "type")
        if block_type == "text":
            blocks.append(TextBlock(text=_str(item, "text")))
        elif block_type == "tool_use":
            blocks.append(ToolUseBlock(
                id=_str(item, "id"),
                name=_str(item, "name"),
                input=item.get("input"),
            ))
        elif block_type == "tool_result":
            blocks.append(ToolResultBlock(
                tool_use_id=_str(item, "tool_use_id"),
                content=item.get("content"),
                is_error=_bool(item, "is_error"),
            ))
    return tuple(blocks)


def _envelope(data: dict) -> dict:
    return {
        "type": _str(data, "type"),
        "session_id": _str(data, "session_id"),
        "uuid": _str(data, "uuid"),
        "parent_tool_use_id": _opt_str(data, "parent_tool_use_id"),
    }


def _decode_system(data: dict) -> SystemEvent:
    return SystemEvent(
        **_envelope(data),
        subtype=_str(data, "subtype"),
        cwd=_str(data, "cwd"),
        tools=_str_list(data, "tools"),
        model=_str(data, "model"),
        permission_mode=_str(data, "permissionMode"),
        claude_code_version=_str(data, "claude_code_version"),
        agents=_str_list(data, "agents"),
    )


def _decode_assistant(data: dict) -> AssistantEvent:
    msg = _obj(data, "message")
    usage = _opt_obj(msg, "usage")
    return AssistantEvent(
        **_envelope(data),
        message=AssistantMessage(
            id=_str(msg, "id"),
            model=_str(msg, "model"),
            role=_str(msg, "role"),
            content=_content_blocks(msg),
            stop_reason=_opt_str(msg, "stop_reason"),
            usage=_usage(usage) if usage is not None else None,
        ),
        error=_str(data, "error"),
    )


def _decode_user(data: dict) -> UserEvent:
    msg = _obj(data, "message")
    return UserEvent(
        **_envelope(data),
        message=UserMessage(
            role=_str(msg, "role"),
            content=_content_blocks(msg),
        ),
        tool_use_result=data.get("tool_use_result"),
        is_synthetic=_bool(data, "isSynthetic"),
    )


def _decode_stream(data: dict) -> StreamEvent:
    inner = _obj(data, "event")
    usage = _opt_obj(inner, "usage")
    return StreamEvent(
        **_envelope(data),
        event=StreamEventData(
            type=_str(inner, "type"),
            index=_int(inner, "index"),
            content_block=_opt_obj(inner, "content_block"),
            delta=_opt_obj(inner, "delta"),
            usage=_usage(usage) if usage is not None else None,
        ),
    )


def _decode_result(data: dict) -> ResultEvent:
    model_usage = {}
    for model, raw in _obj(data, "modelUsage").items():
        if not isinstance(raw, dict):
            raise EventDecodeError("modelUsage", "object", raw)
        model_usage[model] = ModelUsage(
            input_tokens=_int(raw, "inputTokens"),
            output_tokens=_int(raw, "outputTokens"),
            cache_read_input_tokens=_int(raw, "cacheReadInputTokens"),
            cache_creation_input_tokens=_int(raw, "cacheCreationInputTokens"),
            cost_usd=_float(raw, "costUSD"),
            context_window=_int(raw, "contextWindow"),
            max_output_tokens=_int(raw, "maxOutputTokens"),
        )

    denials = []
    for raw in _list(data, "permission_denials"):
        if not isinstance(raw, dict):
            raise EventDecodeError("permission_denials", "array of objects", raw)
        denials.append(PermissionDenial(
            tool_name=_str(raw, "tool_name"),
            tool_use_id=_str(raw, "tool_use_id"),
            tool_input=raw.get("tool_input"),
        ))

    return ResultEvent(
        **_envelope(data),
        subtype=_str(data, "subtype"),
        is_error=_bool(data, "is_error"),
        duration_ms=_int(data, "duration_ms"),
        duration_api_ms=_int(data, "duration_api_ms"),
        num_turns=_int(data, "num_turns"),
        result=_str(data, "result"),
        total_cost_usd=_float(data, "total_cost_usd"),
        usage=_usage(_obj(data, "usage")),
        model_usage=model_usage,
        permission_denials=tuple(denials),
        errors=_str_list(data, "errors"),
    )


EVENT_DECODERS = {
    "system": _decode_system,
    "assistant": _decode_assistant,
    "user": _decode_user,
    "stream_event": _decode_stream,
    "result": _decode_result,
}


def parse_event(line: str) -> Union[Event, ParseError, None]:
    """Parse one input line into a typed event

    Returns:
        None for an empty line, a ParseError for undecodable input,
        otherwise one of SystemEvent, AssistantEvent, UserEvent,
        StreamEvent, ResultEvent
    """
    if line == "":
        return None

    try:
        data = json.loads(line)
    except (ValueError, RecursionError) as e:
        return ParseError(error=e, line=line)
    if not isinstance(data, dict):
        return ParseError(error=EventDecodeError("<envelope>", "object", data), line=line)

    event_type = data.get("type")
    if event_type is not None and not isinstance(event_type, str):
        return ParseError(error=EventDecodeError("type", "string", event_type), line=line)
    event_type = event_type or ""

    decoder = EVENT_DECODERS.get(event_type)
    if decoder is None:
        return ParseError(error=None, line=f"Unknown event type: {event_type}")

    try:
        return decoder(data)
    except (EventDecodeError, RecursionError) as e:
        return ParseError(error=e, line=line)
