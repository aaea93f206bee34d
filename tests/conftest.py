"""Pytest configuration for viewscreen tests.

Renderers are built in no-color mode with a pass-through markdown renderer, so
fragments can be compared as plain text.
"""

import json
import logging

import pytest

from viewscreen.config import ViewscreenConfig
from viewscreen.processor import EventProcessor
from viewscreen.renderers import RendererSet
from viewscreen.state import SessionState
from viewscreen.stream.events import parse_event


def plain_markdown(text: str) -> str:
    """Markdown renderer stand-in: returns the text unchanged"""
    return text


class EventLines:
    """Builders for stream-json lines"""

    @staticmethod
    def dump(data: dict) -> str:
        return json.dumps(data)

    @classmethod
    def system(cls, **overrides) -> str:
        data = {
            "type": "system",
            "subtype": "init",
            "session_id": "sess-1",
            "uuid": "u-sys",
            "cwd": "/work/project",
            "tools": ["Read", "Bash", "Task"],
            "model": "claude-sonnet",
            "permissionMode": "default",
            "claude_code_version": "2.0.1",
            "agents": ["general-purpose", "Explore"],
        }
        data.update(overrides)
        return cls.dump(data)

    @classmethod
    def assistant(cls, content, message_id="msg-1", parent=None, usage=None, **overrides) -> str:
        message = {"id": message_id, "model": "claude-sonnet", "role": "assistant", "content": content}
        if usage is not None:
            message["usage"] = usage
        data = {
            "type": "assistant",
            "session_id": "sess-1",
            "uuid": "u-asst",
            "parent_tool_use_id": parent,
            "message": message,
        }
        data.update(overrides)
        return cls.dump(data)

    @classmethod
    def user(cls, content, parent=None, tool_use_result=None, **overrides) -> str:
        data = {
            "type": "user",
            "session_id": "sess-1",
            "uuid": "u-user",
            "parent_tool_use_id": parent,
            "message": {"role": "user", "content": content},
        }
        if tool_use_result is not None:
            data["tool_use_result"] = tool_use_result
        data.update(overrides)
        return cls.dump(data)

    @classmethod
    def stream(cls, event: dict) -> str:
        return cls.dump({"type": "stream_event", "session_id": "sess-1", "uuid": "u-stream", "event": event})

    @classmethod
    def result(cls, **overrides) -> str:
        data = {
            "type": "result",
            "subtype": "success",
            "session_id": "sess-1",
            "uuid": "u-result",
            "is_error": False,
            "duration_ms": 12345,
            "duration_api_ms": 6789,
            "num_turns": 3,
            "result": "done",
            "total_cost_usd": 0.0123,
            "usage": {
                "input_tokens": 100,
                "output_tokens": 50,
                "cache_creation_input_tokens": 10,
                "cache_read_input_tokens": 20,
            },
        }
        data.update(overrides)
        return cls.dump(data)

    # Content blocks

    @staticmethod
    def text(text: str) -> dict:
        return {"type": "text", "text": text}

    @staticmethod
    def tool_use(tool_id: str, name: str, tool_input=None) -> dict:
        return {"type": "tool_use", "id": tool_id, "name": name, "input": tool_input or {}}

    @staticmethod
    def tool_result(tool_id: str, content="ok", is_error=False) -> dict:
        return {"type": "tool_result", "tool_use_id": tool_id, "content": content, "is_error": is_error}


@pytest.fixture
def lines():
    return EventLines


@pytest.fixture
def config():
    return ViewscreenConfig(no_color=True, width=80, show_progress=False)


@pytest.fixture
def renderers(config):
    return RendererSet.from_config(config, markdown=plain_markdown)


@pytest.fixture
def state():
    return SessionState()


@pytest.fixture
def processor(state, renderers):
    return EventProcessor(state, renderers)


@pytest.fixture
def feed(processor):
    """Parse and process lines, returning the ProcessResult of each"""
    def _feed(*raw_lines):
        return [processor.process(parse_event(line)) for line in raw_lines]
    return _feed


@pytest.fixture(autouse=True)
def _reset_viewscreen_logger():
    """setup_logging() detaches the logger from root; undo that between tests"""
    yield
    logger = logging.getLogger("viewscreen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
