"""
viewscreen - terminal renderer for coding-agent stream-json output

Provides:
- parse_event: NDJSON line -> typed event
- EventProcessor: event -> rendered fragment
- RendererSet, SessionState, ViewscreenConfig
"""

from .config import ViewscreenConfig
from .processor import EventProcessor, ProcessResult
from .renderers import RendererSet
from .state import SessionState, Todo
from .stream.events import ParseError, parse_event

__version__ = "0.1.0"

__all__ = [
    "ViewscreenConfig",
    "EventProcessor",
    "ProcessResult",
    "RendererSet",
    "SessionState",
    "Todo",
    "ParseError",
    "parse_event",
]
