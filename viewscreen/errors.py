"""
Error types

- EventDecodeError: a known event type whose payload has the wrong shape
- StreamReadError: the input stream could not be read (fatal)
"""


class ViewscreenError(Exception):
    """Base class for viewscreen errors"""


class EventDecodeError(ViewscreenError, ValueError):
    """Raised while decoding a typed event payload

    Never escapes parse_event(): it is wrapped in a ParseError event.
    """

    def __init__(self, field: str, expected: str, value):
        self.field = field
        self.expected = expected
        self.value = value
        super().__init__(
            f"field {field!r}: expected {expected}, got {type(value).__name__}"
        )


class StreamReadError(ViewscreenError):
    """Input stream failure (I/O error or oversized line)"""

    PREFIX = "error reading input"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"{self.PREFIX}: {reason}")
