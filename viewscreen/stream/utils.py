"""
Stream utility functions and constants

Provides output prefixes, display limits and text helpers shared by the
renderers.
"""

import re
from typing import Any


# === Output prefixes ===
BULLET = "● "
OUTPUT_PREFIX = "  ⎿  "
OUTPUT_CONTINUE = "     "

# Sub-agent tool calls
NESTED_PREFIX = "  │ "
NESTED_OUTPUT_PREFIX = "  │   ⎿  "
NESTED_OUTPUT_CONTINUE = "  │      "

NO_RESULT_MARKER = "(no result)"


# === Display limit constants ===
class DisplayLimits:
    """Display-related length limits"""
    HEADER_ARGS = 80            # Tool header argument length
    UNKNOWN_TOOL_ARGS = 100     # JSON preview length for unregistered tools
    ERROR_MESSAGE = 200         # Tool error message length
    RESULT_LINES = 15           # Tool output lines in verbose mode
    PROMPT_LINES = 3            # Sub-agent prompt preview lines
    DEFAULT_WIDTH = 80          # Fallback wrap width


def truncate(content: str, max_length: int) -> str:
    """
    Truncate content to max_length characters, ending with "..." when cut

    Surrounding whitespace is stripped first. Limits too small to fit the
    ellipsis cut without it.
    """
    content = content.strip()
    if len(content) <= max_length:
        return content
    if max_length <= 3:
        return content[:max_length]
    return content[:max_length - 3] + "..."


def truncate_with_line_hint(content: str, max_lines: int) -> tuple[str, int]:
    """
    Truncate content by line count and return remaining line count

    A single trailing newline does not count as an extra line.

    Returns:
        (truncated content, remaining line count)
    """
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines = lines[:-1]

    if len(lines) <= max_lines:
        return content, 0

    return "\n".join(lines[:max_lines]), len(lines) - max_lines


def truncation_indicator(remaining: int) -> str:
    return f"… ({remaining} more lines)"


def wrap_text(content: str, max_width: int, max_lines: int = DisplayLimits.PROMPT_LINES) -> str:
    """
    Word-wrap content to max_width, keeping at most max_lines lines

    Overlong words are cut with "...", and "..." is appended when lines were
    dropped.
    """
    words = content.split()
    if len(content) <= max_width and "\n" not in content:
        return content

    lines: list[str] = []
    current = ""
    for word in words:
        if len(word) > max_width:
            word = word[:max(max_width - 3, 1)] + "..."
        if current and len(current) + 1 + len(word) > max_width:
            lines.append(current)
            current = word
        else:
            current = f"{current} {word}" if current else word
    if current:
        lines.append(current)

    if len(lines) > max_lines:
        lines = lines[:max_lines]
        lines[-1] += "..."
    return "\n".join(lines)


# === Content cleaning ===

_SYSTEM_REMINDER_RE = re.compile(r"<system-reminder>.*?</system-reminder>\s*", re.DOTALL)
_LINE_NUMBER_RE = re.compile(r"^\s*\d+→", re.MULTILINE)


def strip_system_reminders(content: str) -> str:
    """Remove <system-reminder> blocks"""
    return _SYSTEM_REMINDER_RE.sub("", content).strip()


def strip_line_numbers(content: str) -> str:
    """Remove Read-tool line number prefixes such as "     12→" """
    return _LINE_NUMBER_RE.sub("", content)


def clean_content(content: str) -> str:
    """Strip system reminders, then line numbers"""
    return strip_line_numbers(strip_system_reminders(content))


def extract_text(content: Any) -> str:
    """
    Text of a tool_result content field

    The field is either a string or a list of {"type": "text", "text": ...}
    blocks; other shapes are shown via str().
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text" and block.get("text"):
                parts.append(str(block["text"]))
        return "\n".join(parts)
    return str(content)


def count_lines(content: str) -> int:
    """Count lines in content"""
    if not content:
        return 0
    return len(content.split("\n"))
