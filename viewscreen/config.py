"""
Viewscreen configuration

Settings come from three layers, later layers win:
- dataclass defaults
- environment variables (a .env file is loaded first via python-dotenv)
- command-line flags (applied by cli.main)
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv


DEFAULT_MAX_LINE_BYTES = 10 * 1024 * 1024  # 10MB

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean environment variable, falling back to default on unknown values"""
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if not value:
        return default
    try:
        number = int(value)
    except ValueError:
        return default
    # Zero and negative sizes count as unset
    return number if number > 0 else default


@dataclass
class ViewscreenConfig:
    """Rendering and input settings for one session

    Attributes:
        verbose: Show full tool output, synthetic messages and agent lists
        no_color: Emit plain text without ANSI styling
        show_usage: Include the token line in the result summary
        width: Wrap width for markdown and prompts (None = terminal width)
        max_line_bytes: Longest accepted input line; longer lines are fatal
        log_level: Level for the diagnostics logger (stderr)
        show_progress: Show the pending-tools spinner when stdout is a terminal
    """
    verbose: bool = False
    no_color: bool = False
    show_usage: bool = True
    width: Optional[int] = None
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES
    log_level: str = "WARNING"
    show_progress: bool = True

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "ViewscreenConfig":
        """Build a config from environment variables

        Args:
            dotenv: Load a .env file from the working directory first
        """
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))

        return cls(
            verbose=_env_bool("VIEWSCREEN_VERBOSE", False),
            # NO_COLOR disables color when present, regardless of its value
            no_color=os.getenv("NO_COLOR") is not None,
            show_usage=_env_bool("VIEWSCREEN_SHOW_USAGE", True),
            width=_env_int("VIEWSCREEN_WIDTH", None),
            max_line_bytes=_env_int("VIEWSCREEN_MAX_LINE_BYTES", DEFAULT_MAX_LINE_BYTES),
            log_level=os.getenv("VIEWSCREEN_LOG_LEVEL", "WARNING").upper(),
            show_progress=_env_bool("VIEWSCREEN_PROGRESS", True),
        )
