"""Minimal diagnostics logging setup for viewscreen."""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "viewscreen"


def setup_logging(level: str = "WARNING", no_color: bool = False) -> logging.Logger:
    """Route the viewscreen logger to stderr through rich

    stdout carries the rendered stream, so diagnostics never go there.
    Calling this again replaces the previously installed handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    console = Console(stderr=True, no_color=no_color)
    handler = RichHandler(console=console, show_path=False, markup=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    # Don't duplicate records through the root logger
    logger.propagate = False
    return logger
