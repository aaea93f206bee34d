"""
Styler - rich-backed string styling

Renderers work with plain strings; Styler turns rich renderables into those
strings through a capture-only Console. In no-color mode the console has no
color system, so every helper returns unstyled text.
"""

import io
import shutil
from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.syntax import Syntax
from rich.text import Text

from .utils import BULLET, DisplayLimits


# Semantic style names used across the renderers
STYLES = {
    "muted": "dim",
    "error": "red",
    "error_bold": "bold red",
    "success": "green",
    "success_bold": "bold green",
    "warning": "yellow",
    "tool_name": "bold cyan",
    "header": "bold magenta",
    "line_number": "dim",
    "diff_add": "on #203a20",
    "diff_remove": "on #3a2020",
}


def terminal_width() -> int:
    return shutil.get_terminal_size((DisplayLimits.DEFAULT_WIDTH, 24)).columns


class Styler:
    """String styling helpers bound to one capture console"""

    def __init__(self, no_color: bool = False, width: Optional[int] = None, theme: str = "monokai"):
        self.no_color = no_color
        self.width = width or terminal_width()
        self.theme = theme
        self.console = Console(
            file=io.StringIO(),
            force_terminal=not no_color,
            color_system=None if no_color else "truecolor",
            no_color=no_color,
            width=self.width,
            highlight=False,
            emoji=False,
            legacy_windows=False,
        )

    def set_width(self, width: int) -> None:
        self.width = width
        self.console.width = width

    def render(self, renderable, soft_wrap: bool = True) -> str:
        """Render a rich renderable to a string (no trailing newline added)"""
        with self.console.capture() as capture:
            self.console.print(renderable, end="", soft_wrap=soft_wrap)
        return capture.get()

    def style(self, content: str, style_name: str) -> str:
        """Apply a semantic style from STYLES"""
        if not content:
            return content
        return self.render(Text(content, style=STYLES.get(style_name, style_name)))

    def muted(self, content: str) -> str:
        return self.style(content, "muted")

    def error(self, content: str) -> str:
        return self.style(content, "error")

    def success(self, content: str) -> str:
        return self.style(content, "success")

    def warning(self, content: str) -> str:
        return self.style(content, "warning")

    def bullet_header(self, title: str, style_name: str = "header") -> str:
        """"● Title" header line content (no newline)"""
        return self.style(BULLET + title, style_name)

    def muted_underline(self, content: str) -> str:
        """Muted text with underline (file paths in tool headers)"""
        return self.style(content, "dim underline")

    def markdown(self, content: str) -> str:
        """Render markdown wrapped to the configured width"""
        with self.console.capture() as capture:
            self.console.print(Markdown(content))
        rendered = capture.get()
        # Left-justified lines are padded to the full width
        return "\n".join(line.rstrip() for line in rendered.split("\n"))

    def highlight(self, code: str, file_path: str = "") -> str:
        """Syntax-highlight code, guessing the language from file_path or content"""
        if self.no_color or not code:
            return code
        lexer = Syntax.guess_lexer(file_path or "", code)
        syntax = Syntax(code, lexer, theme=self.theme)
        text = syntax.highlight(code)
        text.rstrip()
        return self.render(text)

    def highlight_on(self, code: str, file_path: str, background: str) -> str:
        """Syntax-highlight one line over a diff background ("diff_add"/"diff_remove")"""
        if self.no_color or not code:
            return code
        lexer = Syntax.guess_lexer(file_path or "", code)
        text = Syntax(code, lexer, theme=self.theme).highlight(code)
        text.rstrip()
        text.stylize(STYLES[background])
        return self.render(text)
