"""
Event renderers

One renderer per event type, each returning a string fragment. A RendererSet
bundles them with the streaming state and tool tracker for one session.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from .config import ViewscreenConfig
from .stream.block_state import BLOCK_TEXT, BLOCK_TOOL_USE, StreamState
from .stream.events import AssistantEvent, ResultEvent, StreamEvent, SystemEvent, TextBlock
from .stream.formatter import ToolResultFormatter
from .stream.headers import HeaderRenderer, ToolRegistry
from .stream.styles import Styler
from .stream.tracker import ToolUseTracker
from .stream.utils import BULLET, OUTPUT_CONTINUE, OUTPUT_PREFIX

MarkdownRenderer = Callable[[str], str]


class SystemRenderer:
    """Session banner"""

    def __init__(self, styler: Styler, verbose: bool = False):
        self.styler = styler
        self.verbose = verbose

    def render(self, event: SystemEvent) -> str:
        muted = self.styler.muted
        lines = [
            self.styler.bullet_header("Session Started"),
            f"{OUTPUT_PREFIX}{muted('Model:')} {event.model}",
            f"{OUTPUT_CONTINUE}{muted('Version:')} {event.claude_code_version}",
            f"{OUTPUT_CONTINUE}{muted('CWD:')} {event.cwd}",
            f"{OUTPUT_CONTINUE}{muted('Tools:')} {len(event.tools)} available",
        ]
        if self.verbose and event.agents:
            lines.append(f"{OUTPUT_CONTINUE}{muted('Agents:')} {', '.join(event.agents)}")
        return "\n".join(lines) + "\n\n"


class AssistantRenderer:
    """Assistant text blocks as markdown

    Tool-use blocks are not rendered here; their headers are shown when the
    matching result arrives.
    """

    def __init__(self, styler: Styler, markdown: Optional[MarkdownRenderer] = None):
        self.styler = styler
        self.markdown = markdown or styler.markdown

    def render(self, event: AssistantEvent, in_text_block: bool = False) -> str:
        """
        Args:
            event: Assistant event
            in_text_block: Text was already shown through stream deltas
        """
        parts = []
        if event.error:
            parts.append(self.styler.bullet_header("Error", "error_bold") + "\n")
            parts.append(f"{OUTPUT_PREFIX}{self.styler.error(event.error)}\n")

        if not in_text_block:
            for block in event.message.content:
                if not isinstance(block, TextBlock):
                    continue
                rendered = self.markdown(block.text)
                if not rendered.endswith("\n"):
                    rendered += "\n"
                parts.append(rendered)
        return "".join(parts)


class StreamRenderer:
    """Applies stream events to StreamState and renders blocks as they complete"""

    def __init__(
        self,
        styler: Styler,
        state: StreamState,
        headers: HeaderRenderer,
        markdown: Optional[MarkdownRenderer] = None,
    ):
        self.styler = styler
        self.state = state
        self.headers = headers
        self.markdown = markdown or styler.markdown

    def render(self, event: StreamEvent) -> str:
        completed = self.state.apply(event.event)
        if completed == BLOCK_TEXT:
            text = self.state.text
            if not text:
                return ""
            rendered = self.markdown(text)
            if not rendered.endswith("\n"):
                rendered += "\n"
            return rendered
        if completed == BLOCK_TOOL_USE:
            tool_input = self.state.tool_input()
            if tool_input is None:
                # Input did not parse; show the bare name
                return self.styler.style(BULLET + self.state.tool_name, "tool_name") + "\n"
            header, _ = self.headers.render(self.state.tool_name, tool_input)
            return header
        return ""


class ResultRenderer:
    """Session summary"""

    def __init__(self, styler: Styler, show_usage: bool = True):
        self.styler = styler
        self.show_usage = show_usage

    def render(self, event: ResultEvent) -> str:
        styler = self.styler
        muted = styler.muted
        lines = [""]
        if event.is_error:
            lines.append(styler.bullet_header("Session Error", "error_bold"))
            for error in event.errors:
                lines.append(f"{OUTPUT_PREFIX}{styler.error(error)}")
        else:
            lines.append(styler.bullet_header("Session Complete", "success_bold"))

        lines.append(
            f"{OUTPUT_PREFIX}{muted('Duration:')} "
            f"{event.duration_ms / 1000:.2f}s (API: {event.duration_api_ms / 1000:.2f}s)"
        )
        lines.append(f"{OUTPUT_CONTINUE}{muted('Turns:')} {event.num_turns}")
        lines.append(f"{OUTPUT_CONTINUE}{muted('Cost:')} ${event.total_cost_usd:.4f}")

        if self.show_usage:
            usage = event.usage
            lines.append(
                f"{OUTPUT_CONTINUE}{muted('Tokens:')} "
                f"in={usage.input_tokens} out={usage.output_tokens} "
                f"(cache: created={usage.cache_creation_input_tokens} read={usage.cache_read_input_tokens})"
            )

        if event.permission_denials:
            lines.append(
                f"{OUTPUT_CONTINUE}{styler.warning('Permission Denials:')} {len(event.permission_denials)}"
            )
            for denial in event.permission_denials:
                lines.append(f"{OUTPUT_CONTINUE}  - {denial.tool_name} ({denial.tool_use_id})")

        return "\n".join(lines) + "\n"


@dataclass
class RendererSet:
    """Everything the EventProcessor renders with, built once per session"""
    styler: Styler
    registry: ToolRegistry
    headers: HeaderRenderer
    system: SystemRenderer
    assistant: AssistantRenderer
    user: ToolResultFormatter
    stream: StreamRenderer
    result: ResultRenderer
    stream_state: StreamState
    tracker: ToolUseTracker

    @classmethod
    def from_config(
        cls,
        config: ViewscreenConfig,
        markdown: Optional[MarkdownRenderer] = None,
    ) -> "RendererSet":
        """Build the renderers for one session

        Args:
            config: Session settings
            markdown: Replacement markdown renderer (tests inject a plain one)
        """
        styler = Styler(no_color=config.no_color, width=config.width)
        registry = ToolRegistry(verbose=config.verbose)
        headers = HeaderRenderer(styler, registry)
        stream_state = StreamState()
        return cls(
            styler=styler,
            registry=registry,
            headers=headers,
            system=SystemRenderer(styler, verbose=config.verbose),
            assistant=AssistantRenderer(styler, markdown),
            user=ToolResultFormatter(styler, verbose=config.verbose, markdown=markdown),
            stream=StreamRenderer(styler, stream_state, headers, markdown),
            result=ResultRenderer(styler, show_usage=config.show_usage),
            stream_state=stream_state,
            tracker=ToolUseTracker(),
        )

    def set_width(self, width: int) -> None:
        """Update the wrap width used by markdown and prompt previews"""
        self.styler.set_width(width)
