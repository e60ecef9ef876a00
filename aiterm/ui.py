"""Terminal UI primitives: slash palette, prompt, banner and thinking indicator."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from typing import Sequence

from prompt_toolkit.completion import Completion, Completer
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.styles import Style
from rich.markup import escape

from .theme import get_palette

PTK_STYLE = Style.from_dict({
    "completion-menu": "bg:default",
    "completion-menu.completion": "bg:default #C8D8EE",
    "completion-menu.completion.current": "bg:#1E2834 #E7EEF8",
    "completion-menu.command": "#57DB9C",
    "completion-menu.args": "#9BB0C9",
    "completion-menu.description": "#7AA7E8",
    "scrollbar.background": "bg:default",
    "scrollbar.button": "bg:default",
})


@dataclass(frozen=True)
class SlashCommandSpec:
    command: str
    usage: str
    description: str
    keywords: tuple[str, ...] = ()


SLASH_COMMAND_SPECS: tuple[SlashCommandSpec, ...] = (
    SlashCommandSpec("/help", "/help", "Show help", ("docs", "usage", "commands")),
    SlashCommandSpec("/pwd", "/pwd", "Show working directory", ("cwd", "directory", "cd")),
    SlashCommandSpec("/history", "/history [n]", "Show transcript", ("messages", "log")),
    SlashCommandSpec("/save", "/save [name]", "Save session", ("session", "history")),
    SlashCommandSpec("/load", "/load [name]", "Load session", ("session", "history")),
    SlashCommandSpec("/sessions", "/sessions", "List sessions", ("session", "history")),
    SlashCommandSpec("/policy", "/policy [mode]", "Continue after command", ("always", "failure")),
    SlashCommandSpec("/model", "/model [name]", "Switch model", ("llm", "provider", "preset")),
    SlashCommandSpec("/config", "/config [key value]", "Show or set config", ("settings",)),
    SlashCommandSpec("/reset", "/reset", "Reset chat", ("clear", "conversation")),
    SlashCommandSpec("/quit", "/quit", "Quit", ("exit",)),
)

SLASH_COMMANDS = [spec.command for spec in SLASH_COMMAND_SPECS]
MAX_SLASH_MENU_ITEMS = 12


def build_banner(version: str) -> str:
    p = get_palette()
    return (
        f"[bold {p.ACCENT}]aiterm[/bold {p.ACCENT}] "
        f"[{p.DIM}]v{version} · AI in your terminal[/{p.DIM}]"
    )


def build_help_text() -> str:
    p = get_palette()
    usage_width = max(len(spec.usage) for spec in SLASH_COMMAND_SPECS)
    lines = ["", f"[bold {p.ACCENT}]Commands:[/bold {p.ACCENT}]"]
    for spec in SLASH_COMMAND_SPECS:
        lines.append(f"  {escape(spec.usage):<{usage_width}}  {spec.description}")

    lines.extend([
        "",
        f"[bold {p.ACCENT}]Tips:[/bold {p.ACCENT}]",
        "  Esc → Enter   Multi-line input",
        "  /              Show command menu (prefix + fuzzy)",
        "  exit, quit     Leave the terminal",
        "  Ctrl-D ×2      Exit safely",
    ])
    return "\n".join(lines)


def make_prompt_html(cwd: str = "") -> HTML:
    p = get_palette()
    prompt_color = p.PROMPT if p.PROMPT.startswith("#") else "ansidefault"
    location = f'<style fg="#66788A"> {_html_escape(cwd)}</style>' if cwd else ""
    return HTML(
        f'<style fg="{prompt_color}">aiterm</style>'
        f"{location}"
        f'<style fg="#66788A"> › </style>'
    )


def _html_escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def render_startup(console, config, capabilities, cwd) -> None:
    p = get_palette()
    preset = config.get_active_preset()
    key = preset.resolve_api_key()

    key_status = f"[{p.SUCCESS}]✓[/{p.SUCCESS}]" if key else f"[{p.ERROR}]✗[/{p.ERROR}]"
    display = capabilities.display_server
    if not capabilities.has_display:
        display = "none (screenshots blocked)"

    console.print(
        f"[{p.DIM}]model[/{p.DIM}] [bold]{escape(config.active_model)}[/bold] "
        f"[{p.DIM}]→[/{p.DIM}] {escape(preset.model)}"
        f" [{p.DIM}]• key[/{p.DIM}] {key_status}"
        f" [{p.DIM}]• continue[/{p.DIM}] {config.continue_after_command}"
        f" [{p.DIM}]• display[/{p.DIM}] {display}"
    )
    console.print(f"[{p.DIM}]cwd[/{p.DIM}] {escape(str(cwd))}")
    if preset.api_base:
        console.print(f"[{p.DIM}]api[/{p.DIM}] {escape(preset.api_base)}")
    console.print(f"[{p.DIM}]config[/{p.DIM}] {escape(config._config_source)}")
    console.print(f"[{p.DIM}]/help · /model · exit to quit · Ctrl+C to cancel[/{p.DIM}]")
    console.print()


def _fuzzy_span_score(query: str, candidate: str) -> int | None:
    query_chars = query.lower().lstrip("/")
    candidate_chars = candidate.lower().lstrip("/")

    if not query_chars:
        return 0

    positions = []
    cursor = 0
    for char in query_chars:
        index = candidate_chars.find(char, cursor)
        if index < 0:
            return None
        positions.append(index)
        cursor = index + 1

    return positions[-1] - positions[0] + 1


def _command_sort_key(token: str, spec: SlashCommandSpec, order_map: dict[str, int]):
    lowered = token.lower().lstrip("/")
    command_only = spec.command.lower().lstrip("/")

    if not lowered or command_only.startswith(lowered):
        return (0, 0, order_map[spec.command])

    contains_pos = command_only.find(lowered)
    if contains_pos >= 0:
        return (1, contains_pos, order_map[spec.command])

    fuzzy_span = _fuzzy_span_score(lowered, command_only)
    if fuzzy_span is not None:
        return (2, fuzzy_span, order_map[spec.command])

    haystack = " ".join((spec.description, *spec.keywords)).lower()
    keyword_pos = haystack.find(lowered)
    if keyword_pos >= 0:
        return (3, keyword_pos, order_map[spec.command])

    return None


class SlashCommandCompleter(Completer):
    """Compact slash-command palette with prefix+fuzzy matching."""

    def __init__(
        self,
        specs: Sequence[SlashCommandSpec] = SLASH_COMMAND_SPECS,
        max_items: int = MAX_SLASH_MENU_ITEMS,
    ):
        self.specs = list(specs)
        self.max_items = max_items
        self.order_map = {spec.command: index for index, spec in enumerate(self.specs)}
        self.usage_width = max(len(spec.usage) for spec in self.specs)

    def _display(self, spec: SlashCommandSpec):
        display = [("class:completion-menu.command", spec.command)]
        args = spec.usage[len(spec.command):]
        if args:
            display.append(("class:completion-menu.args", args))
        display.append(("", " " * max(2, self.usage_width - len(spec.usage) + 1)))
        display.append(("class:completion-menu.description", spec.description))
        return display

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor.lstrip()
        if not text.startswith("/") or " " in text:
            return

        ranked = []
        for spec in self.specs:
            key = _command_sort_key(text, spec, self.order_map)
            if key is not None:
                ranked.append((key, spec))

        ranked.sort(key=lambda item: item[0])
        for _, spec in ranked[: self.max_items]:
            yield Completion(
                text=spec.command,
                start_position=-len(text),
                display=self._display(spec),
                display_meta="",
            )


# ── Thinking indicator ───────────────────────────

SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
_FRAME_INTERVAL = 0.08


class ThinkingIndicator:
    """Animated "thinking" line shown while a model call is in flight.

    Frames are drawn by a daemon thread. Leaving the ``with`` block sets the
    stop event and joins the thread before the line is cleared, so no frame
    can land after the call has returned. Nothing is drawn when the console
    is not an interactive terminal unless ``force`` is set.
    """

    def __init__(self, console, label: str = "Thinking", force: bool = False):
        self.console = console
        self.label = label
        self.enabled = force or bool(getattr(console, "is_terminal", False))
        self.frames_drawn = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> "ThinkingIndicator":
        if self.enabled:
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._spin, name="aiterm-thinking", daemon=True,
            )
            self._thread.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.stop()
        return False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
            self._write("\r\x1b[2K")

    def _spin(self):
        for frame in itertools.cycle(SPINNER_FRAMES):
            if self._stop.is_set():
                break
            self._write(f"\r{frame} {self.label}...")
            self.frames_drawn += 1
            self._stop.wait(_FRAME_INTERVAL)

    def _write(self, text: str):
        stream = self.console.file
        stream.write(text)
        stream.flush()
